"""
Mappers para conversão entre Entities (Core) e Models (Django).

Responsabilidades:
- Converter Entity → Model (para persistência)
- Converter Model → Entity (para uso no Core)
- Converter DomainEvent → DomainEventModel (para Event Store)

Princípios:
- Mappers são stateless
- Não contêm lógica de negócio
- Tratam apenas conversão de dados
- Entities são reconstruídas sem passar pelas factories (sem eventos)
"""

from typing import Any, Dict, List

from src.core.shared.events import DomainEvent
from src.core.tickets.audit import AuditTrailEntry
from src.core.tickets.entities import (
    AreaEntity,
    TicketEntity,
    TicketPriority,
    TicketStatus,
)
from src.core.tickets.sla import SLAEntity
from src.core.tickets.workflows import WorkflowEntity

from .models import (
    AreaModel,
    AuditTrailModel,
    DomainEventModel,
    SLAModel,
    TicketModel,
    WorkflowModel,
)


class TicketMapper:
    """
    Mapper para conversão entre TicketEntity e TicketModel.

    Responsável por:
    - to_model(): Entity → Model
    - to_entity(): Model → Entity
    - to_entity_list(): List[Model] → List[Entity]
    - to_fields(): Colunas mutáveis (para UPDATE condicional)
    """

    @staticmethod
    def to_fields(entity: TicketEntity) -> Dict[str, Any]:
        """
        Colunas persistidas, exceto id e version.

        Args:
            entity: Entidade de domínio

        Returns:
            Dicionário coluna → valor
        """
        return {
            'title': entity.title,
            'description': entity.description,
            'status': entity.status.value,
            'priority': entity.priority.value,
            'requester_id': entity.requester_id,
            'assignee_id': entity.assignee_id,
            'area_id': entity.area_id,
            'created_at': entity.created_at,
            'updated_at': entity.updated_at,
            'first_response_at': entity.first_response_at,
            'resolved_at': entity.resolved_at,
            'closed_at': entity.closed_at,
            'sla_target_at': entity.sla_target_at,
            'sla_breached': entity.sla_breached,
            'resolution_summary': entity.resolution_summary,
        }

    @staticmethod
    def to_model(entity: TicketEntity) -> TicketModel:
        """
        Converte TicketEntity para TicketModel.

        Note:
            Não chama .save() - deixa isso para o Repository
        """
        return TicketModel(
            id=entity.id,
            version=entity.version,
            **TicketMapper.to_fields(entity)
        )

    @staticmethod
    def to_entity(model: TicketModel) -> TicketEntity:
        """
        Converte TicketModel para TicketEntity.

        Note:
            Bypassa validações do factory method .create()
            pois dados já foram validados na criação original
        """
        return TicketEntity(
            id=model.id,
            title=model.title,
            description=model.description,
            status=TicketStatus(model.status),
            priority=TicketPriority(model.priority),
            requester_id=model.requester_id,
            assignee_id=model.assignee_id,
            area_id=model.area_id,
            created_at=model.created_at,
            updated_at=model.updated_at,
            first_response_at=model.first_response_at,
            resolved_at=model.resolved_at,
            closed_at=model.closed_at,
            sla_target_at=model.sla_target_at,
            sla_breached=model.sla_breached,
            resolution_summary=model.resolution_summary,
            version=model.version,
        )

    @staticmethod
    def to_entity_list(models: List[TicketModel]) -> List[TicketEntity]:
        return [TicketMapper.to_entity(model) for model in models]


class AreaMapper:
    """Mapper AreaEntity ↔ AreaModel."""

    @staticmethod
    def to_model(entity: AreaEntity) -> AreaModel:
        return AreaModel(
            id=entity.id,
            name=entity.name,
            description=entity.description,
            is_active=entity.is_active,
            created_at=entity.created_at,
        )

    @staticmethod
    def to_entity(model: AreaModel) -> AreaEntity:
        return AreaEntity(
            id=model.id,
            name=model.name,
            description=model.description,
            is_active=model.is_active,
            created_at=model.created_at,
        )


class WorkflowMapper:
    """
    Mapper WorkflowEntity ↔ WorkflowModel.

    JSONField guarda listas; a entidade usa tuplas.
    """

    @staticmethod
    def to_model(entity: WorkflowEntity) -> WorkflowModel:
        return WorkflowModel(
            id=entity.id,
            area_id=entity.area_id,
            version=entity.version,
            transitions=entity.transitions_as_lists(),
            required_fields=entity.required_fields_as_lists(),
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    @staticmethod
    def to_entity(model: WorkflowModel) -> WorkflowEntity:
        return WorkflowEntity(
            id=model.id,
            area_id=model.area_id,
            version=model.version,
            transitions={
                state: tuple(targets) for state, targets in (model.transitions or {}).items()
            },
            required_fields={
                state: tuple(fields) for state, fields in (model.required_fields or {}).items()
            },
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


class SLAMapper:
    """Mapper SLAEntity ↔ SLAModel."""

    @staticmethod
    def to_model(entity: SLAEntity) -> SLAModel:
        return SLAModel(
            id=entity.id,
            area_id=entity.area_id,
            response_time_minutes=entity.response_time_minutes,
            resolution_time_minutes=entity.resolution_time_minutes,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    @staticmethod
    def to_entity(model: SLAModel) -> SLAEntity:
        return SLAEntity(
            id=model.id,
            area_id=model.area_id,
            response_time_minutes=model.response_time_minutes,
            resolution_time_minutes=model.resolution_time_minutes,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


class AuditTrailMapper:
    """Mapper AuditTrailEntry ↔ AuditTrailModel."""

    @staticmethod
    def to_model(entry: AuditTrailEntry) -> AuditTrailModel:
        return AuditTrailModel(
            id=entry.id,
            actor_id=entry.actor_id,
            action=entry.action,
            entity_type=entry.entity_type,
            entity_id=entry.entity_id,
            changes=entry.changes,
            metadata=entry.metadata,
            ticket_id=entry.ticket_id,
            ip_address=entry.ip_address,
            user_agent=entry.user_agent,
            occurred_at=entry.occurred_at,
        )

    @staticmethod
    def to_entity(model: AuditTrailModel) -> AuditTrailEntry:
        return AuditTrailEntry(
            id=model.id,
            actor_id=model.actor_id,
            action=model.action,
            entity_type=model.entity_type,
            entity_id=model.entity_id,
            changes=model.changes or {},
            metadata=model.metadata or {},
            ticket_id=model.ticket_id,
            ip_address=model.ip_address,
            user_agent=model.user_agent,
            occurred_at=model.occurred_at,
        )


class DomainEventMapper:
    """
    Mapper para conversão entre DomainEvent e DomainEventModel.

    Usado para persistir eventos no Event Store.
    """

    @staticmethod
    def to_model(event: DomainEvent, sequence: int = 0) -> DomainEventModel:
        """
        Converte DomainEvent para DomainEventModel.

        Args:
            event: Evento de domínio
            sequence: Número de sequência no agregado

        Returns:
            Model pronto para persistência
        """
        return DomainEventModel(
            event_id=event.event_id,
            event_type=event.event_type,
            aggregate_type=event.aggregate_type,
            aggregate_id=event.aggregate_id,
            event_data=event.payload,
            version=event.version,
            sequence=sequence,
            occurred_at=event.occurred_at,
        )
