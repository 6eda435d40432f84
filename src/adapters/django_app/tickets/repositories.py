"""
Repositórios Django para persistência do domínio de Tickets.

Implementam as interfaces (Ports) definidas no Core.
São DRIVEN ADAPTERS - acionados pelo Core em resposta a operações.

Responsabilidades:
- Implementar os protocols de src/core/tickets/ports.py
- Mapear entities para models e vice-versa
- Executar queries no banco via ORM
- Concorrência otimista de tickets (coluna version)

Princípios:
- Repository não contém lógica de negócio
- Usa Mapper para conversões
- Trata apenas persistência
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional
import logging

from django.db.models import F

from src.core.shared.events import DomainEvent
from src.core.shared.exceptions import ConcurrentModificationError
from src.core.shared.interfaces import EventStore
from src.core.tickets.audit import AuditTrailEntry
from src.core.tickets.entities import AreaEntity, TicketEntity, TicketStatus
from src.core.tickets.sla import SLAEntity
from src.core.tickets.workflows import WorkflowEntity

from .mappers import (
    AreaMapper,
    AuditTrailMapper,
    DomainEventMapper,
    SLAMapper,
    TicketMapper,
    WorkflowMapper,
)
from .models import (
    AreaModel,
    AuditTrailModel,
    DomainEventModel,
    SLAModel,
    TicketModel,
    WorkflowModel,
)

logger = logging.getLogger(__name__)


def _status_values(statuses: Iterable) -> List[str]:
    return [
        status.value if isinstance(status, TicketStatus) else str(status)
        for status in statuses
    ]


class DjangoTicketRepository:
    """
    Implementação Django do TicketRepository.

    Features:
    - Create/update com concorrência otimista
    - Filtros de listagem e métricas
    - Busca de tickets com SLA vencido

    Example:
        repo = DjangoTicketRepository()
        repo.save(ticket_entity)
        ticket = repo.find_by_id("uuid-here")
    """

    def __init__(self):
        self._mapper = TicketMapper()

    def save(self, ticket: TicketEntity) -> None:
        """
        Persiste ticket (create ou update).

        version == 0 indica ticket novo. Em update, a linha só é
        alterada se a versão gravada ainda for a versão carregada.

        Raises:
            ConcurrentModificationError: Se outro processo alterou o ticket
        """
        if ticket.version == 0:
            model = self._mapper.to_model(ticket)
            model.version = 1
            model.save(force_insert=True)
            ticket.version = 1
            logger.info(f"Ticket created: {ticket.id}")
            return

        updated = (
            TicketModel.objects
            .filter(id=ticket.id, version=ticket.version)
            .update(version=F('version') + 1, **self._mapper.to_fields(ticket))
        )

        if updated == 0:
            actual = (
                TicketModel.objects
                .filter(id=ticket.id)
                .values_list('version', flat=True)
                .first()
            )
            logger.warning(
                f"Version conflict on ticket {ticket.id}: "
                f"expected v{ticket.version}, found v{actual}"
            )
            raise ConcurrentModificationError(
                ticket.id,
                expected_version=ticket.version,
                actual_version=actual,
            )

        ticket.version += 1
        logger.debug(f"Ticket saved: {ticket.id} v{ticket.version}")

    def find_by_id(self, ticket_id: str) -> Optional[TicketEntity]:
        """
        Busca ticket por ID.

        Returns:
            Entidade encontrada ou None
        """
        try:
            model = TicketModel.objects.get(id=ticket_id)
            return self._mapper.to_entity(model)
        except TicketModel.DoesNotExist:
            logger.debug(f"Ticket not found: {ticket_id}")
            return None

    def list(
        self,
        status: Optional[TicketStatus] = None,
        area_id: Optional[str] = None,
        assignee_id: Optional[str] = None,
        requester_id: Optional[str] = None,
    ) -> List[TicketEntity]:
        queryset = TicketModel.objects.all()

        if status:
            queryset = queryset.filter(status=status.value)
        if area_id:
            queryset = queryset.filter(area_id=area_id)
        if assignee_id:
            queryset = queryset.filter(assignee_id=assignee_id)
        if requester_id:
            queryset = queryset.filter(requester_id=requester_id)

        return self._mapper.to_entity_list(queryset.order_by('-created_at'))

    def find_by_filters(
        self,
        area_id: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> List[TicketEntity]:
        """Tickets para métricas (intervalo inclusivo sobre created_at)."""
        queryset = TicketModel.objects.all()

        if area_id:
            queryset = queryset.filter(area_id=area_id)
        if date_from:
            queryset = queryset.filter(created_at__gte=date_from)
        if date_to:
            queryset = queryset.filter(created_at__lte=date_to)

        return self._mapper.to_entity_list(queryset.order_by('created_at'))

    def count_by_area_and_status(
        self,
        area_id: str,
        statuses: Iterable[TicketStatus],
    ) -> int:
        return TicketModel.objects.filter(
            area_id=area_id,
            status__in=_status_values(statuses),
        ).count()

    def find_overdue(self, now: datetime) -> List[TicketEntity]:
        """Tickets em aberto, não marcados, com prazo vencido."""
        models = (
            TicketModel.objects
            .filter(
                sla_breached=False,
                resolved_at__isnull=True,
                sla_target_at__lt=now,
            )
            .exclude(status__in=[TicketStatus.CLOSED.value, TicketStatus.CANCELLED.value])
            .order_by('sla_target_at')
        )
        return self._mapper.to_entity_list(models)


class DjangoAreaRepository:
    """Implementação Django do AreaRepository."""

    def save(self, area: AreaEntity) -> None:
        model = AreaMapper.to_model(area)
        model.save()
        logger.debug(f"Area saved: {area.id}")

    def find_by_id(self, area_id: str) -> Optional[AreaEntity]:
        model = AreaModel.objects.filter(id=area_id).first()
        return AreaMapper.to_entity(model) if model else None

    def list(self, only_active: bool = False) -> List[AreaEntity]:
        queryset = AreaModel.objects.all()
        if only_active:
            queryset = queryset.filter(is_active=True)
        return [AreaMapper.to_entity(model) for model in queryset.order_by('name')]


class DjangoWorkflowRepository:
    """
    Implementação Django do WorkflowRepository.

    Versões são sempre inseridas, nunca atualizadas.
    """

    def save(self, workflow: WorkflowEntity) -> None:
        WorkflowMapper.to_model(workflow).save(force_insert=True)
        logger.info(f"Workflow v{workflow.version} saved for area {workflow.area_id}")

    def find_latest_by_area_id(self, area_id: str) -> Optional[WorkflowEntity]:
        model = (
            WorkflowModel.objects
            .filter(area_id=area_id)
            .order_by('-version', '-created_at')
            .first()
        )
        return WorkflowMapper.to_entity(model) if model else None

    def find_by_area_id(self, area_id: str) -> List[WorkflowEntity]:
        models = WorkflowModel.objects.filter(area_id=area_id).order_by('version', 'created_at')
        return [WorkflowMapper.to_entity(model) for model in models]


class DjangoSLARepository:
    """Implementação Django do SLARepository."""

    def find_by_area_id(self, area_id: str) -> Optional[SLAEntity]:
        model = SLAModel.objects.filter(area_id=area_id).first()
        return SLAMapper.to_entity(model) if model else None

    def save(self, sla: SLAEntity) -> None:
        SLAMapper.to_model(sla).save()
        logger.debug(f"SLA saved for area {sla.area_id}")


class DjangoAuditRepository:
    """Implementação Django do AuditRepository (append-only)."""

    def save(self, entry: AuditTrailEntry) -> None:
        AuditTrailMapper.to_model(entry).save(force_insert=True)

    def find_by_ticket_id(self, ticket_id: str) -> List[AuditTrailEntry]:
        models = AuditTrailModel.objects.filter(ticket_id=ticket_id).order_by('occurred_at')
        return [AuditTrailMapper.to_entity(model) for model in models]

    def find_by_entity(self, entity_type: str, entity_id: str) -> List[AuditTrailEntry]:
        models = (
            AuditTrailModel.objects
            .filter(entity_type=entity_type, entity_id=entity_id)
            .order_by('occurred_at')
        )
        return [AuditTrailMapper.to_entity(model) for model in models]


class DjangoEventStore(EventStore):
    """
    Event Store usando Django ORM.

    Persiste Domain Events para:
    - Auditoria
    - Replay
    - Analytics
    """

    def append(self, event: DomainEvent, sequence: int = 0) -> None:
        """
        Adiciona evento ao store.

        Args:
            event: Evento de domínio
            sequence: Sequência no agregado
        """
        DomainEventMapper.to_model(event, sequence=sequence).save(force_insert=True)
        logger.debug(f"Event stored: {event.event_type} for {event.aggregate_id}")

    def get_events_for_aggregate(
        self,
        aggregate_id: str,
        since_sequence: int = 0,
    ) -> List[Dict[str, Any]]:
        """
        Recupera eventos de um agregado.

        Returns:
            Lista de eventos em formato dict
        """
        events = (
            DomainEventModel.objects
            .filter(aggregate_id=aggregate_id, sequence__gte=since_sequence)
            .order_by('sequence', 'recorded_at')
        )

        return [
            {
                'event_id': e.event_id,
                'event_type': e.event_type,
                'aggregate_id': e.aggregate_id,
                'event_data': e.event_data,
                'sequence': e.sequence,
                'occurred_at': e.occurred_at,
            }
            for e in events
        ]

    def next_sequence(self, aggregate_id: str) -> int:
        """Próxima sequência livre do agregado."""
        return DomainEventModel.objects.filter(aggregate_id=aggregate_id).count()
