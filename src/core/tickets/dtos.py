"""
Data Transfer Objects (DTOs) do Domínio de Tickets.

DTOs são estruturas simples para transportar dados entre camadas,
evitando vazamento de modelos internos (entidades) para camadas externas.

Tipos de DTOs:
- Input DTOs: Recebem dados de entrada (de APIs/tarefas)
- Output DTOs: Formatam dados para resposta (JSON)
- Query DTOs: Filtros de listagem e métricas
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .audit import AuditTrailEntry
from .entities import AreaEntity, TicketEntity
from .sla import SLAEntity
from .workflows import WorkflowEntity


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


# =============================================================================
# INPUT DTOs (Entrada)
# =============================================================================

@dataclass(frozen=True)
class CreateAreaInputDTO:
    """
    DTO de entrada para criar área.

    Attributes:
        name: Nome da área
        description: Descrição opcional
        actor_id: Quem está criando
    """

    name: str
    description: Optional[str] = None
    actor_id: Optional[str] = None


@dataclass(frozen=True)
class UpdateAreaInputDTO:
    """
    DTO de entrada para renomear ou redescrever área.

    Attributes:
        area_id: Área a atualizar
        name: Novo nome
        description: Nova descrição (None limpa)
        actor_id: Quem está alterando
    """

    area_id: str
    name: str
    description: Optional[str] = None
    actor_id: Optional[str] = None


@dataclass(frozen=True)
class DeactivateAreaInputDTO:
    """
    DTO de entrada para desativar área.

    Attributes:
        area_id: Área a desativar
        actor_id: Quem está desativando
        reason: Motivo (registrado na auditoria)
    """

    area_id: str
    actor_id: str
    reason: Optional[str] = None


@dataclass(frozen=True)
class CreateTicketInputDTO:
    """
    DTO de entrada para abrir ticket.

    Imutável (frozen=True) para garantir que dados
    validados não sejam alterados acidentalmente.

    Attributes:
        title: Título do ticket
        description: Descrição detalhada
        requester_id: Solicitante
        area_id: Área responsável
        priority: Prioridade (nome do enum, ex: "HIGH")
        actor_id: Quem registrou (default: solicitante)
    """

    title: str
    description: str
    requester_id: str
    area_id: str
    priority: str = "MEDIUM"
    actor_id: Optional[str] = None

    def to_dict(self) -> dict:
        """Converte para dicionário."""
        return {
            "title": self.title,
            "description": self.description,
            "requester_id": self.requester_id,
            "area_id": self.area_id,
            "priority": self.priority,
        }


@dataclass(frozen=True)
class AssignTicketInputDTO:
    """
    DTO de entrada para atribuir ticket.

    Attributes:
        ticket_id: ID do ticket
        assignee_id: Agente a ser atribuído
        actor_id: Quem está atribuindo
    """

    ticket_id: str
    assignee_id: str
    actor_id: str


@dataclass(frozen=True)
class TransitionTicketStatusInputDTO:
    """
    DTO de entrada para transição de status.

    Attributes:
        ticket_id: ID do ticket
        status: Status de destino (nome)
        actor_id: Quem está transicionando
        resolution_summary: Resumo aplicado antes da transição (opcional)
        expected_version: Versão que o cliente leu (opcional, detecta conflito)
    """

    ticket_id: str
    status: str
    actor_id: str
    resolution_summary: Optional[str] = None
    expected_version: Optional[int] = None


@dataclass(frozen=True)
class CloseTicketInputDTO:
    """
    DTO de entrada para fechar ticket.

    Attributes:
        ticket_id: ID do ticket
        resolution_summary: Resumo da solução (min 10 caracteres)
        actor_id: Quem está fechando
        notify_requester: Sinaliza notificação ao solicitante
    """

    ticket_id: str
    resolution_summary: str
    actor_id: str
    notify_requester: bool = True


@dataclass(frozen=True)
class ConfigureWorkflowInputDTO:
    """
    DTO de entrada para configurar workflow da área.

    Attributes:
        area_id: Área alvo
        transitions: Estado → próximos estados
        required_fields: Estado → campos obrigatórios
        actor_id: Quem está configurando
    """

    area_id: str
    transitions: Dict[str, List[str]]
    actor_id: str
    required_fields: Dict[str, List[str]] = field(default_factory=dict)


@dataclass(frozen=True)
class ConfigureSLAInputDTO:
    area_id: str
    response_time_minutes: int
    resolution_time_minutes: int
    actor_id: str


@dataclass(frozen=True)
class RecordAuditInputDTO:
    """DTO de entrada para registrar auditoria avulsa."""

    actor_id: str
    action: str
    entity_type: str
    entity_id: str
    changes: Dict[str, Any] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)
    ticket_id: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


# =============================================================================
# QUERY DTOs (Filtros)
# =============================================================================

@dataclass(frozen=True)
class MetricsQueryDTO:
    """
    Filtros de métricas de SLA.

    Attributes:
        area_id: Restringe a uma área (opcional)
        date_from / date_to: Intervalo inclusivo sobre created_at
    """

    area_id: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None


@dataclass(frozen=True)
class ListTicketsQueryDTO:
    """
    DTO para parâmetros de busca/filtro de tickets.

    Attributes:
        status: Filtrar por status (opcional)
        area_id: Filtrar por área (opcional)
        assignee_id: Filtrar por agente (opcional)
        requester_id: Filtrar por solicitante (opcional)
        page: Número da página (1-indexed)
        per_page: Itens por página
    """

    status: Optional[str] = None
    area_id: Optional[str] = None
    assignee_id: Optional[str] = None
    requester_id: Optional[str] = None
    page: int = 1
    per_page: int = 20


# =============================================================================
# OUTPUT DTOs (Saída)
# =============================================================================

@dataclass
class TicketOutputDTO:
    """
    DTO de saída completo com dados do ticket.

    Datas em UTC; to_dict() serializa em ISO 8601.
    """

    id: str
    title: str
    description: str
    status: str
    priority: str
    requester_id: str
    assignee_id: Optional[str]
    area_id: str
    created_at: datetime
    updated_at: datetime
    first_response_at: Optional[datetime]
    resolved_at: Optional[datetime]
    closed_at: Optional[datetime]
    sla_target_at: Optional[datetime]
    sla_breached: bool
    resolution_summary: Optional[str]
    version: int

    @classmethod
    def from_entity(cls, entity: TicketEntity) -> "TicketOutputDTO":
        """
        Factory method para converter entidade em DTO.

        Args:
            entity: Entidade TicketEntity

        Returns:
            DTO com dados da entidade
        """
        return cls(
            id=entity.id,
            title=entity.title,
            description=entity.description,
            status=entity.status.value,
            priority=entity.priority.value,
            requester_id=entity.requester_id,
            assignee_id=entity.assignee_id,
            area_id=entity.area_id,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
            first_response_at=entity.first_response_at,
            resolved_at=entity.resolved_at,
            closed_at=entity.closed_at,
            sla_target_at=entity.sla_target_at,
            sla_breached=entity.sla_breached,
            resolution_summary=entity.resolution_summary,
            version=entity.version,
        )

    def to_dict(self) -> dict:
        """Converte para dicionário (serialização JSON)."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "requester_id": self.requester_id,
            "assignee_id": self.assignee_id,
            "area_id": self.area_id,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
            "first_response_at": _iso(self.first_response_at),
            "resolved_at": _iso(self.resolved_at),
            "closed_at": _iso(self.closed_at),
            "sla_target_at": _iso(self.sla_target_at),
            "sla_breached": self.sla_breached,
            "resolution_summary": self.resolution_summary,
            "version": self.version,
        }


@dataclass
class PaginatedResultDTO:
    """
    DTO para resultados paginados.

    Attributes:
        items: Itens da página atual
        total: Total de itens (sem paginação)
        page: Página atual
        per_page: Itens por página
    """

    items: List[TicketOutputDTO]
    total: int
    page: int
    per_page: int

    @property
    def total_pages(self) -> int:
        """Calcula total de páginas."""
        if self.per_page <= 0:
            return 0
        return (self.total + self.per_page - 1) // self.per_page

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    def to_dict(self) -> dict:
        return {
            "items": [item.to_dict() for item in self.items],
            "total": self.total,
            "page": self.page,
            "per_page": self.per_page,
            "total_pages": self.total_pages,
            "has_next": self.has_next,
            "has_previous": self.has_previous,
        }


@dataclass
class AreaOutputDTO:
    id: str
    name: str
    description: Optional[str]
    is_active: bool
    created_at: datetime

    @classmethod
    def from_entity(cls, entity: AreaEntity) -> "AreaOutputDTO":
        return cls(
            id=entity.id,
            name=entity.name,
            description=entity.description,
            is_active=entity.is_active,
            created_at=entity.created_at,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "is_active": self.is_active,
            "created_at": _iso(self.created_at),
        }


@dataclass
class WorkflowOutputDTO:
    """DTO de saída de uma versão de workflow."""

    id: str
    area_id: str
    version: int
    transitions: Dict[str, List[str]]
    required_fields: Dict[str, List[str]]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, entity: WorkflowEntity) -> "WorkflowOutputDTO":
        return cls(
            id=entity.id,
            area_id=entity.area_id,
            version=entity.version,
            transitions=entity.transitions_as_lists(),
            required_fields=entity.required_fields_as_lists(),
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "area_id": self.area_id,
            "version": self.version,
            "transitions": self.transitions,
            "required_fields": self.required_fields,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


@dataclass
class SLAOutputDTO:
    id: str
    area_id: str
    response_time_minutes: int
    resolution_time_minutes: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, entity: SLAEntity) -> "SLAOutputDTO":
        return cls(
            id=entity.id,
            area_id=entity.area_id,
            response_time_minutes=entity.response_time_minutes,
            resolution_time_minutes=entity.resolution_time_minutes,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "area_id": self.area_id,
            "response_time_minutes": self.response_time_minutes,
            "resolution_time_minutes": self.resolution_time_minutes,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


@dataclass
class AuditEntryOutputDTO:
    """DTO de saída de uma entrada de auditoria."""

    id: str
    actor_id: str
    action: str
    entity_type: str
    entity_id: str
    changes: Dict[str, Any]
    metadata: Dict[str, Any]
    ticket_id: Optional[str]
    occurred_at: datetime

    @classmethod
    def from_entity(cls, entry: AuditTrailEntry) -> "AuditEntryOutputDTO":
        return cls(
            id=entry.id,
            actor_id=entry.actor_id,
            action=entry.action,
            entity_type=entry.entity_type,
            entity_id=entry.entity_id,
            changes=dict(entry.changes),
            metadata=dict(entry.metadata),
            ticket_id=entry.ticket_id,
            occurred_at=entry.occurred_at,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "actor_id": self.actor_id,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "changes": self.changes,
            "metadata": self.metadata,
            "ticket_id": self.ticket_id,
            "occurred_at": _iso(self.occurred_at),
        }


@dataclass
class TicketHistoryOutputDTO:
    """
    Exportação do histórico de um ticket.

    Estado atual do ticket mais a trilha de auditoria em ordem
    cronológica, num único documento.
    """

    ticket: TicketOutputDTO
    audit_trail: List[AuditEntryOutputDTO]
    exported_at: datetime

    def to_dict(self) -> dict:
        return {
            "ticket": self.ticket.to_dict(),
            "audit_trail": [entry.to_dict() for entry in self.audit_trail],
            "exported_at": _iso(self.exported_at),
        }
