"""
Domain Events do Domínio de Tickets.

Este módulo define os eventos de domínio disparados quando algo
significativo acontece com tickets, workflows, SLAs e áreas.

Eventos:
- ticket.created: Novo ticket foi aberto
- ticket.assigned: Ticket foi atribuído a um agente
- ticket.status_changed: Ticket mudou de status
- ticket.closed: Ticket foi fechado
- ticket.sla_breached: Ticket passou do prazo de SLA sem resolução
- workflow.created / workflow.updated: Nova versão de workflow da área
- sla.created / sla.updated: SLA da área configurado
- area.created / area.updated / area.deactivated

Uso:
    Eventos são registrados nas entidades (record_event) e drenados
    pelos use cases após persistir:

    with uow:
        ticket_repo.save(ticket)
        uow.publish_events(ticket.pull_domain_events())
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional

from src.core.shared.events import DomainEvent


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


# =============================================================================
# Ticket
# =============================================================================

@dataclass
class TicketCreatedEvent(DomainEvent):
    """
    Evento: Ticket foi criado.

    Handlers típicos:
    - Notificar equipe da área
    - Registrar métrica de abertura

    Attributes:
        title: Título do ticket
        requester_id: Solicitante
        area_id: Área responsável
        priority: Prioridade (valor do enum)
        sla_target_at: Prazo de SLA calculado
    """

    _event_type: ClassVar[str] = "ticket.created"

    title: str = ""
    requester_id: str = ""
    area_id: str = ""
    priority: str = ""
    sla_target_at: Optional[datetime] = None

    @property
    def aggregate_type(self) -> str:
        return "Ticket"

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "id": self.aggregate_id,
            "title": self.title,
            "requester_id": self.requester_id,
            "area_id": self.area_id,
            "priority": self.priority,
            "sla_target_at": _iso(self.sla_target_at),
        }


@dataclass
class TicketAssignedEvent(DomainEvent):
    """
    Evento: Ticket foi atribuído a um agente.

    Attributes:
        assignee_id: Agente atribuído
        previous_assignee_id: Agente anterior (reatribuição)
    """

    _event_type: ClassVar[str] = "ticket.assigned"

    assignee_id: str = ""
    previous_assignee_id: Optional[str] = None

    @property
    def aggregate_type(self) -> str:
        return "Ticket"

    def _get_event_data(self) -> Dict[str, Any]:
        data = {"id": self.aggregate_id, "assignee_id": self.assignee_id}
        if self.previous_assignee_id:
            data["previous_assignee_id"] = self.previous_assignee_id
        return data


@dataclass
class TicketStatusChangedEvent(DomainEvent):
    """
    Evento: Status do ticket mudou.

    Payload no formato {id, from, to, occurred_at}.

    Attributes:
        from_status: Status anterior
        to_status: Novo status
    """

    _event_type: ClassVar[str] = "ticket.status_changed"

    from_status: str = ""
    to_status: str = ""

    @property
    def aggregate_type(self) -> str:
        return "Ticket"

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "id": self.aggregate_id,
            "from": self.from_status,
            "to": self.to_status,
            "occurred_at": self.occurred_at.isoformat(),
        }


@dataclass
class TicketClosedEvent(TicketStatusChangedEvent):
    """
    Evento: Ticket foi fechado.

    Versão específica de ticket.status_changed para a entrada em CLOSED.

    Handlers típicos:
    - Notificar solicitante (se notify_requester)
    - Atualizar métricas de resolução
    """

    _event_type: ClassVar[str] = "ticket.closed"

    requester_id: str = ""
    resolution_summary: Optional[str] = None
    notify_requester: bool = True

    def _get_event_data(self) -> Dict[str, Any]:
        data = super()._get_event_data()
        data.update({
            "requester_id": self.requester_id,
            "resolution_summary": self.resolution_summary,
            "notify_requester": self.notify_requester,
        })
        return data


@dataclass
class TicketSLABreachedEvent(DomainEvent):
    """
    Evento: SLA do ticket foi violado.

    Disparado uma única vez, quando a verificação periódica encontra
    o ticket sem resolução após o prazo.

    Attributes:
        sla_target_at: Prazo original do SLA
        area_id: Área do ticket
        assignee_id: Agente responsável (se atribuído)
    """

    _event_type: ClassVar[str] = "ticket.sla_breached"

    sla_target_at: Optional[datetime] = None
    area_id: str = ""
    assignee_id: Optional[str] = None

    @property
    def aggregate_type(self) -> str:
        return "Ticket"

    def _get_event_data(self) -> Dict[str, Any]:
        data = {
            "id": self.aggregate_id,
            "sla_target_at": _iso(self.sla_target_at),
            "area_id": self.area_id,
        }
        if self.assignee_id:
            data["assignee_id"] = self.assignee_id
        return data


# =============================================================================
# Workflow
# =============================================================================

@dataclass
class WorkflowCreatedEvent(DomainEvent):
    """Evento: Primeira versão de workflow configurada para a área."""

    _event_type: ClassVar[str] = "workflow.created"

    area_id: str = ""
    workflow_version: int = 1
    transitions: Dict[str, List[str]] = field(default_factory=dict)
    required_fields: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def aggregate_type(self) -> str:
        return "Workflow"

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "id": self.aggregate_id,
            "area_id": self.area_id,
            "workflow_version": self.workflow_version,
            "transitions": self.transitions,
            "required_fields": self.required_fields,
        }


@dataclass
class WorkflowUpdatedEvent(WorkflowCreatedEvent):
    """Evento: Nova versão substitui o workflow anterior da área."""

    _event_type: ClassVar[str] = "workflow.updated"

    previous_workflow_id: Optional[str] = None

    def _get_event_data(self) -> Dict[str, Any]:
        data = super()._get_event_data()
        data["previous_workflow_id"] = self.previous_workflow_id
        return data


# =============================================================================
# SLA
# =============================================================================

@dataclass
class SLAConfiguredEvent(DomainEvent):
    """Evento: SLA da área criado."""

    _event_type: ClassVar[str] = "sla.created"

    area_id: str = ""
    response_time_minutes: int = 0
    resolution_time_minutes: int = 0

    @property
    def aggregate_type(self) -> str:
        return "SLA"

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "id": self.aggregate_id,
            "area_id": self.area_id,
            "response_time_minutes": self.response_time_minutes,
            "resolution_time_minutes": self.resolution_time_minutes,
        }


@dataclass
class SLAUpdatedEvent(SLAConfiguredEvent):
    """Evento: SLA da área alterado (vale apenas para tickets novos)."""

    _event_type: ClassVar[str] = "sla.updated"


# =============================================================================
# Área
# =============================================================================

@dataclass
class AreaCreatedEvent(DomainEvent):
    """Evento: Área criada."""

    _event_type: ClassVar[str] = "area.created"

    name: str = ""

    @property
    def aggregate_type(self) -> str:
        return "Area"

    def _get_event_data(self) -> Dict[str, Any]:
        return {"id": self.aggregate_id, "name": self.name}


@dataclass
class AreaUpdatedEvent(AreaCreatedEvent):
    """Evento: Nome/descrição da área alterados."""

    _event_type: ClassVar[str] = "area.updated"

    description: Optional[str] = None

    def _get_event_data(self) -> Dict[str, Any]:
        data = super()._get_event_data()
        data["description"] = self.description
        return data


@dataclass
class AreaDeactivatedEvent(DomainEvent):
    """Evento: Área desativada (soft delete)."""

    _event_type: ClassVar[str] = "area.deactivated"

    @property
    def aggregate_type(self) -> str:
        return "Area"

    def _get_event_data(self) -> Dict[str, Any]:
        return {"id": self.aggregate_id}
