"""
Ports (Interfaces) do Domínio de Tickets.

Define os contratos que os Adapters de infraestrutura devem implementar
para persistência de tickets, áreas, workflows, SLAs e auditoria.

Ports:
- TicketRepository
- AreaRepository
- WorkflowRepository
- SLARepository
- AuditRepository

Princípio:
    Core define interfaces → Adapters implementam
    Dependências sempre apontam para o Core

Este módulo também contém as implementações em memória usadas em
testes e no TestingContainer.
"""

import copy
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Protocol, runtime_checkable

from src.core.shared.exceptions import ConcurrentModificationError

from .audit import AuditTrailEntry
from .entities import AreaEntity, TicketEntity, TicketStatus
from .sla import SLAEntity
from .workflows import WorkflowEntity


@runtime_checkable
class TicketRepository(Protocol):
    """
    Interface para persistência de Tickets.

    Tickets nunca são removidos: não há delete.

    Implementações:
    - DjangoTicketRepository (ORM)
    - InMemoryTicketRepository (para testes)
    """

    def save(self, ticket: TicketEntity) -> None:
        """
        Persiste ticket (create ou update).

        Incrementa ticket.version após gravar.

        Raises:
            ConcurrentModificationError: Se a versão gravada difere
                da versão carregada
        """
        ...

    def find_by_id(self, ticket_id: str) -> Optional[TicketEntity]:
        """Busca ticket por ID, None se não existe."""
        ...

    def list(
        self,
        status: Optional[TicketStatus] = None,
        area_id: Optional[str] = None,
        assignee_id: Optional[str] = None,
        requester_id: Optional[str] = None,
    ) -> List[TicketEntity]:
        """Lista tickets (mais recentes primeiro) com filtros opcionais."""
        ...

    def find_by_filters(
        self,
        area_id: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> List[TicketEntity]:
        """
        Tickets para métricas.

        Args:
            area_id: Restringe a uma área
            date_from / date_to: Intervalo inclusivo sobre created_at
        """
        ...

    def count_by_area_and_status(
        self,
        area_id: str,
        statuses: Iterable[TicketStatus],
    ) -> int:
        """Conta tickets da área nos status informados."""
        ...

    def find_overdue(self, now: datetime) -> List[TicketEntity]:
        """Tickets não resolvidos, ainda não marcados, com prazo vencido."""
        ...


@runtime_checkable
class AreaRepository(Protocol):
    """Interface para persistência de Áreas."""

    def save(self, area: AreaEntity) -> None:
        ...

    def find_by_id(self, area_id: str) -> Optional[AreaEntity]:
        ...

    def list(self, only_active: bool = False) -> List[AreaEntity]:
        ...


@runtime_checkable
class WorkflowRepository(Protocol):
    """
    Interface para persistência de versões de Workflow.

    Versões são append-only; a vigente é a de maior version.
    """

    def save(self, workflow: WorkflowEntity) -> None:
        ...

    def find_latest_by_area_id(self, area_id: str) -> Optional[WorkflowEntity]:
        """Versão vigente da área (maior version, empate por created_at)."""
        ...

    def find_by_area_id(self, area_id: str) -> List[WorkflowEntity]:
        """Todas as versões da área, da mais antiga para a mais nova."""
        ...


@runtime_checkable
class SLARepository(Protocol):
    """Interface para persistência de SLA (um por área)."""

    def find_by_area_id(self, area_id: str) -> Optional[SLAEntity]:
        ...

    def save(self, sla: SLAEntity) -> None:
        ...


@runtime_checkable
class AuditRepository(Protocol):
    """Interface append-only da trilha de auditoria."""

    def save(self, entry: AuditTrailEntry) -> None:
        ...

    def find_by_ticket_id(self, ticket_id: str) -> List[AuditTrailEntry]:
        """Entradas do ticket em ordem cronológica."""
        ...

    def find_by_entity(self, entity_type: str, entity_id: str) -> List[AuditTrailEntry]:
        ...


# =============================================================================
# Implementações em memória
# =============================================================================

def _snapshot(entity):
    """Cópia isolada, sem eventos pendentes."""
    stored = copy.deepcopy(entity)
    stored.pull_domain_events()
    return stored


def _status_values(statuses: Iterable) -> set:
    return {
        status.value if isinstance(status, TicketStatus) else str(status)
        for status in statuses
    }


class InMemoryTicketRepository:
    """
    Implementação em memória do TicketRepository.

    Útil para:
    - Testes unitários
    - Desenvolvimento local
    - Prototipação

    Guarda cópias: alterações em uma entidade carregada só chegam ao
    repositório via save(), como em um banco real.
    """

    def __init__(self):
        self._tickets: Dict[str, TicketEntity] = {}

    def save(self, ticket: TicketEntity) -> None:
        stored = self._tickets.get(ticket.id)
        if stored is not None and stored.version != ticket.version:
            raise ConcurrentModificationError(
                ticket.id,
                expected_version=ticket.version,
                actual_version=stored.version,
            )

        ticket.version += 1
        self._tickets[ticket.id] = _snapshot(ticket)

    def find_by_id(self, ticket_id: str) -> Optional[TicketEntity]:
        ticket = self._tickets.get(ticket_id)
        return copy.deepcopy(ticket) if ticket else None

    def list(
        self,
        status: Optional[TicketStatus] = None,
        area_id: Optional[str] = None,
        assignee_id: Optional[str] = None,
        requester_id: Optional[str] = None,
    ) -> List[TicketEntity]:
        tickets = [
            t for t in self._tickets.values()
            if (status is None or t.status == status)
            and (area_id is None or t.area_id == area_id)
            and (assignee_id is None or t.assignee_id == assignee_id)
            and (requester_id is None or t.requester_id == requester_id)
        ]
        tickets.sort(key=lambda t: t.created_at, reverse=True)
        return [copy.deepcopy(t) for t in tickets]

    def find_by_filters(
        self,
        area_id: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> List[TicketEntity]:
        tickets = [
            t for t in self._tickets.values()
            if (area_id is None or t.area_id == area_id)
            and (date_from is None or t.created_at >= date_from)
            and (date_to is None or t.created_at <= date_to)
        ]
        tickets.sort(key=lambda t: t.created_at)
        return [copy.deepcopy(t) for t in tickets]

    def count_by_area_and_status(
        self,
        area_id: str,
        statuses: Iterable[TicketStatus],
    ) -> int:
        values = _status_values(statuses)
        return sum(
            1 for t in self._tickets.values()
            if t.area_id == area_id and t.status.value in values
        )

    def find_overdue(self, now: datetime) -> List[TicketEntity]:
        tickets = [
            t for t in self._tickets.values()
            if not t.sla_breached
            and t.resolved_at is None
            and not t.status.is_terminal
            and t.sla_target_at is not None
            and now > t.sla_target_at
        ]
        return [copy.deepcopy(t) for t in tickets]

    def clear(self) -> None:
        """Limpa repositório (para testes)."""
        self._tickets.clear()


class InMemoryAreaRepository:
    """Implementação em memória do AreaRepository."""

    def __init__(self):
        self._areas: Dict[str, AreaEntity] = {}

    def save(self, area: AreaEntity) -> None:
        self._areas[area.id] = _snapshot(area)

    def find_by_id(self, area_id: str) -> Optional[AreaEntity]:
        area = self._areas.get(area_id)
        return copy.deepcopy(area) if area else None

    def list(self, only_active: bool = False) -> List[AreaEntity]:
        areas = [a for a in self._areas.values() if a.is_active or not only_active]
        areas.sort(key=lambda a: a.name)
        return [copy.deepcopy(a) for a in areas]


class InMemoryWorkflowRepository:
    """Implementação em memória do WorkflowRepository."""

    def __init__(self):
        self._workflows: List[WorkflowEntity] = []

    def save(self, workflow: WorkflowEntity) -> None:
        self._workflows.append(_snapshot(workflow))

    def find_latest_by_area_id(self, area_id: str) -> Optional[WorkflowEntity]:
        versions = self.find_by_area_id(area_id)
        return versions[-1] if versions else None

    def find_by_area_id(self, area_id: str) -> List[WorkflowEntity]:
        versions = [w for w in self._workflows if w.area_id == area_id]
        versions.sort(key=lambda w: (w.version, w.created_at))
        return [copy.deepcopy(w) for w in versions]


class InMemorySLARepository:
    """Implementação em memória do SLARepository."""

    def __init__(self):
        self._slas: Dict[str, SLAEntity] = {}

    def find_by_area_id(self, area_id: str) -> Optional[SLAEntity]:
        sla = self._slas.get(area_id)
        return copy.deepcopy(sla) if sla else None

    def save(self, sla: SLAEntity) -> None:
        self._slas[sla.area_id] = _snapshot(sla)


class InMemoryAuditRepository:
    """Implementação em memória do AuditRepository."""

    def __init__(self):
        self._entries: List[AuditTrailEntry] = []

    def save(self, entry: AuditTrailEntry) -> None:
        self._entries.append(entry)

    def find_by_ticket_id(self, ticket_id: str) -> List[AuditTrailEntry]:
        entries = [e for e in self._entries if e.ticket_id == ticket_id]
        return sorted(entries, key=lambda e: e.occurred_at)

    def find_by_entity(self, entity_type: str, entity_id: str) -> List[AuditTrailEntry]:
        entries = [
            e for e in self._entries
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        return sorted(entries, key=lambda e: e.occurred_at)

    def all(self) -> List[AuditTrailEntry]:
        """Todas as entradas na ordem de gravação (para testes)."""
        return list(self._entries)
