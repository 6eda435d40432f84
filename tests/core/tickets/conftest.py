"""
Fixtures do domínio de tickets.

Repositórios em memória, relógio fixo e um Unit of Work fake
que registra commits, rollbacks e eventos entregues.
"""

from datetime import datetime, timezone
from typing import List

import pytest

from src.core.shared.events import DomainEvent
from src.core.shared.interfaces import FixedClock, UnitOfWork
from src.core.tickets.entities import AreaEntity, TicketEntity, TicketPriority
from src.core.tickets.ports import (
    InMemoryAreaRepository,
    InMemoryAuditRepository,
    InMemorySLARepository,
    InMemoryTicketRepository,
    InMemoryWorkflowRepository,
)


T0 = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)


class FakeUnitOfWork(UnitOfWork):
    """
    Fake Unit of Work para testes.

    Permite testar:
    - Comportamento de commit/rollback
    - Eventos entregues após commit
    - Descarte de eventos no rollback
    """

    def __init__(self):
        super().__init__()
        self.delivered: List[DomainEvent] = []
        self.commits = 0
        self.rollbacks = 0

    def _begin_transaction(self):
        pass

    def commit(self):
        self.commits += 1
        self.delivered.extend(self._events)
        self.clear_events()

    def rollback(self):
        self.rollbacks += 1
        self.clear_events()

    def delivered_types(self) -> List[str]:
        return [event.event_type for event in self.delivered]


@pytest.fixture
def clock():
    """Relógio fixo em 2024-01-01 08:00 UTC."""
    return FixedClock(T0)


@pytest.fixture
def ticket_repo():
    return InMemoryTicketRepository()


@pytest.fixture
def area_repo():
    return InMemoryAreaRepository()


@pytest.fixture
def workflow_repo():
    return InMemoryWorkflowRepository()


@pytest.fixture
def sla_repo():
    return InMemorySLARepository()


@pytest.fixture
def audit_repo():
    return InMemoryAuditRepository()


@pytest.fixture
def uow():
    """Fixture para Unit of Work fake."""
    return FakeUnitOfWork()


@pytest.fixture
def area(area_repo, clock):
    """Área ativa já persistida."""
    area = AreaEntity.create("UTI Adulto", "Unidade de terapia intensiva", clock.now())
    area.pull_domain_events()
    area_repo.save(area)
    return area


@pytest.fixture
def make_ticket(ticket_repo, area, clock):
    """Factory de tickets persistidos na área padrão."""

    def _make(title="Monitor sem sinal", resolution_time_minutes=60, **kwargs):
        ticket = TicketEntity.create(
            title=title,
            description=kwargs.pop("description", "Monitor do leito 4 sem sinais vitais"),
            requester_id=kwargs.pop("requester_id", "enf-01"),
            area_id=kwargs.pop("area_id", area.id),
            priority=kwargs.pop("priority", TicketPriority.HIGH),
            now=kwargs.pop("now", clock.now()),
            resolution_time_minutes=resolution_time_minutes,
        )
        ticket.pull_domain_events()
        ticket_repo.save(ticket)
        return ticket

    return _make
