"""
Testes dos repositórios Django e do DjangoUnitOfWork.

Usa SQLite em memória (pytest-django).
"""

from datetime import datetime, timedelta, timezone

import pytest

from src.adapters.django_app.events.publishers import InMemoryEventPublisher
from src.adapters.django_app.shared.unit_of_work import DjangoUnitOfWork
from src.adapters.django_app.tickets.models import AreaModel, DomainEventModel, TicketModel
from src.adapters.django_app.tickets.repositories import (
    DjangoAuditRepository,
    DjangoEventStore,
    DjangoSLARepository,
    DjangoWorkflowRepository,
)
from src.core.shared.exceptions import ConcurrentModificationError
from src.core.tickets.audit import AuditAction, AuditTrailEntry
from src.core.tickets.entities import AreaEntity, TicketPriority, TicketStatus
from src.core.tickets.sla import SLAEntity
from src.core.tickets.workflows import WorkflowEntity

T0 = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)

pytestmark = pytest.mark.django_db


class TestDjangoTicketRepository:
    """Testes para DjangoTicketRepository."""

    def test_insercao_define_versao_1(self, ticket_repo, ticket_factory):
        ticket = ticket_factory()

        ticket_repo.save(ticket)

        assert ticket.version == 1
        assert TicketModel.objects.get(id=ticket.id).version == 1

    def test_roundtrip(self, ticket_repo, ticket_factory):
        ticket = ticket_factory(priority=TicketPriority.URGENT)
        ticket_repo.save(ticket)

        found = ticket_repo.find_by_id(ticket.id)

        assert found.title == ticket.title
        assert found.priority == TicketPriority.URGENT
        assert found.status == TicketStatus.OPEN
        assert found.sla_target_at == T0 + timedelta(minutes=60)
        assert found.version == 1

    def test_find_by_id_inexistente(self, ticket_repo):
        assert ticket_repo.find_by_id('nao-existe') is None

    def test_atualizacao_incrementa_versao(self, ticket_repo, ticket_factory):
        ticket = ticket_factory()
        ticket_repo.save(ticket)

        ticket.assign('tec-01', T0)
        ticket_repo.save(ticket)

        assert ticket.version == 2
        stored = TicketModel.objects.get(id=ticket.id)
        assert stored.version == 2
        assert stored.assignee_id == 'tec-01'

    def test_escrita_concorrente(self, ticket_repo, ticket_factory):
        """Deve rejeitar a segunda gravação a partir da mesma versão."""
        ticket = ticket_factory()
        ticket_repo.save(ticket)

        first = ticket_repo.find_by_id(ticket.id)
        second = ticket_repo.find_by_id(ticket.id)

        first.assign('tec-01', T0)
        ticket_repo.save(first)

        second.assign('tec-02', T0)
        with pytest.raises(ConcurrentModificationError) as exc_info:
            ticket_repo.save(second)

        assert exc_info.value.expected_version == 1
        assert exc_info.value.actual_version == 2
        assert TicketModel.objects.get(id=ticket.id).assignee_id == 'tec-01'

    def test_list_com_filtros(self, ticket_repo, ticket_factory):
        mine = ticket_factory(requester_id='enf-01')
        other = ticket_factory(requester_id='enf-02')
        ticket_repo.save(mine)
        ticket_repo.save(other)

        result = ticket_repo.list(requester_id='enf-02')

        assert [t.id for t in result] == [other.id]
        assert len(ticket_repo.list(status=TicketStatus.OPEN)) == 2
        assert ticket_repo.list(status=TicketStatus.CLOSED) == []

    def test_find_by_filters_intervalo_inclusivo(self, ticket_repo, ticket_factory):
        early = ticket_factory(now=T0)
        late = ticket_factory(now=T0 + timedelta(days=2))
        ticket_repo.save(early)
        ticket_repo.save(late)

        result = ticket_repo.find_by_filters(date_from=T0, date_to=T0)

        assert [t.id for t in result] == [early.id]

    def test_count_by_area_and_status(self, ticket_repo, ticket_factory, saved_area):
        open_ticket = ticket_factory()
        cancelled = ticket_factory()
        cancelled.apply_transition(TicketStatus.CANCELLED, T0)
        ticket_repo.save(open_ticket)
        ticket_repo.save(cancelled)

        count = ticket_repo.count_by_area_and_status(
            saved_area.id, [TicketStatus.OPEN, TicketStatus.ASSIGNED]
        )

        assert count == 1

    def test_find_overdue(self, ticket_repo, ticket_factory):
        overdue = ticket_factory()
        flagged = ticket_factory()
        flagged.sla_breached = True
        on_time = ticket_factory(resolution_time_minutes=600)
        for ticket in (overdue, flagged, on_time):
            ticket_repo.save(ticket)

        result = ticket_repo.find_overdue(T0 + timedelta(minutes=61))

        assert [t.id for t in result] == [overdue.id]


class TestDjangoAreaRepository:

    def test_salva_e_lista(self, area_repo, saved_area):
        other = AreaEntity.create("Almoxarifado", now=T0)
        other.deactivate(T0)
        area_repo.save(other)

        assert area_repo.find_by_id(saved_area.id).name == "Engenharia Clínica"
        assert [a.id for a in area_repo.list(only_active=True)] == [saved_area.id]
        assert len(area_repo.list()) == 2


class TestDjangoWorkflowRepository:
    """Testes para versões de workflow."""

    def test_versoes_por_area(self, saved_area):
        repo = DjangoWorkflowRepository()
        first = WorkflowEntity.define(saved_area.id, {"OPEN": ["ASSIGNED"]}, now=T0)
        second = WorkflowEntity.define(
            saved_area.id,
            {"OPEN": ["IN_PROGRESS"]},
            {"IN_PROGRESS": ["assignee_id"]},
            now=T0,
            previous=first,
        )
        repo.save(first)
        repo.save(second)

        latest = repo.find_latest_by_area_id(saved_area.id)

        assert latest.version == 2
        assert latest.allowed_from("OPEN") == ("IN_PROGRESS",)
        assert latest.required_fields_for("IN_PROGRESS") == ("assignee_id",)
        assert [w.version for w in repo.find_by_area_id(saved_area.id)] == [1, 2]

    def test_sem_workflow(self, saved_area):
        assert DjangoWorkflowRepository().find_latest_by_area_id(saved_area.id) is None


class TestDjangoSLARepository:

    def test_atualiza_registro_unico(self, saved_area):
        repo = DjangoSLARepository()
        sla = SLAEntity.create(saved_area.id, 15, 240, T0)
        repo.save(sla)

        sla.update(30, 480, T0 + timedelta(days=1))
        repo.save(sla)

        found = repo.find_by_area_id(saved_area.id)
        assert found.id == sla.id
        assert found.resolution_time_minutes == 480


class TestDjangoAuditRepository:

    def test_ordenado_por_ocorrencia(self, db):
        repo = DjangoAuditRepository()
        later = AuditTrailEntry.create(
            "tec-01", AuditAction.ASSIGN, "Ticket", "t-1",
            now=T0 + timedelta(minutes=5), ticket_id="t-1",
            changes={"assignee_id": {"before": None, "after": "tec-01"}},
        )
        earlier = AuditTrailEntry.create(
            "enf-01", AuditAction.CREATE, "Ticket", "t-1", now=T0, ticket_id="t-1",
        )
        repo.save(later)
        repo.save(earlier)

        entries = repo.find_by_ticket_id("t-1")

        assert [e.action for e in entries] == [AuditAction.CREATE, AuditAction.ASSIGN]
        assert entries[1].changes["assignee_id"]["after"] == "tec-01"
        assert len(repo.find_by_entity("Ticket", "t-1")) == 2


class TestDjangoUnitOfWork:
    """Testes para DjangoUnitOfWork."""

    def test_commit_persiste_e_publica(self, db):
        publisher = InMemoryEventPublisher()
        store = DjangoEventStore()
        area = AreaEntity.create("Nutrição", now=T0)

        with DjangoUnitOfWork(event_publisher=publisher, event_store=store) as uow:
            AreaModel.objects.create(id=area.id, name=area.name, created_at=T0)
            uow.publish_events(area.pull_domain_events())

        assert uow.is_committed
        assert AreaModel.objects.filter(id=area.id).exists()
        assert [e.event_type for e in publisher.published_events] == ['area.created']

        stored = store.get_events_for_aggregate(area.id)
        assert len(stored) == 1
        assert stored[0]['sequence'] == 0
        assert store.next_sequence(area.id) == 1

    def test_rollback_descarta_escritas_e_eventos(self, area_repo):
        publisher = InMemoryEventPublisher()
        area = AreaEntity.create("Lavanderia", now=T0)

        with pytest.raises(RuntimeError):
            with DjangoUnitOfWork(event_publisher=publisher, event_store=DjangoEventStore()) as uow:
                area_repo.save(area)
                uow.publish_events(area.pull_domain_events())
                raise RuntimeError("falha no meio da operação")

        assert uow.is_rolled_back
        assert not AreaModel.objects.filter(id=area.id).exists()
        assert DomainEventModel.objects.count() == 0
        assert publisher.published_events == []

    def test_sequencia_continua_entre_transacoes(self, db):
        store = DjangoEventStore()
        area = AreaEntity.create("Hotelaria", now=T0)
        uow = DjangoUnitOfWork(event_store=store)

        with uow:
            uow.publish_events(area.pull_domain_events())

        area.update("Hotelaria Hospitalar", now=T0)
        with uow:
            uow.publish_events(area.pull_domain_events())

        sequences = [e['sequence'] for e in store.get_events_for_aggregate(area.id)]
        assert sequences == [0, 1]
