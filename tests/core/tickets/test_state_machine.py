"""
Testes da máquina de estados de tickets.

Coverage:
- Grafo padrão
- Ordem das verificações (fechado, destino inválido, grafo, campos)
- Workflow da área com fallback para o grafo padrão
- Campos obrigatórios em camelCase
"""

from datetime import datetime, timedelta, timezone

import pytest

from src.core.shared.exceptions import (
    AlreadyClosedError,
    InvalidTransitionError,
    MissingRequiredFieldError,
    ValidationError,
)
from src.core.tickets.entities import TicketEntity, TicketStatus
from src.core.tickets.state_machine import (
    DEFAULT_TRANSITIONS,
    DefaultTransitionPolicy,
    TicketStateMachine,
    TransitionPolicy,
    WorkflowTransitionPolicy,
    to_snake_case,
)
from src.core.tickets.workflows import WorkflowEntity

T0 = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def machine():
    return TicketStateMachine()


@pytest.fixture
def ticket():
    ticket = TicketEntity.create(
        title="Ar-condicionado do centro cirúrgico",
        description="Sala 3 acima de 24 graus",
        requester_id="cc-01",
        area_id="area-manutencao",
        now=T0,
        resolution_time_minutes=60,
    )
    ticket.pull_domain_events()
    return ticket


def _walk(machine, ticket, *statuses):
    for status in statuses:
        machine.transition(ticket, status, now=T0 + timedelta(minutes=1))


class TestDefaultGraph:
    """Testes para o grafo padrão."""

    def test_fluxo_completo(self, machine, ticket):
        """Deve percorrer OPEN → ... → CLOSED."""
        _walk(machine, ticket, "ASSIGNED", "IN_PROGRESS", "RESOLVED")
        ticket.resolution_summary = "Compressor reiniciado"

        result = machine.transition(ticket, TicketStatus.CLOSED, now=T0)

        assert result == TicketStatus.CLOSED
        assert ticket.status == TicketStatus.CLOSED

    def test_cancelamento_a_partir_de_open(self, machine, ticket):
        machine.transition(ticket, "CANCELLED", now=T0)
        assert ticket.status == TicketStatus.CANCELLED

    def test_salto_invalido_mantem_status(self, machine, ticket):
        """Deve rejeitar OPEN → RESOLVED sem alterar o ticket."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            machine.transition(ticket, "RESOLVED", now=T0)

        assert exc_info.value.from_status == "OPEN"
        assert exc_info.value.to_status == "RESOLVED"
        assert ticket.status == TicketStatus.OPEN
        assert ticket.pending_events == []

    def test_cancelado_e_terminal(self, machine, ticket):
        machine.transition(ticket, "CANCELLED", now=T0)

        with pytest.raises(InvalidTransitionError):
            machine.transition(ticket, "OPEN", now=T0)

    def test_resolved_nao_pode_ser_cancelado(self):
        assert "CANCELLED" not in DEFAULT_TRANSITIONS["RESOLVED"]


# Todos os pares (origem, destino) fora de CLOSED
OPEN_PAIRS = [
    (source, target)
    for source in TicketStatus
    if source != TicketStatus.CLOSED
    for target in TicketStatus
]


class TestDefaultGraphPairs:
    """Cada par de status contra o grafo padrão."""

    @pytest.mark.parametrize(
        "source,target", OPEN_PAIRS, ids=lambda status: status.value
    )
    def test_par_segue_grafo_padrao(self, machine, ticket, source, target):
        """Deve aceitar só as arestas do grafo e manter o status nas demais."""
        ticket.status = source
        ticket.resolution_summary = "Compressor reiniciado"

        if target.value in DEFAULT_TRANSITIONS[source.value]:
            result = machine.transition(ticket, target, now=T0)
            assert result == target
            assert ticket.status == target
        else:
            with pytest.raises(InvalidTransitionError) as exc_info:
                machine.transition(ticket, target, now=T0)
            assert exc_info.value.from_status == source.value
            assert exc_info.value.to_status == target.value
            assert ticket.status == source
            assert ticket.pending_events == []

    @pytest.mark.parametrize("target", list(TicketStatus), ids=lambda status: status.value)
    def test_fechado_rejeita_qualquer_destino(self, machine, ticket, target):
        ticket.status = TicketStatus.CLOSED
        ticket.resolution_summary = "Compressor reiniciado"

        with pytest.raises(AlreadyClosedError):
            machine.transition(ticket, target, now=T0)

        assert ticket.status == TicketStatus.CLOSED


class TestCheckOrder:
    """Testes para a ordem das verificações."""

    def test_fechado_antes_de_tudo(self, machine, ticket):
        """Deve lançar AlreadyClosedError mesmo com destino inválido."""
        ticket.status = TicketStatus.CLOSED

        with pytest.raises(AlreadyClosedError):
            machine.transition(ticket, "NAO_EXISTE", now=T0)

    def test_destino_desconhecido(self, machine, ticket):
        with pytest.raises(ValidationError) as exc_info:
            machine.transition(ticket, "ARCHIVED", now=T0)
        assert exc_info.value.field == "status"

    def test_grafo_antes_dos_campos(self, machine, ticket):
        """Deve reportar transição inválida antes de campo ausente."""
        with pytest.raises(InvalidTransitionError):
            machine.transition(ticket, "CLOSED", now=T0)

    def test_fechar_exige_resumo(self, machine, ticket):
        _walk(machine, ticket, "ASSIGNED", "IN_PROGRESS", "RESOLVED")

        with pytest.raises(MissingRequiredFieldError) as exc_info:
            machine.transition(ticket, "CLOSED", now=T0)

        assert exc_info.value.field_name == "resolution_summary"
        assert exc_info.value.status == "CLOSED"
        assert ticket.status == TicketStatus.RESOLVED


class TestWorkflowPolicy:
    """Testes para políticas vindas do workflow da área."""

    def _workflow(self, transitions, required_fields=None):
        return WorkflowEntity.define(
            area_id="area-manutencao",
            transitions=transitions,
            required_fields=required_fields,
            now=T0,
        )

    def test_for_workflow_sem_workflow(self):
        assert isinstance(TransitionPolicy.for_workflow(None), DefaultTransitionPolicy)

    def test_for_workflow_com_workflow(self):
        workflow = self._workflow({"OPEN": ["IN_PROGRESS"]})
        assert isinstance(TransitionPolicy.for_workflow(workflow), WorkflowTransitionPolicy)

    def test_workflow_permite_atalho(self, machine, ticket):
        """Deve permitir OPEN → IN_PROGRESS quando o workflow declara."""
        policy = TransitionPolicy.for_workflow(self._workflow({"OPEN": ["IN_PROGRESS"]}))

        machine.transition(ticket, "IN_PROGRESS", policy, now=T0)

        assert ticket.status == TicketStatus.IN_PROGRESS
        assert ticket.first_response_at == T0

    def test_workflow_restringe_grafo(self, machine, ticket):
        policy = TransitionPolicy.for_workflow(self._workflow({"OPEN": ["IN_PROGRESS"]}))

        with pytest.raises(InvalidTransitionError):
            machine.transition(ticket, "ASSIGNED", policy, now=T0)

    def test_estado_sem_chave_usa_grafo_padrao(self, machine, ticket):
        """Deve seguir o grafo padrão em estados que o workflow não declara."""
        policy = TransitionPolicy.for_workflow(self._workflow({"OPEN": ["IN_PROGRESS"]}))
        machine.transition(ticket, "IN_PROGRESS", policy, now=T0)

        machine.transition(ticket, "RESOLVED", policy, now=T0)

        assert ticket.status == TicketStatus.RESOLVED

    def test_campo_obrigatorio_do_workflow(self, machine, ticket):
        policy = TransitionPolicy.for_workflow(self._workflow(
            {"OPEN": ["ASSIGNED"]},
            {"ASSIGNED": ["assigneeId"]},
        ))

        with pytest.raises(MissingRequiredFieldError) as exc_info:
            machine.transition(ticket, "ASSIGNED", policy, now=T0)
        assert exc_info.value.field_name == "assigneeId"

        ticket.assign("tec-01", T0)
        machine.transition(ticket, "ASSIGNED", policy, now=T0)
        assert ticket.status == TicketStatus.ASSIGNED

    def test_resumo_em_camel_case_nao_duplica(self, machine, ticket):
        policy = TransitionPolicy.for_workflow(self._workflow(
            {"RESOLVED": ["CLOSED"]},
            {"CLOSED": ["resolutionSummary"]},
        ))
        ticket.status = TicketStatus.RESOLVED

        missing = machine.missing_fields(ticket, TicketStatus.CLOSED, policy)

        assert missing == ["resolutionSummary"]


class TestQueries:

    def test_can_transition(self, machine, ticket):
        assert machine.can_transition(ticket, "ASSIGNED") is True
        assert machine.can_transition(ticket, "CLOSED") is False
        assert machine.can_transition(ticket, "ARCHIVED") is False

    def test_available_transitions(self, machine, ticket):
        assert machine.available_transitions(ticket) == [
            TicketStatus.ASSIGNED,
            TicketStatus.CANCELLED,
        ]

    def test_available_transitions_fechado(self, machine, ticket):
        ticket.status = TicketStatus.CLOSED
        assert machine.available_transitions(ticket) == []

    def test_to_snake_case(self):
        assert to_snake_case("resolutionSummary") == "resolution_summary"
        assert to_snake_case("assignee_id") == "assignee_id"
