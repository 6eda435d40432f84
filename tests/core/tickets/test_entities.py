"""
Testes Unitários para Entidades do Domínio de Tickets.

Testa as regras de negócio encapsuladas em TicketEntity e AreaEntity,
sem dependências externas.

Coverage:
- Criação com validações
- Atribuição
- Efeitos de transição (timestamps, flag de SLA, eventos)
- Verificação periódica de SLA
- Ciclo de vida da área
"""

from datetime import datetime, timedelta, timezone

import pytest

from src.core.shared.exceptions import (
    AlreadyClosedError,
    AlreadyDeactivatedError,
    ValidationError,
)
from src.core.tickets.entities import (
    ACTIVE_STATUSES,
    AreaEntity,
    TicketEntity,
    TicketPriority,
    TicketStatus,
)
from src.core.tickets.events import (
    AreaCreatedEvent,
    AreaDeactivatedEvent,
    TicketAssignedEvent,
    TicketClosedEvent,
    TicketCreatedEvent,
    TicketSLABreachedEvent,
    TicketStatusChangedEvent,
)

T0 = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)


def _ticket(**overrides) -> TicketEntity:
    data = dict(
        title="Impressora da recepção",
        description="Não imprime etiquetas de pulseira",
        requester_id="recep-01",
        area_id="area-ti",
        now=T0,
        resolution_time_minutes=120,
    )
    data.update(overrides)
    return TicketEntity.create(**data)


class TestTicketStatus:
    """Testes para TicketStatus."""

    def test_from_string_aceita_variacoes(self):
        """Deve aceitar caixa baixa, espaços e hífens."""
        assert TicketStatus.from_string("in progress") == TicketStatus.IN_PROGRESS
        assert TicketStatus.from_string("in-progress") == TicketStatus.IN_PROGRESS
        assert TicketStatus.from_string("closed") == TicketStatus.CLOSED

    def test_from_string_invalido(self):
        """Deve lançar ValueError para status desconhecido."""
        with pytest.raises(ValueError):
            TicketStatus.from_string("ARCHIVED")

    def test_active_statuses_exclui_terminais(self):
        """Deve considerar ativos apenas os status não terminais."""
        assert TicketStatus.CLOSED not in ACTIVE_STATUSES
        assert TicketStatus.CANCELLED not in ACTIVE_STATUSES
        assert TicketStatus.RESOLVED in ACTIVE_STATUSES
        assert len(ACTIVE_STATUSES) == 4


class TestTicketPriority:

    def test_from_string(self):
        assert TicketPriority.from_string("urgent") == TicketPriority.URGENT

    def test_from_string_invalido(self):
        with pytest.raises(ValueError):
            TicketPriority.from_string("CRITICAL")


class TestTicketCreation:
    """Testes para criação de tickets."""

    def test_cria_ticket_aberto_com_prazo(self):
        """Deve nascer OPEN com prazo = created_at + minutos de resolução."""
        ticket = _ticket()

        assert ticket.status == TicketStatus.OPEN
        assert ticket.created_at == T0
        assert ticket.sla_target_at == T0 + timedelta(minutes=120)
        assert ticket.sla_breached is False
        assert ticket.version == 0
        assert ticket.first_response_at is None

    def test_prazo_sem_sla_e_a_propria_criacao(self):
        """Deve usar 0 minutos quando a área não tem SLA."""
        ticket = _ticket(resolution_time_minutes=0)
        assert ticket.sla_target_at == ticket.created_at

    def test_remove_espacos_do_titulo(self):
        ticket = _ticket(title="  Rede caiu no PS  ")
        assert ticket.title == "Rede caiu no PS"

    def test_registra_evento_de_criacao(self):
        """Deve registrar ticket.created com prioridade e prazo."""
        ticket = _ticket(priority=TicketPriority.URGENT)
        events = ticket.pull_domain_events()

        assert len(events) == 1
        assert isinstance(events[0], TicketCreatedEvent)
        assert events[0].event_type == "ticket.created"
        assert events[0].payload["priority"] == "URGENT"
        assert ticket.pull_domain_events() == []

    @pytest.mark.parametrize("title", ["", "   ", "ab", "x" * 201])
    def test_titulo_invalido(self, title):
        """Deve rejeitar títulos vazios, curtos ou longos demais."""
        with pytest.raises(ValidationError) as exc_info:
            _ticket(title=title)
        assert exc_info.value.field == "title"

    def test_descricao_longa_demais(self):
        with pytest.raises(ValidationError) as exc_info:
            _ticket(description="x" * 5001)
        assert exc_info.value.field == "description"

    def test_solicitante_obrigatorio(self):
        with pytest.raises(ValidationError) as exc_info:
            _ticket(requester_id="")
        assert exc_info.value.field == "requester_id"

    def test_area_obrigatoria(self):
        with pytest.raises(ValidationError) as exc_info:
            _ticket(area_id="")
        assert exc_info.value.field == "area_id"

    def test_minutos_negativos(self):
        with pytest.raises(ValidationError) as exc_info:
            _ticket(resolution_time_minutes=-5)
        assert exc_info.value.field == "resolution_time_minutes"


class TestTicketAssign:
    """Testes para atribuição."""

    def test_atribui_sem_mudar_status(self):
        """Deve definir o agente e manter o status."""
        ticket = _ticket()
        ticket.pull_domain_events()

        ticket.assign("tec-07", T0 + timedelta(minutes=5))

        assert ticket.assignee_id == "tec-07"
        assert ticket.status == TicketStatus.OPEN
        assert ticket.is_assigned

        events = ticket.pull_domain_events()
        assert isinstance(events[0], TicketAssignedEvent)
        assert events[0].previous_assignee_id is None

    def test_reatribuicao_guarda_anterior(self):
        ticket = _ticket()
        ticket.assign("tec-07", T0)
        ticket.pull_domain_events()

        ticket.assign("tec-09", T0)

        assert ticket.pull_domain_events()[0].previous_assignee_id == "tec-07"

    def test_agente_vazio(self):
        with pytest.raises(ValidationError):
            _ticket().assign("", T0)

    def test_ticket_fechado(self):
        """Não deve atribuir ticket fechado."""
        ticket = _ticket()
        ticket.status = TicketStatus.CLOSED

        with pytest.raises(AlreadyClosedError):
            ticket.assign("tec-07", T0)


class TestApplyTransition:
    """Testes para efeitos de transição."""

    def test_primeira_saida_de_open_define_primeira_resposta(self):
        ticket = _ticket()
        moment = T0 + timedelta(minutes=10)

        ticket.apply_transition(TicketStatus.ASSIGNED, moment)

        assert ticket.first_response_at == moment
        assert ticket.updated_at == moment

    def test_primeira_resposta_definida_uma_unica_vez(self):
        ticket = _ticket()
        ticket.apply_transition(TicketStatus.ASSIGNED, T0 + timedelta(minutes=10))
        ticket.apply_transition(TicketStatus.IN_PROGRESS, T0 + timedelta(minutes=20))

        assert ticket.first_response_at == T0 + timedelta(minutes=10)

    def test_cancelamento_nao_conta_como_primeira_resposta(self):
        """Deve manter first_response_at vazio quando OPEN vai direto para CANCELLED."""
        ticket = _ticket()

        ticket.apply_transition(TicketStatus.CANCELLED, T0 + timedelta(minutes=10))

        assert ticket.status == TicketStatus.CANCELLED
        assert ticket.first_response_at is None

    def test_resolucao_no_prazo(self):
        """Deve resolver sem violação dentro do prazo."""
        ticket = _ticket(resolution_time_minutes=120)
        moment = T0 + timedelta(minutes=90)

        ticket.apply_transition(TicketStatus.RESOLVED, moment)

        assert ticket.resolved_at == moment
        assert ticket.sla_breached is False

    def test_resolucao_apos_prazo(self):
        """Deve marcar violação quando resolved_at passa do prazo."""
        ticket = _ticket(resolution_time_minutes=120)

        ticket.apply_transition(TicketStatus.RESOLVED, T0 + timedelta(minutes=121))

        assert ticket.sla_breached is True

    def test_resolucao_exatamente_no_prazo_nao_viola(self):
        ticket = _ticket(resolution_time_minutes=120)

        ticket.apply_transition(TicketStatus.RESOLVED, T0 + timedelta(minutes=120))

        assert ticket.sla_breached is False

    def test_fechamento_emite_ticket_closed(self):
        ticket = _ticket()
        ticket.resolution_summary = "Cabo de rede substituído"
        ticket.pull_domain_events()

        ticket.apply_transition(TicketStatus.CLOSED, T0, notify_requester=False)

        events = ticket.pull_domain_events()
        assert len(events) == 1
        assert isinstance(events[0], TicketClosedEvent)
        assert events[0].payload["notify_requester"] is False
        assert ticket.closed_at == T0

    def test_demais_transicoes_emitem_status_changed(self):
        ticket = _ticket()
        ticket.pull_domain_events()

        ticket.apply_transition(TicketStatus.ASSIGNED, T0)

        event = ticket.pull_domain_events()[0]
        assert type(event) is TicketStatusChangedEvent
        assert event.payload["from"] == "OPEN"
        assert event.payload["to"] == "ASSIGNED"


class TestCheckSLABreach:
    """Testes para a verificação periódica de SLA."""

    def test_marca_violacao_apos_prazo(self):
        ticket = _ticket(resolution_time_minutes=30)
        ticket.pull_domain_events()

        assert ticket.check_sla_breach(T0 + timedelta(minutes=31)) is True
        assert ticket.sla_breached is True
        assert isinstance(ticket.pull_domain_events()[0], TicketSLABreachedEvent)

    def test_idempotente(self):
        """Deve marcar e emitir evento uma única vez."""
        ticket = _ticket(resolution_time_minutes=30)
        ticket.pull_domain_events()
        later = T0 + timedelta(minutes=31)

        ticket.check_sla_breach(later)
        ticket.pull_domain_events()

        assert ticket.check_sla_breach(later) is False
        assert ticket.pull_domain_events() == []

    def test_dentro_do_prazo(self):
        ticket = _ticket(resolution_time_minutes=30)
        assert ticket.check_sla_breach(T0 + timedelta(minutes=30)) is False
        assert ticket.sla_breached is False

    def test_ignora_ticket_resolvido(self):
        ticket = _ticket(resolution_time_minutes=30)
        ticket.apply_transition(TicketStatus.RESOLVED, T0 + timedelta(minutes=10))

        assert ticket.check_sla_breach(T0 + timedelta(days=1)) is False

    def test_ignora_ticket_cancelado(self):
        ticket = _ticket(resolution_time_minutes=30)
        ticket.apply_transition(TicketStatus.CANCELLED, T0)

        assert ticket.check_sla_breach(T0 + timedelta(days=1)) is False


class TestResolutionSummary:

    def test_resumo_curto(self):
        with pytest.raises(ValidationError) as exc_info:
            _ticket().set_resolution_summary("ok")
        assert exc_info.value.field == "resolution_summary"

    def test_resumo_valido(self):
        ticket = _ticket()
        ticket.set_resolution_summary("  Driver reinstalado  ")
        assert ticket.resolution_summary == "Driver reinstalado"


class TestTicketIdentity:

    def test_igualdade_por_id(self):
        ticket = _ticket()
        other = _ticket()
        other.id = ticket.id
        assert ticket == other
        assert hash(ticket) == hash(other)


class TestAreaEntity:
    """Testes para AreaEntity."""

    def test_cria_area_ativa(self):
        area = AreaEntity.create("  Radiologia  ", now=T0)

        assert area.name == "Radiologia"
        assert area.is_active is True
        assert isinstance(area.pull_domain_events()[0], AreaCreatedEvent)

    def test_nome_vazio(self):
        with pytest.raises(ValidationError) as exc_info:
            AreaEntity.create("   ")
        assert exc_info.value.field == "name"

    def test_desativa(self):
        area = AreaEntity.create("Radiologia", now=T0)
        area.pull_domain_events()

        area.deactivate(T0)

        assert area.is_active is False
        assert isinstance(area.pull_domain_events()[0], AreaDeactivatedEvent)

    def test_desativar_duas_vezes(self):
        area = AreaEntity.create("Radiologia", now=T0)
        area.deactivate(T0)

        with pytest.raises(AlreadyDeactivatedError):
            area.deactivate(T0)

    def test_atualiza_nome(self):
        area = AreaEntity.create("Radiologia", now=T0)
        area.update("Diagnóstico por Imagem", "Raio-X e tomografia", T0)

        assert area.name == "Diagnóstico por Imagem"
        assert area.description == "Raio-X e tomografia"
