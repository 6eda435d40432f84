"""
Testes da política de SLA.
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from src.core.shared.exceptions import ValidationError
from src.core.tickets.events import SLAConfiguredEvent, SLAUpdatedEvent
from src.core.tickets.sla import SLAEntity, compute_target, evaluate_breach

T0 = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)


class TestComputeTarget:

    def test_soma_minutos(self):
        assert compute_target(T0, 90) == T0 + timedelta(minutes=90)

    def test_zero_e_none(self):
        """Deve tratar ausência de SLA como 0 minutos."""
        assert compute_target(T0, 0) == T0
        assert compute_target(T0, None) == T0

    def test_negativo(self):
        with pytest.raises(ValidationError) as exc_info:
            compute_target(T0, -1)
        assert exc_info.value.field == "resolution_time_minutes"

    @pytest.mark.parametrize("minutes", [0, 1, 15, 59, 60, 240, 1440, 10080])
    def test_prazo_e_criacao_mais_m_minutos(self, minutes):
        target = compute_target(T0, minutes)

        assert target == T0 + timedelta(minutes=minutes)
        assert (target - T0).total_seconds() == minutes * 60


class TestEvaluateBreach:
    """Testes para evaluate_breach."""

    def _ticket(self, target=None, resolved_at=None):
        return SimpleNamespace(sla_target_at=target, resolved_at=resolved_at)

    def test_sem_prazo(self):
        assert evaluate_breach(self._ticket(), T0 + timedelta(days=30)) is False

    def test_aberto_apos_prazo(self):
        ticket = self._ticket(target=T0)
        assert evaluate_breach(ticket, T0 + timedelta(seconds=1)) is True

    def test_aberto_no_limite(self):
        ticket = self._ticket(target=T0)
        assert evaluate_breach(ticket, T0) is False

    def test_resolvido_usa_resolved_at(self):
        """Deve ignorar o instante atual quando o ticket já foi resolvido."""
        ticket = self._ticket(target=T0, resolved_at=T0 - timedelta(minutes=5))
        assert evaluate_breach(ticket, T0 + timedelta(days=1)) is False

        late = self._ticket(target=T0, resolved_at=T0 + timedelta(minutes=5))
        assert evaluate_breach(late, T0) is True

    @pytest.mark.parametrize("target_offset", [0, 30, 240])
    def test_violacao_e_monotonica_no_tempo(self, target_offset):
        """Deve continuar violado para todo instante posterior à primeira violação."""
        ticket = self._ticket(target=T0 + timedelta(minutes=target_offset))
        moments = [T0 + timedelta(minutes=m) for m in range(0, 301, 5)]

        results = [evaluate_breach(ticket, moment) for moment in moments]

        first_breach = results.index(True)
        assert not any(results[:first_breach])
        assert all(results[first_breach:])
        assert moments[first_breach] > ticket.sla_target_at


class TestSLAEntity:
    """Testes para SLAEntity."""

    def test_cria_configuracao(self):
        sla = SLAEntity.create("area-1", 15, 240, T0)

        assert sla.response_time_minutes == 15
        assert sla.resolution_time_minutes == 240

        event = sla.pull_domain_events()[0]
        assert isinstance(event, SLAConfiguredEvent)
        assert event.event_type == "sla.created"

    def test_limites(self):
        sla = SLAEntity.create("area-1", 0, 10080, T0)
        assert sla.resolution_time_minutes == 10080

    @pytest.mark.parametrize("response,resolution,field", [
        (-1, 60, "response_time_minutes"),
        (10, 10081, "resolution_time_minutes"),
        (10.5, 60, "response_time_minutes"),
        (True, 60, "response_time_minutes"),
        ("10", 60, "response_time_minutes"),
        (120, 60, "response_time_minutes"),
    ])
    def test_tempos_invalidos(self, response, resolution, field):
        with pytest.raises(ValidationError) as exc_info:
            SLAEntity.create("area-1", response, resolution, T0)
        assert exc_info.value.field == field

    def test_atualiza_no_lugar(self):
        sla = SLAEntity.create("area-1", 15, 240, T0)
        sla.pull_domain_events()
        later = T0 + timedelta(days=1)

        sla.update(30, 480, later)

        assert sla.resolution_time_minutes == 480
        assert sla.updated_at == later
        assert sla.created_at == T0
        assert isinstance(sla.pull_domain_events()[0], SLAUpdatedEvent)

    def test_atualizacao_invalida_nao_altera(self):
        sla = SLAEntity.create("area-1", 15, 240, T0)

        with pytest.raises(ValidationError):
            sla.update(500, 240, T0)

        assert sla.response_time_minutes == 15
