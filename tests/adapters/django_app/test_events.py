"""
Testes dos publicadores de eventos e handlers Celery.

As tasks são chamadas diretamente (execução síncrona) e as
chamadas .delay são substituídas por mocks.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from src.adapters.django_app.events import handlers
from src.adapters.django_app.events.publishers import (
    CeleryEventPublisher,
    CompositeEventPublisher,
    InMemoryEventPublisher,
    LoggingEventPublisher,
    get_event_publisher,
)
from src.adapters.django_app.shared.unit_of_work import InMemoryUnitOfWork
from src.core.tickets.entities import TicketEntity, TicketPriority

T0 = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def created_event():
    ticket = TicketEntity.create(
        title="Desfibrilador sem carga",
        description="Carrinho de parada do PS",
        requester_id="ps-02",
        area_id="area-eng",
        priority=TicketPriority.URGENT,
        now=T0,
        resolution_time_minutes=30,
    )
    return ticket.pull_domain_events()[0]


class TestPublishers:
    """Testes para os publicadores."""

    def test_factory(self):
        assert isinstance(get_event_publisher('celery'), CeleryEventPublisher)
        assert isinstance(get_event_publisher('CELERY'), CeleryEventPublisher)
        assert isinstance(get_event_publisher('sync'), LoggingEventPublisher)
        assert isinstance(get_event_publisher(None), LoggingEventPublisher)

    def test_in_memory(self, created_event):
        publisher = InMemoryEventPublisher()

        publisher.publish_all([created_event])

        assert publisher.get_events_by_type('ticket.created') == [created_event]
        publisher.clear()
        assert publisher.published_events == []

    def test_handler_com_erro_nao_interrompe(self, created_event):
        """Deve seguir para os próximos handlers quando um falha."""
        publisher = LoggingEventPublisher()
        received = []

        def broken(event):
            raise RuntimeError("smtp fora do ar")

        publisher.register_handler('ticket.created', broken)
        publisher.register_handler('*', received.append)

        publisher.publish(created_event)

        assert received == [created_event]

    def test_composite_isola_falhas(self, created_event):
        failing = MagicMock()
        failing.publish_all.side_effect = RuntimeError("broker indisponível")
        memory = InMemoryEventPublisher()

        CompositeEventPublisher([failing, memory]).publish_all([created_event])

        assert memory.published_events == [created_event]

    def test_celery_envia_para_dispatcher(self, created_event):
        with patch.object(handlers, 'dispatch_domain_event') as dispatcher:
            CeleryEventPublisher(also_log=False).publish(created_event)

        dispatcher.delay.assert_called_once_with('ticket.created', created_event.to_dict())

    def test_celery_falha_de_broker_e_logada(self, created_event):
        with patch.object(handlers, 'dispatch_domain_event') as dispatcher:
            dispatcher.delay.side_effect = ConnectionError("amqp recusou conexão")

            CeleryEventPublisher().publish(created_event)

        dispatcher.delay.assert_called_once()


class TestInMemoryUnitOfWork:

    def test_publica_apos_commit(self, created_event):
        publisher = InMemoryEventPublisher()

        with InMemoryUnitOfWork(event_publisher=publisher) as uow:
            uow.publish_events([created_event])
            assert publisher.published_events == []

        assert uow.committed
        assert publisher.published_events == [created_event]

    def test_rollback_descarta(self, created_event):
        publisher = InMemoryEventPublisher()

        with pytest.raises(ValueError):
            with InMemoryUnitOfWork(event_publisher=publisher) as uow:
                uow.publish_events([created_event])
                raise ValueError("erro")

        assert uow.rolled_back
        assert publisher.published_events == []


class TestDispatcher:
    """Testes para dispatch_domain_event."""

    def test_roteia_para_handler(self, created_event):
        handler = MagicMock()
        data = created_event.to_dict()

        with patch.dict(handlers.EVENT_HANDLERS, {'ticket.created': handler}):
            handlers.dispatch_domain_event('ticket.created', data)

        handler.delay.assert_called_once_with(data)

    def test_evento_sem_handler(self):
        with patch.dict(handlers.EVENT_HANDLERS, {}, clear=True):
            handlers.dispatch_domain_event('ticket.desconhecido', {})

    def test_todos_os_eventos_de_dominio_tem_handler(self):
        expected = {
            'ticket.created', 'ticket.assigned', 'ticket.status_changed',
            'ticket.closed', 'ticket.sla_breached',
            'area.created', 'area.updated', 'area.deactivated',
            'workflow.created', 'workflow.updated',
            'sla.created', 'sla.updated',
        }
        assert expected <= set(handlers.EVENT_HANDLERS)


class TestTicketHandlers:
    """Testes para handlers de tickets."""

    def test_ticket_urgente_notifica_area(self, created_event):
        with patch.object(handlers, 'notify_area_team') as notify, \
                patch.object(handlers, 'record_metric') as metric:
            handlers.handle_ticket_created(created_event.to_dict())

        notify.delay.assert_called_once()
        assert notify.delay.call_args.kwargs['priority'] == 'high'
        assert notify.delay.call_args.kwargs['area_id'] == 'area-eng'
        metric.delay.assert_called_once()

    def test_ticket_baixa_prioridade_so_registra_metrica(self):
        event_data = {
            'aggregate_id': 'ticket-1',
            'data': {'priority': 'LOW', 'area_id': 'area-eng', 'title': 'Lâmpada'},
        }

        with patch.object(handlers, 'notify_area_team') as notify, \
                patch.object(handlers, 'record_metric') as metric:
            handlers.handle_ticket_created(event_data)

        notify.delay.assert_not_called()
        metric.delay.assert_called_once()

    def test_fechamento_respeita_notify_requester(self):
        event_data = {
            'aggregate_id': 'ticket-123456789',
            'data': {'requester_id': 'enf-01', 'notify_requester': False},
        }

        with patch.object(handlers, 'notify_user') as notify, \
                patch.object(handlers, 'record_metric'):
            handlers.handle_ticket_closed(event_data)

        notify.delay.assert_not_called()

    def test_fechamento_notifica_solicitante(self):
        event_data = {
            'aggregate_id': 'ticket-123456789',
            'data': {
                'requester_id': 'enf-01',
                'resolution_summary': 'Equipamento substituído',
            },
        }

        with patch.object(handlers, 'notify_user') as notify, \
                patch.object(handlers, 'record_metric'):
            handlers.handle_ticket_closed(event_data)

        assert notify.delay.call_args.kwargs['user_id'] == 'enf-01'


class TestScheduledTasks:
    """Testes para tarefas do Celery Beat."""

    def test_check_sla_breaches(self):
        container = MagicMock()
        container.check_sla_breaches_service.return_value.execute.return_value = ['t1', 't2']

        with patch('src.config.container.get_container', return_value=container):
            result = handlers.check_sla_breaches()

        assert result == 2

    def test_relatorio_diario(self):
        metrics = MagicMock()
        metrics.to_dict.return_value = {'total_tickets': 3}
        container = MagicMock()
        container.compute_sla_metrics_service.return_value.execute.return_value = metrics

        with patch('src.config.container.get_container', return_value=container):
            report = handlers.generate_daily_sla_report()

        assert report['total_tickets'] == 3
        assert 'generated_at' in report
