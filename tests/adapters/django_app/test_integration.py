"""
Testes de integração da pilha Django completa.

Request HTTP → View → Use Case → Repositório Django → SQLite,
com DjangoUnitOfWork persistindo eventos no Event Store.
"""

import json
from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from dependency_injector import providers
from django.test import RequestFactory

from src.adapters.django_app.events.publishers import InMemoryEventPublisher
from src.adapters.django_app.tickets import api_views
from src.adapters.django_app.tickets.models import (
    AuditTrailModel,
    DomainEventModel,
    TicketModel,
)
from src.config.container import Container
from src.core.shared.interfaces import FixedClock

T0 = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)

pytestmark = pytest.mark.django_db


@pytest.fixture
def clock():
    return FixedClock(T0)


@pytest.fixture
def publisher():
    return InMemoryEventPublisher()


@pytest.fixture
def django_container(db, clock, publisher):
    """Container real (repositórios Django) com relógio controlado."""
    container = Container()
    container.config.from_dict({'event_publisher_mode': 'sync'})
    container.clock.override(providers.Object(clock))
    container.event_publisher.override(providers.Object(publisher))

    with patch(
        'src.adapters.django_app.tickets.api_views.get_container',
        return_value=container,
    ):
        yield container


@pytest.fixture
def client(django_container):
    rf = RequestFactory()

    def send(method, view_class, data=None, **kwargs):
        if method == 'get':
            request = rf.get('/api/', data or {})
        else:
            request = getattr(rf, method)(
                '/api/', data=json.dumps(data or {}), content_type='application/json'
            )
        response = view_class.as_view()(request, **kwargs)
        return response.status_code, json.loads(response.content)

    return send


class TestTicketLifecycle:
    """Ciclo completo de um chamado persistido no banco."""

    def test_sla_estourado_e_fechamento(self, client, django_container, clock, publisher):
        status, body = client('post', api_views.AreaAPIListView, {'name': 'Hemodinâmica'})
        assert status == 201
        area_id = body['data']['id']

        status, _ = client('put', api_views.AreaAPISLAView, {
            'response_time_minutes': 30,
            'resolution_time_minutes': 240,
        }, pk=area_id)
        assert status == 200

        status, body = client('post', api_views.TicketAPIListView, {
            'title': 'Angiógrafo sem imagem',
            'area_id': area_id,
            'priority': 'URGENT',
            'actor_id': 'hemo-01',
        })
        assert status == 201
        ticket_id = body['data']['id']
        assert body['data']['sla_target_at'] == '2024-01-01T12:00:00+00:00'

        clock.advance(minutes=10)
        status, body = client(
            'post', api_views.TicketAPIAssignView, {'assignee_id': 'tec-03'}, pk=ticket_id
        )
        assert status == 200
        assert body['data']['version'] == 2

        clock.advance(minutes=290)
        breached = django_container.check_sla_breaches_service().execute()
        assert breached == [ticket_id]
        assert TicketModel.objects.get(id=ticket_id).sla_breached is True

        clock.advance(minutes=5)
        status, body = client('post', api_views.TicketAPICloseView, {
            'resolution_summary': 'Placa de aquisição substituída',
        }, pk=ticket_id)
        assert status == 200
        assert body['data']['status'] == 'CLOSED'
        assert body['data']['sla_breached'] is True

        status, body = client('get', api_views.SLAMetricsAPIView, {'area_id': area_id})
        assert body['data']['sla_breached'] == 1
        assert body['data']['compliance_percentage'] == 0.0
        assert body['data']['avg_first_response_time'] == 10.0

        actions = list(
            AuditTrailModel.objects
            .filter(ticket_id=ticket_id)
            .order_by('occurred_at')
            .values_list('action', flat=True)
        )
        assert actions[0] == 'CREATE'
        assert 'SLA_BREACHED' in actions
        assert actions[-1] == 'CLOSE'

        stored_types = set(
            DomainEventModel.objects
            .filter(aggregate_id=ticket_id)
            .values_list('event_type', flat=True)
        )
        assert {'ticket.created', 'ticket.sla_breached', 'ticket.closed'} <= stored_types
        assert len(publisher.get_events_by_type('ticket.closed')) == 1

    def test_area_com_tickets_ativos_nao_desativa(self, client):
        _, body = client('post', api_views.AreaAPIListView, {'name': 'Endoscopia'})
        area_id = body['data']['id']
        client('post', api_views.TicketAPIListView, {
            'title': 'Processadora parada',
            'area_id': area_id,
        })

        status, body = client('post', api_views.AreaAPIDeactivateView, {}, pk=area_id)

        assert status == 422
        assert body['meta']['rule'] == 'area_com_tickets_ativos'

    def test_transicao_invalida_nao_persiste(self, client):
        _, body = client('post', api_views.AreaAPIListView, {'name': 'Oncologia'})
        _, body = client('post', api_views.TicketAPIListView, {
            'title': 'Capela de fluxo laminar',
            'area_id': body['data']['id'],
        })
        ticket_id = body['data']['id']

        status, _ = client(
            'post', api_views.TicketAPITransitionView, {'status': 'CLOSED'}, pk=ticket_id
        )

        assert status == 422
        stored = TicketModel.objects.get(id=ticket_id)
        assert stored.status == 'OPEN'
        assert stored.version == 1


class TestAreaMaintenance:
    """Atualização e listagem de áreas persistidas."""

    def test_renomeia_e_lista(self, client):
        _, body = client('post', api_views.AreaAPIListView, {'name': 'Hemoterapia'})
        area_id = body['data']['id']
        client('post', api_views.AreaAPIListView, {'name': 'Banco de Leite'})

        status, body = client('put', api_views.AreaAPIDetailView, {
            'name': 'Agência Transfusional',
            'actor_id': 'adm-01',
        }, pk=area_id)
        assert status == 200

        status, body = client('get', api_views.AreaAPIListView)
        assert [area['name'] for area in body['data']] == [
            'Agência Transfusional', 'Banco de Leite',
        ]

        entry = AuditTrailModel.objects.filter(entity_id=area_id, action='UPDATE').get()
        assert entry.changes['name'] == {'from': 'Hemoterapia', 'to': 'Agência Transfusional'}

    def test_nome_duplicado_nao_viola_unicidade(self, client):
        _, body = client('post', api_views.AreaAPIListView, {'name': 'Hemoterapia'})
        client('post', api_views.AreaAPIListView, {'name': 'Banco de Leite'})

        status, body = client(
            'put', api_views.AreaAPIDetailView, {'name': 'Banco de Leite'}, pk=body['data']['id']
        )

        assert status == 422
        assert body['meta']['rule'] == 'area_nome_duplicado'
