"""
Configuração pytest para testes com Django.

Este arquivo configura:
- Django settings para testes (SQLite em memória)
- Container DI com infraestrutura em memória
- Fixtures de repositórios Django
"""

from datetime import datetime, timezone

import pytest

T0 = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)


def pytest_configure(config):
    """Configura Django antes dos testes."""
    import django
    from django.conf import settings

    if not settings.configured:
        settings.configure(
            DEBUG=True,
            SECRET_KEY='test-secret-key',
            DATABASES={
                'default': {
                    'ENGINE': 'django.db.backends.sqlite3',
                    'NAME': ':memory:',
                }
            },
            INSTALLED_APPS=[
                'django.contrib.contenttypes',
                'django.contrib.auth',
                'src.adapters.django_app.tickets',
            ],
            ROOT_URLCONF='src.adapters.django_app.tickets.urls',
            DEFAULT_AUTO_FIELD='django.db.models.BigAutoField',
            USE_TZ=True,
            TIME_ZONE='America/Sao_Paulo',
            EVENT_PUBLISHER_MODE='sync',
            EVENT_RETENTION_DAYS=90,
        )
        django.setup()


# =============================================================================
# Container
# =============================================================================

@pytest.fixture
def container():
    """Container com repositórios, UoW e publisher em memória."""
    from src.config.container import get_testing_container
    return get_testing_container()


@pytest.fixture
def api_container(container):
    """Faz as API views usarem o container em memória."""
    from unittest.mock import patch

    with patch(
        'src.adapters.django_app.tickets.api_views.get_container',
        return_value=container,
    ):
        yield container


# =============================================================================
# Repositórios Django
# =============================================================================

@pytest.fixture
def ticket_repo(db):
    from src.adapters.django_app.tickets.repositories import DjangoTicketRepository
    return DjangoTicketRepository()


@pytest.fixture
def area_repo(db):
    from src.adapters.django_app.tickets.repositories import DjangoAreaRepository
    return DjangoAreaRepository()


@pytest.fixture
def saved_area(area_repo):
    """Área persistida no banco."""
    from src.core.tickets.entities import AreaEntity

    area = AreaEntity.create("Engenharia Clínica", now=T0)
    area.pull_domain_events()
    area_repo.save(area)
    return area


@pytest.fixture
def ticket_factory(saved_area):
    """Factory de TicketEntity ainda não persistido (version 0)."""
    from src.core.tickets.entities import TicketEntity, TicketPriority

    def create_ticket(**kwargs):
        defaults = {
            'title': 'Bomba de infusão com alarme',
            'description': 'Leito 12 da UTI',
            'requester_id': 'enf-01',
            'area_id': saved_area.id,
            'priority': TicketPriority.HIGH,
            'now': T0,
            'resolution_time_minutes': 60,
        }
        defaults.update(kwargs)
        ticket = TicketEntity.create(**defaults)
        ticket.pull_domain_events()
        return ticket

    return create_ticket
