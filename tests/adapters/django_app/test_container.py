"""
Testes do container de Dependency Injection.
"""

import pytest

from src.adapters.django_app.events.publishers import (
    InMemoryEventPublisher,
    LoggingEventPublisher,
)
from src.adapters.django_app.shared.unit_of_work import DjangoUnitOfWork, InMemoryUnitOfWork
from src.config.container import get_container, get_testing_container, reset_container
from src.core.tickets.dtos import CreateAreaInputDTO
from src.core.tickets.use_cases import CreateTicketService


@pytest.fixture(autouse=True)
def clean_container():
    reset_container()
    yield
    reset_container()


class TestContainer:
    """Testes para get_container / reset_container."""

    def test_singleton_global(self):
        assert get_container() is get_container()

    def test_reset_cria_novo(self):
        first = get_container()
        reset_container()
        assert get_container() is not first

    def test_modo_sync_usa_logging(self):
        container = get_container()

        assert isinstance(container.event_publisher(), LoggingEventPublisher)
        assert isinstance(container.unit_of_work(), DjangoUnitOfWork)

    def test_services_recebem_dependencias(self):
        service = get_container().create_ticket_service()
        assert isinstance(service, CreateTicketService)


class TestTestingContainer:

    def test_infraestrutura_em_memoria(self):
        container = get_testing_container()

        assert isinstance(container.unit_of_work(), InMemoryUnitOfWork)
        assert isinstance(container.event_publisher(), InMemoryEventPublisher)
        assert container.ticket_repository() is container.ticket_repository()

    def test_eventos_chegam_ao_publisher_apos_commit(self):
        container = get_testing_container()

        area = container.create_area_service().execute(
            CreateAreaInputDTO(name="Centro de Material", actor_id="adm-01")
        )

        events = container.event_publisher().get_events_by_type('area.created')
        assert [e.aggregate_id for e in events] == [area.id]
