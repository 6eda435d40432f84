"""
Dependency Injection Container.

Configura e gerencia todas as dependências da aplicação.
Usa dependency-injector para lazy-loading e injeção automática.

Padrões:
- Singleton: Uma instância para toda app (repositories, publisher, clock)
- Factory: Nova instância por chamada (services, UoW)
- Configuration: Valores vindos de settings

Adapters Django são importados sob demanda para que o Core
continue importável sem settings configurado.
"""

from importlib import import_module
from typing import Callable, Optional

from dependency_injector import containers, providers

from src.core.shared.interfaces import FixedClock, SystemClock
from src.core.tickets import use_cases
from src.core.tickets.ports import (
    InMemoryAreaRepository,
    InMemoryAuditRepository,
    InMemorySLARepository,
    InMemoryTicketRepository,
    InMemoryWorkflowRepository,
)

_REPOSITORIES = 'src.adapters.django_app.tickets.repositories'
_UNIT_OF_WORK = 'src.adapters.django_app.shared.unit_of_work'
_PUBLISHERS = 'src.adapters.django_app.events.publishers'


def _lazy(module_path: str, name: str) -> Callable:
    """Factory que importa o adapter apenas na primeira construção."""

    def build(*args, **kwargs):
        return getattr(import_module(module_path), name)(*args, **kwargs)

    build.__name__ = name
    return build


class Container(containers.DeclarativeContainer):
    """
    Container principal de Dependency Injection.

    Organização:
    - Configuration: settings (EVENT_PUBLISHER_MODE)
    - Infrastructure: Clock, Event Publisher, Event Store
    - Repositories: Persistência
    - Unit of Work: Transações
    - Services: Use Cases

    Example:
        container = get_container()
        service = container.create_ticket_service()
        result = service.execute(input_dto)
    """

    # =========================================================================
    # Configuration
    # =========================================================================

    config = providers.Configuration()

    # =========================================================================
    # Infrastructure
    # =========================================================================

    clock = providers.Singleton(SystemClock)

    event_publisher = providers.Singleton(
        _lazy(_PUBLISHERS, 'get_event_publisher'),
        mode=config.event_publisher_mode,
    )

    event_store = providers.Singleton(_lazy(_REPOSITORIES, 'DjangoEventStore'))

    # =========================================================================
    # Repositories (Singleton - stateless)
    # =========================================================================

    ticket_repository = providers.Singleton(_lazy(_REPOSITORIES, 'DjangoTicketRepository'))
    area_repository = providers.Singleton(_lazy(_REPOSITORIES, 'DjangoAreaRepository'))
    workflow_repository = providers.Singleton(_lazy(_REPOSITORIES, 'DjangoWorkflowRepository'))
    sla_repository = providers.Singleton(_lazy(_REPOSITORIES, 'DjangoSLARepository'))
    audit_repository = providers.Singleton(_lazy(_REPOSITORIES, 'DjangoAuditRepository'))

    # =========================================================================
    # Unit of Work (Factory - nova instância por operação)
    # =========================================================================

    unit_of_work = providers.Factory(
        _lazy(_UNIT_OF_WORK, 'DjangoUnitOfWork'),
        event_publisher=event_publisher,
        event_store=event_store,
    )

    # =========================================================================
    # Services / Use Cases - Áreas e configuração
    # =========================================================================

    create_area_service = providers.Factory(
        use_cases.CreateAreaService,
        area_repo=area_repository,
        audit_repo=audit_repository,
        uow=unit_of_work,
        clock=clock,
    )

    update_area_service = providers.Factory(
        use_cases.UpdateAreaService,
        area_repo=area_repository,
        audit_repo=audit_repository,
        uow=unit_of_work,
        clock=clock,
    )

    deactivate_area_service = providers.Factory(
        use_cases.DeactivateAreaService,
        area_repo=area_repository,
        ticket_repo=ticket_repository,
        audit_repo=audit_repository,
        uow=unit_of_work,
        clock=clock,
    )

    configure_workflow_service = providers.Factory(
        use_cases.ConfigureWorkflowService,
        area_repo=area_repository,
        workflow_repo=workflow_repository,
        audit_repo=audit_repository,
        uow=unit_of_work,
        clock=clock,
    )

    configure_sla_service = providers.Factory(
        use_cases.ConfigureSLAService,
        area_repo=area_repository,
        sla_repo=sla_repository,
        audit_repo=audit_repository,
        uow=unit_of_work,
        clock=clock,
    )

    get_workflow_service = providers.Factory(
        use_cases.GetWorkflowService,
        area_repo=area_repository,
        workflow_repo=workflow_repository,
    )

    # =========================================================================
    # Services / Use Cases - Tickets
    # =========================================================================

    create_ticket_service = providers.Factory(
        use_cases.CreateTicketService,
        ticket_repo=ticket_repository,
        area_repo=area_repository,
        sla_repo=sla_repository,
        audit_repo=audit_repository,
        uow=unit_of_work,
        clock=clock,
    )

    assign_ticket_service = providers.Factory(
        use_cases.AssignTicketService,
        ticket_repo=ticket_repository,
        workflow_repo=workflow_repository,
        audit_repo=audit_repository,
        uow=unit_of_work,
        clock=clock,
    )

    transition_ticket_status_service = providers.Factory(
        use_cases.TransitionTicketStatusService,
        ticket_repo=ticket_repository,
        workflow_repo=workflow_repository,
        audit_repo=audit_repository,
        uow=unit_of_work,
        clock=clock,
    )

    close_ticket_service = providers.Factory(
        use_cases.CloseTicketService,
        ticket_repo=ticket_repository,
        workflow_repo=workflow_repository,
        audit_repo=audit_repository,
        uow=unit_of_work,
        clock=clock,
    )

    check_sla_breaches_service = providers.Factory(
        use_cases.CheckSLABreachesService,
        ticket_repo=ticket_repository,
        audit_repo=audit_repository,
        uow=unit_of_work,
        clock=clock,
    )

    record_audit_service = providers.Factory(
        use_cases.RecordAuditService,
        audit_repo=audit_repository,
        uow=unit_of_work,
        clock=clock,
    )

    # Leitura (sem UoW)
    get_ticket_service = providers.Factory(
        use_cases.GetTicketService,
        ticket_repo=ticket_repository,
    )

    list_tickets_service = providers.Factory(
        use_cases.ListTicketsService,
        ticket_repo=ticket_repository,
    )

    get_ticket_audit_trail_service = providers.Factory(
        use_cases.GetTicketAuditTrailService,
        ticket_repo=ticket_repository,
        audit_repo=audit_repository,
    )

    export_ticket_history_service = providers.Factory(
        use_cases.ExportTicketHistoryService,
        ticket_repo=ticket_repository,
        audit_repo=audit_repository,
        clock=clock,
    )

    list_areas_service = providers.Factory(
        use_cases.ListAreasService,
        area_repo=area_repository,
    )

    compute_sla_metrics_service = providers.Factory(
        use_cases.ComputeSLAMetricsService,
        ticket_repo=ticket_repository,
    )


# =============================================================================
# Testing Container
# =============================================================================

class TestingContainer(containers.DeclarativeContainer):
    """
    Providers de infraestrutura em memória para testes.

    Sobrepõe o Container principal por nome de provider.

    Example:
        container = Container()
        container.override(TestingContainer())
        service = container.create_ticket_service()
    """

    clock = providers.Singleton(FixedClock)

    event_publisher = providers.Singleton(_lazy(_PUBLISHERS, 'InMemoryEventPublisher'))

    ticket_repository = providers.Singleton(InMemoryTicketRepository)
    area_repository = providers.Singleton(InMemoryAreaRepository)
    workflow_repository = providers.Singleton(InMemoryWorkflowRepository)
    sla_repository = providers.Singleton(InMemorySLARepository)
    audit_repository = providers.Singleton(InMemoryAuditRepository)

    unit_of_work = providers.Factory(
        _lazy(_UNIT_OF_WORK, 'InMemoryUnitOfWork'),
        event_publisher=event_publisher,
    )


# =============================================================================
# Container Global (Singleton)
# =============================================================================

_container: Optional[Container] = None


def get_container() -> Container:
    """
    Retorna instância global do container.

    Cria se não existir, lendo EVENT_PUBLISHER_MODE do settings.

    Returns:
        Container configurado
    """
    global _container

    if _container is None:
        from django.conf import settings

        _container = Container()
        _container.config.from_dict({
            'event_publisher_mode': getattr(settings, 'EVENT_PUBLISHER_MODE', 'sync'),
        })

    return _container


def get_testing_container() -> Container:
    """Container principal com infraestrutura em memória."""
    container = Container()
    container.override(TestingContainer())
    return container


def reset_container() -> None:
    """
    Reset do container (para testes).

    Permite criar novo container limpo.
    """
    global _container
    _container = None
