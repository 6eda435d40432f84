"""
Use Cases (Application Services) do Domínio de Tickets.

Este módulo contém os casos de uso da aplicação, que orquestram
a lógica de negócio coordenando entidades, repositórios e eventos.

Use Cases implementados:
- CreateAreaService / UpdateAreaService / DeactivateAreaService
- CreateTicketService: Abre ticket com prazo de SLA da área
- AssignTicketService: Atribui ticket a agente
- TransitionTicketStatusService: Muda status via máquina de estados
- CloseTicketService: Fecha ticket (passando por RESOLVED se preciso)
- ConfigureWorkflowService / ConfigureSLAService
- CheckSLABreachesService: Marca tickets vencidos (tarefa periódica)
- RecordAuditService: Registra auditoria avulsa
- ComputeSLAMetricsService: Métricas de conformidade
- GetTicketService / ListTicketsService / GetTicketAuditTrailService /
  ListAreasService / GetWorkflowService: Consultas (sem transação)
- ExportTicketHistoryService: Ticket + auditoria num único documento

Fluxo padrão de escrita:
    with self.uow:
        repo.save(entity)                      # 1. persistir
        audit_repo.save(entry)                 # 2. auditar
        self.uow.publish_events(               # 3. enfileirar eventos
            entity.pull_domain_events()
        )
    # UoW publica os eventos após o commit

Princípios:
- Um Use Case = Uma operação de negócio
- Dependências injetadas (DI)
- Sem lógica de infraestrutura
"""

import logging
from typing import List, Optional

from src.core.shared.interfaces import Clock, SystemClock, UnitOfWork
from src.core.shared.exceptions import (
    AlreadyClosedError,
    BusinessRuleViolationError,
    ConcurrentModificationError,
    EntityNotFoundError,
    InvalidTransitionError,
    MissingRequiredFieldError,
    ValidationError,
)

from .audit import AuditAction, AuditTrailEntry, SYSTEM_ACTOR, diff
from .dtos import (
    AreaOutputDTO,
    AssignTicketInputDTO,
    AuditEntryOutputDTO,
    CloseTicketInputDTO,
    ConfigureSLAInputDTO,
    ConfigureWorkflowInputDTO,
    CreateAreaInputDTO,
    CreateTicketInputDTO,
    DeactivateAreaInputDTO,
    ListTicketsQueryDTO,
    MetricsQueryDTO,
    PaginatedResultDTO,
    RecordAuditInputDTO,
    SLAOutputDTO,
    TicketHistoryOutputDTO,
    TicketOutputDTO,
    TransitionTicketStatusInputDTO,
    UpdateAreaInputDTO,
    WorkflowOutputDTO,
)
from .entities import ACTIVE_STATUSES, AreaEntity, TicketEntity, TicketPriority, TicketStatus
from .metrics import SLAMetrics, SLAMetricsAggregator
from .ports import (
    AreaRepository,
    AuditRepository,
    SLARepository,
    TicketRepository,
    WorkflowRepository,
)
from .sla import DEFAULT_RESOLUTION_TIME_MINUTES, SLAEntity
from .state_machine import TicketStateMachine, TransitionPolicy
from .workflows import WorkflowEntity


logger = logging.getLogger(__name__)


def _get_ticket(ticket_repo: TicketRepository, ticket_id: str) -> TicketEntity:
    ticket = ticket_repo.find_by_id(ticket_id)
    if not ticket:
        raise EntityNotFoundError(
            f"Ticket {ticket_id} não encontrado",
            entity_type="Ticket",
            entity_id=ticket_id
        )
    return ticket


def _get_area(area_repo: AreaRepository, area_id: str) -> AreaEntity:
    area = area_repo.find_by_id(area_id)
    if not area:
        raise EntityNotFoundError(
            f"Área {area_id} não encontrada",
            entity_type="Area",
            entity_id=area_id
        )
    return area


def _policy_for(workflow_repo: WorkflowRepository, area_id: str) -> TransitionPolicy:
    return TransitionPolicy.for_workflow(workflow_repo.find_latest_by_area_id(area_id))


# =============================================================================
# Áreas
# =============================================================================

class CreateAreaService:
    """
    Use Case: Criar área.

    Example:
        service = CreateAreaService(area_repo, audit_repo, uow, clock)
        output = service.execute(CreateAreaInputDTO(name="UTI", actor_id="admin"))
    """

    def __init__(
        self,
        area_repo: AreaRepository,
        audit_repo: AuditRepository,
        uow: UnitOfWork,
        clock: Optional[Clock] = None,
    ):
        self.area_repo = area_repo
        self.audit_repo = audit_repo
        self.uow = uow
        self.clock = clock or SystemClock()

    def execute(self, input_dto: CreateAreaInputDTO) -> AreaOutputDTO:
        """
        Raises:
            ValidationError: Se nome inválido
        """
        now = self.clock.now()

        with self.uow:
            area = AreaEntity.create(input_dto.name, input_dto.description, now)
            self.area_repo.save(area)

            self.audit_repo.save(
                AuditTrailEntry.create(
                    actor_id=input_dto.actor_id or SYSTEM_ACTOR,
                    action=AuditAction.CREATE,
                    entity_type="Area",
                    entity_id=area.id,
                    now=now,
                    changes=diff("name", None, area.name),
                )
            )
            self.uow.publish_events(area.pull_domain_events())

        return AreaOutputDTO.from_entity(area)


class UpdateAreaService:
    """
    Use Case: Atualizar nome e descrição de uma área.

    Regras:
    - Nome segue as mesmas validações da criação
    - Nome não pode repetir o de outra área
    """

    def __init__(
        self,
        area_repo: AreaRepository,
        audit_repo: AuditRepository,
        uow: UnitOfWork,
        clock: Optional[Clock] = None,
    ):
        self.area_repo = area_repo
        self.audit_repo = audit_repo
        self.uow = uow
        self.clock = clock or SystemClock()

    def execute(self, input_dto: UpdateAreaInputDTO) -> AreaOutputDTO:
        """
        Raises:
            EntityNotFoundError: Se área não existe
            ValidationError: Se nome inválido
            BusinessRuleViolationError: Se nome já usado por outra área
        """
        now = self.clock.now()

        with self.uow:
            area = _get_area(self.area_repo, input_dto.area_id)
            before = (area.name, area.description)

            area.update(input_dto.name, input_dto.description, now)

            for other in self.area_repo.list():
                if other.id != area.id and other.name.lower() == area.name.lower():
                    raise BusinessRuleViolationError(
                        f"Já existe uma área com o nome {area.name}",
                        rule="area_nome_duplicado"
                    )

            self.area_repo.save(area)

            changes = {}
            if before[0] != area.name:
                changes.update(diff("name", before[0], area.name))
            if before[1] != area.description:
                changes.update(diff("description", before[1], area.description))

            self.audit_repo.save(
                AuditTrailEntry.create(
                    actor_id=input_dto.actor_id or SYSTEM_ACTOR,
                    action=AuditAction.UPDATE,
                    entity_type="Area",
                    entity_id=area.id,
                    now=now,
                    changes=changes,
                )
            )
            self.uow.publish_events(area.pull_domain_events())

        return AreaOutputDTO.from_entity(area)


class DeactivateAreaService:
    """
    Use Case: Desativar área (soft delete).

    Regras:
    - Área com tickets ativos não pode ser desativada
    - Desativar duas vezes é erro
    """

    def __init__(
        self,
        area_repo: AreaRepository,
        ticket_repo: TicketRepository,
        audit_repo: AuditRepository,
        uow: UnitOfWork,
        clock: Optional[Clock] = None,
    ):
        self.area_repo = area_repo
        self.ticket_repo = ticket_repo
        self.audit_repo = audit_repo
        self.uow = uow
        self.clock = clock or SystemClock()

    def execute(self, input_dto: DeactivateAreaInputDTO) -> AreaOutputDTO:
        """
        Executa desativação.

        Raises:
            EntityNotFoundError: Se área não existe
            BusinessRuleViolationError: Se há tickets ativos
            AlreadyDeactivatedError: Se área já inativa
        """
        now = self.clock.now()

        with self.uow:
            area = _get_area(self.area_repo, input_dto.area_id)

            active_tickets = self.ticket_repo.count_by_area_and_status(
                area.id, ACTIVE_STATUSES
            )
            if active_tickets > 0:
                raise BusinessRuleViolationError(
                    f"Não é possível desativar área com {active_tickets} ticket(s) "
                    "ativo(s). Resolva ou redistribua antes.",
                    rule="area_com_tickets_ativos"
                )

            area.deactivate(now)
            self.area_repo.save(area)

            self.audit_repo.save(
                AuditTrailEntry.create(
                    actor_id=input_dto.actor_id,
                    action=AuditAction.DEACTIVATE,
                    entity_type="Area",
                    entity_id=area.id,
                    now=now,
                    changes=diff("is_active", True, False),
                    metadata={"reason": input_dto.reason},
                )
            )
            self.uow.publish_events(area.pull_domain_events())

        return AreaOutputDTO.from_entity(area)


# =============================================================================
# Tickets
# =============================================================================

class CreateTicketService:
    """
    Use Case: Abrir ticket.

    Fluxo:
    1. Validar área (existe e está ativa)
    2. Ler SLA da área (0 minutos se não configurado)
    3. Criar entidade com prazo de SLA
    4. Persistir, auditar e enfileirar ticket.created

    Example:
        service = CreateTicketService(ticket_repo, area_repo, sla_repo, audit_repo, uow, clock)
        output = service.execute(CreateTicketInputDTO(
            title="Bomba de infusão travada",
            description="Bomba do leito 12 não aceita programação",
            requester_id="enf-01",
            area_id=area_id,
            priority="URGENT",
        ))
    """

    def __init__(
        self,
        ticket_repo: TicketRepository,
        area_repo: AreaRepository,
        sla_repo: SLARepository,
        audit_repo: AuditRepository,
        uow: UnitOfWork,
        clock: Optional[Clock] = None,
    ):
        """
        Inicializa service com dependências injetadas.

        Args:
            ticket_repo: Repositório de tickets
            area_repo: Repositório de áreas
            sla_repo: Repositório de SLA
            audit_repo: Trilha de auditoria
            uow: Unit of Work para transação atômica
            clock: Fonte de tempo
        """
        self.ticket_repo = ticket_repo
        self.area_repo = area_repo
        self.sla_repo = sla_repo
        self.audit_repo = audit_repo
        self.uow = uow
        self.clock = clock or SystemClock()

    def execute(self, input_dto: CreateTicketInputDTO) -> TicketOutputDTO:
        """
        Executa abertura de ticket em transação atômica.

        Raises:
            ValidationError: Se dados inválidos
            EntityNotFoundError: Se área não existe
            BusinessRuleViolationError: Se área inativa
        """
        try:
            priority = TicketPriority.from_string(input_dto.priority)
        except ValueError:
            raise ValidationError(
                f"Prioridade inválida: {input_dto.priority}",
                field="priority"
            )

        now = self.clock.now()

        with self.uow:
            area = _get_area(self.area_repo, input_dto.area_id)
            if not area.is_active:
                raise BusinessRuleViolationError(
                    f"Área {area.name} está inativa e não aceita tickets",
                    rule="area_inativa"
                )

            sla = self.sla_repo.find_by_area_id(area.id)
            resolution_minutes = (
                sla.resolution_time_minutes if sla else DEFAULT_RESOLUTION_TIME_MINUTES
            )

            ticket = TicketEntity.create(
                title=input_dto.title,
                description=input_dto.description,
                requester_id=input_dto.requester_id,
                area_id=area.id,
                priority=priority,
                now=now,
                resolution_time_minutes=resolution_minutes,
            )
            self.ticket_repo.save(ticket)

            self.audit_repo.save(
                AuditTrailEntry.create(
                    actor_id=input_dto.actor_id or input_dto.requester_id,
                    action=AuditAction.CREATE,
                    entity_type="Ticket",
                    entity_id=ticket.id,
                    ticket_id=ticket.id,
                    now=now,
                    changes=diff("status", None, ticket.status.value),
                    metadata={
                        "priority": ticket.priority.value,
                        "area_id": ticket.area_id,
                        "sla_resolution_minutes": resolution_minutes,
                    },
                )
            )
            self.uow.publish_events(ticket.pull_domain_events())

        return TicketOutputDTO.from_entity(ticket)


class AssignTicketService:
    """
    Use Case: Atribuir ticket a um agente.

    Ticket em OPEN também passa para ASSIGNED quando a política da
    área permite essa transição.
    """

    def __init__(
        self,
        ticket_repo: TicketRepository,
        workflow_repo: WorkflowRepository,
        audit_repo: AuditRepository,
        uow: UnitOfWork,
        clock: Optional[Clock] = None,
        state_machine: Optional[TicketStateMachine] = None,
    ):
        self.ticket_repo = ticket_repo
        self.workflow_repo = workflow_repo
        self.audit_repo = audit_repo
        self.uow = uow
        self.clock = clock or SystemClock()
        self.state_machine = state_machine or TicketStateMachine()

    def execute(self, input_dto: AssignTicketInputDTO) -> TicketOutputDTO:
        """
        Executa atribuição de ticket.

        Raises:
            EntityNotFoundError: Se ticket não existe
            AlreadyClosedError: Se ticket fechado
            ValidationError: Se agente vazio
        """
        now = self.clock.now()

        with self.uow:
            ticket = _get_ticket(self.ticket_repo, input_dto.ticket_id)
            previous_assignee = ticket.assignee_id
            previous_status = ticket.status

            ticket.assign(input_dto.assignee_id, now)

            policy = _policy_for(self.workflow_repo, ticket.area_id)
            if (
                ticket.status == TicketStatus.OPEN
                and self.state_machine.can_transition(ticket, TicketStatus.ASSIGNED, policy)
            ):
                self.state_machine.transition(ticket, TicketStatus.ASSIGNED, policy, now)

            self.ticket_repo.save(ticket)

            changes = diff("assignee_id", previous_assignee, ticket.assignee_id)
            if ticket.status != previous_status:
                changes.update(diff("status", previous_status.value, ticket.status.value))

            self.audit_repo.save(
                AuditTrailEntry.create(
                    actor_id=input_dto.actor_id,
                    action=AuditAction.ASSIGN,
                    entity_type="Ticket",
                    entity_id=ticket.id,
                    ticket_id=ticket.id,
                    now=now,
                    changes=changes,
                )
            )
            self.uow.publish_events(ticket.pull_domain_events())

        return TicketOutputDTO.from_entity(ticket)


class TransitionTicketStatusService:
    """
    Use Case: Transicionar status do ticket.

    Fluxo:
    1. Buscar ticket (e conferir versão esperada, se informada)
    2. Aplicar resolution_summary, se enviado
    3. Validar e aplicar a transição com o workflow vigente da área
    4. Persistir, auditar e enfileirar eventos
    """

    def __init__(
        self,
        ticket_repo: TicketRepository,
        workflow_repo: WorkflowRepository,
        audit_repo: AuditRepository,
        uow: UnitOfWork,
        clock: Optional[Clock] = None,
        state_machine: Optional[TicketStateMachine] = None,
    ):
        self.ticket_repo = ticket_repo
        self.workflow_repo = workflow_repo
        self.audit_repo = audit_repo
        self.uow = uow
        self.clock = clock or SystemClock()
        self.state_machine = state_machine or TicketStateMachine()

    def execute(self, input_dto: TransitionTicketStatusInputDTO) -> TicketOutputDTO:
        """
        Executa transição.

        Raises:
            EntityNotFoundError: Se ticket não existe
            ConcurrentModificationError: Se versão esperada difere
            AlreadyClosedError / InvalidTransitionError /
            MissingRequiredFieldError / ValidationError: Regras da máquina de estados
        """
        now = self.clock.now()

        with self.uow:
            ticket = _get_ticket(self.ticket_repo, input_dto.ticket_id)

            if (
                input_dto.expected_version is not None
                and input_dto.expected_version != ticket.version
            ):
                raise ConcurrentModificationError(
                    ticket.id,
                    expected_version=input_dto.expected_version,
                    actual_version=ticket.version,
                )

            previous_status = ticket.status
            changes = {}

            if input_dto.resolution_summary is not None:
                if ticket.is_closed:
                    raise AlreadyClosedError(ticket.id)
                previous_summary = ticket.resolution_summary
                ticket.set_resolution_summary(input_dto.resolution_summary)
                changes.update(
                    diff("resolution_summary", previous_summary, ticket.resolution_summary)
                )

            workflow = self.workflow_repo.find_latest_by_area_id(ticket.area_id)
            policy = TransitionPolicy.for_workflow(workflow)
            target = self.state_machine.transition(ticket, input_dto.status, policy, now)

            self.ticket_repo.save(ticket)

            changes.update(diff("status", previous_status.value, target.value))
            if target == TicketStatus.RESOLVED:
                changes.update(diff("sla_breached", None, ticket.sla_breached))

            self.audit_repo.save(
                AuditTrailEntry.create(
                    actor_id=input_dto.actor_id,
                    action=AuditAction.TRANSITION,
                    entity_type="Ticket",
                    entity_id=ticket.id,
                    ticket_id=ticket.id,
                    now=now,
                    changes=changes,
                    metadata={"workflow_version": workflow.version if workflow else None},
                )
            )
            self.uow.publish_events(ticket.pull_domain_events())

        return TicketOutputDTO.from_entity(ticket)


class CloseTicketService:
    """
    Use Case: Fechar ticket.

    Regras:
    - Ticket CLOSED → AlreadyClosedError
    - Ticket CANCELLED → InvalidTransitionError
    - Ticket fora de RESOLVED passa por RESOLVED automaticamente
      (com os efeitos de resolução e avaliação de SLA), exigindo os
      campos obrigatórios de RESOLVED mas sem checar o grafo
    - RESOLVED → CLOSED segue a política da área
    """

    def __init__(
        self,
        ticket_repo: TicketRepository,
        workflow_repo: WorkflowRepository,
        audit_repo: AuditRepository,
        uow: UnitOfWork,
        clock: Optional[Clock] = None,
        state_machine: Optional[TicketStateMachine] = None,
    ):
        self.ticket_repo = ticket_repo
        self.workflow_repo = workflow_repo
        self.audit_repo = audit_repo
        self.uow = uow
        self.clock = clock or SystemClock()
        self.state_machine = state_machine or TicketStateMachine()

    def execute(self, input_dto: CloseTicketInputDTO) -> TicketOutputDTO:
        """
        Executa fechamento de ticket.

        Raises:
            EntityNotFoundError: Se ticket não existe
            AlreadyClosedError: Se ticket já fechado
            InvalidTransitionError: Se ticket cancelado ou workflow não
                permite RESOLVED → CLOSED
            MissingRequiredFieldError: Se faltam campos para RESOLVED ou CLOSED
            ValidationError: Se resumo menor que 10 caracteres
        """
        now = self.clock.now()

        with self.uow:
            ticket = _get_ticket(self.ticket_repo, input_dto.ticket_id)

            if ticket.status == TicketStatus.CLOSED:
                raise AlreadyClosedError(ticket.id)
            if ticket.status == TicketStatus.CANCELLED:
                raise InvalidTransitionError(
                    TicketStatus.CANCELLED.value, TicketStatus.CLOSED.value
                )

            previous_status = ticket.status
            ticket.set_resolution_summary(input_dto.resolution_summary)

            policy = _policy_for(self.workflow_repo, ticket.area_id)

            auto_resolved = ticket.status != TicketStatus.RESOLVED
            if auto_resolved:
                missing = self.state_machine.missing_fields(
                    ticket, TicketStatus.RESOLVED, policy
                )
                if missing:
                    raise MissingRequiredFieldError(
                        missing[0], status=TicketStatus.RESOLVED.value
                    )
                ticket.apply_transition(TicketStatus.RESOLVED, now)

            self.state_machine.transition(
                ticket,
                TicketStatus.CLOSED,
                policy,
                now,
                notify_requester=input_dto.notify_requester,
            )

            self.ticket_repo.save(ticket)

            changes = diff("status", previous_status.value, ticket.status.value)
            changes.update(diff("resolution_summary", None, ticket.resolution_summary))
            self.audit_repo.save(
                AuditTrailEntry.create(
                    actor_id=input_dto.actor_id,
                    action=AuditAction.CLOSE,
                    entity_type="Ticket",
                    entity_id=ticket.id,
                    ticket_id=ticket.id,
                    now=now,
                    changes=changes,
                    metadata={
                        "auto_resolved": auto_resolved,
                        "sla_breached": ticket.sla_breached,
                        "notify_requester": input_dto.notify_requester,
                    },
                )
            )
            self.uow.publish_events(ticket.pull_domain_events())

        return TicketOutputDTO.from_entity(ticket)


# =============================================================================
# Configuração
# =============================================================================

class ConfigureWorkflowService:
    """
    Use Case: Configurar workflow da área.

    Cada chamada gera uma nova versão; versões anteriores são mantidas.
    """

    def __init__(
        self,
        area_repo: AreaRepository,
        workflow_repo: WorkflowRepository,
        audit_repo: AuditRepository,
        uow: UnitOfWork,
        clock: Optional[Clock] = None,
    ):
        self.area_repo = area_repo
        self.workflow_repo = workflow_repo
        self.audit_repo = audit_repo
        self.uow = uow
        self.clock = clock or SystemClock()

    def execute(self, input_dto: ConfigureWorkflowInputDTO) -> WorkflowOutputDTO:
        """
        Raises:
            EntityNotFoundError: Se área não existe
            ValidationError / UnknownStateError: Se configuração inválida
        """
        now = self.clock.now()

        with self.uow:
            area = _get_area(self.area_repo, input_dto.area_id)
            previous = self.workflow_repo.find_latest_by_area_id(area.id)

            workflow = WorkflowEntity.define(
                area_id=area.id,
                transitions=input_dto.transitions,
                required_fields=input_dto.required_fields,
                now=now,
                previous=previous,
            )
            self.workflow_repo.save(workflow)

            changes = diff(
                "transitions",
                previous.transitions_as_lists() if previous else None,
                workflow.transitions_as_lists(),
            )
            changes.update(diff(
                "required_fields",
                previous.required_fields_as_lists() if previous else None,
                workflow.required_fields_as_lists(),
            ))

            self.audit_repo.save(
                AuditTrailEntry.create(
                    actor_id=input_dto.actor_id,
                    action=(
                        AuditAction.WORKFLOW_UPDATED if previous
                        else AuditAction.WORKFLOW_CREATED
                    ),
                    entity_type="Workflow",
                    entity_id=workflow.id,
                    now=now,
                    changes=changes,
                    metadata={"area_id": area.id, "version": workflow.version},
                )
            )
            self.uow.publish_events(workflow.pull_domain_events())

        return WorkflowOutputDTO.from_entity(workflow)


class ConfigureSLAService:
    """
    Use Case: Configurar SLA da área.

    Cria na primeira vez e altera no lugar depois. Tickets existentes
    mantêm o prazo calculado na abertura.
    """

    def __init__(
        self,
        area_repo: AreaRepository,
        sla_repo: SLARepository,
        audit_repo: AuditRepository,
        uow: UnitOfWork,
        clock: Optional[Clock] = None,
    ):
        self.area_repo = area_repo
        self.sla_repo = sla_repo
        self.audit_repo = audit_repo
        self.uow = uow
        self.clock = clock or SystemClock()

    def execute(self, input_dto: ConfigureSLAInputDTO) -> SLAOutputDTO:
        now = self.clock.now()

        with self.uow:
            area = _get_area(self.area_repo, input_dto.area_id)
            sla = self.sla_repo.find_by_area_id(area.id)

            if sla is None:
                sla = SLAEntity.create(
                    area.id,
                    input_dto.response_time_minutes,
                    input_dto.resolution_time_minutes,
                    now,
                )
                action = AuditAction.SLA_CREATED
                changes = diff("response_time_minutes", None, sla.response_time_minutes)
                changes.update(
                    diff("resolution_time_minutes", None, sla.resolution_time_minutes)
                )
            else:
                changes = diff(
                    "response_time_minutes",
                    sla.response_time_minutes,
                    input_dto.response_time_minutes,
                )
                changes.update(diff(
                    "resolution_time_minutes",
                    sla.resolution_time_minutes,
                    input_dto.resolution_time_minutes,
                ))
                sla.update(
                    input_dto.response_time_minutes,
                    input_dto.resolution_time_minutes,
                    now,
                )
                action = AuditAction.SLA_UPDATED

            self.sla_repo.save(sla)
            self.audit_repo.save(
                AuditTrailEntry.create(
                    actor_id=input_dto.actor_id,
                    action=action,
                    entity_type="SLA",
                    entity_id=sla.id,
                    now=now,
                    changes=changes,
                    metadata={"area_id": area.id},
                )
            )
            self.uow.publish_events(sla.pull_domain_events())

        return SLAOutputDTO.from_entity(sla)


# =============================================================================
# SLA e auditoria
# =============================================================================

class CheckSLABreachesService:
    """
    Use Case: Marcar violações de SLA de tickets em aberto.

    Executado periodicamente (Celery beat). Cada ticket é gravado em
    sua própria transação; conflito de versão em um ticket não impede
    os demais e ele será reavaliado na próxima execução.
    """

    def __init__(
        self,
        ticket_repo: TicketRepository,
        audit_repo: AuditRepository,
        uow: UnitOfWork,
        clock: Optional[Clock] = None,
    ):
        self.ticket_repo = ticket_repo
        self.audit_repo = audit_repo
        self.uow = uow
        self.clock = clock or SystemClock()

    def execute(self) -> List[str]:
        """
        Returns:
            IDs dos tickets marcados nesta execução
        """
        now = self.clock.now()
        flagged = []

        for ticket in self.ticket_repo.find_overdue(now):
            try:
                with self.uow:
                    if not ticket.check_sla_breach(now):
                        continue
                    self.ticket_repo.save(ticket)
                    self.audit_repo.save(
                        AuditTrailEntry.create(
                            actor_id=SYSTEM_ACTOR,
                            action=AuditAction.SLA_BREACHED,
                            entity_type="Ticket",
                            entity_id=ticket.id,
                            ticket_id=ticket.id,
                            now=now,
                            changes=diff("sla_breached", False, True),
                            metadata={"sla_target_at": ticket.sla_target_at.isoformat()},
                        )
                    )
                    self.uow.publish_events(ticket.pull_domain_events())
            except ConcurrentModificationError as e:
                logger.warning(f"Ticket {ticket.id} alterado durante verificação de SLA: {e}")
                continue

            flagged.append(ticket.id)

        if flagged:
            logger.info(f"{len(flagged)} ticket(s) com SLA violado")
        return flagged


class RecordAuditService:
    """Use Case: Registrar entrada de auditoria avulsa."""

    def __init__(
        self,
        audit_repo: AuditRepository,
        uow: UnitOfWork,
        clock: Optional[Clock] = None,
    ):
        self.audit_repo = audit_repo
        self.uow = uow
        self.clock = clock or SystemClock()

    def execute(self, input_dto: RecordAuditInputDTO) -> AuditEntryOutputDTO:
        with self.uow:
            entry = AuditTrailEntry.create(
                actor_id=input_dto.actor_id,
                action=input_dto.action,
                entity_type=input_dto.entity_type,
                entity_id=input_dto.entity_id,
                now=self.clock.now(),
                changes=input_dto.changes,
                metadata=input_dto.metadata,
                ticket_id=input_dto.ticket_id,
                ip_address=input_dto.ip_address,
                user_agent=input_dto.user_agent,
            )
            self.audit_repo.save(entry)

        return AuditEntryOutputDTO.from_entity(entry)


class ComputeSLAMetricsService:
    """
    Use Case: Métricas de SLA.

    Read-only: não usa Unit of Work.
    """

    def __init__(
        self,
        ticket_repo: TicketRepository,
        aggregator: Optional[SLAMetricsAggregator] = None,
    ):
        self.ticket_repo = ticket_repo
        self.aggregator = aggregator or SLAMetricsAggregator()

    def execute(self, query: Optional[MetricsQueryDTO] = None) -> SLAMetrics:
        """
        Raises:
            ValidationError: Se date_from > date_to
        """
        query = query or MetricsQueryDTO()
        if query.date_from and query.date_to and query.date_from > query.date_to:
            raise ValidationError(
                "Data inicial deve ser anterior à data final",
                field="date_from"
            )

        tickets = self.ticket_repo.find_by_filters(
            area_id=query.area_id,
            date_from=query.date_from,
            date_to=query.date_to,
        )
        return self.aggregator.compute(tickets)


# =============================================================================
# Consultas
# =============================================================================

class GetTicketService:
    """Use Case: Obter ticket por ID."""

    def __init__(self, ticket_repo: TicketRepository):
        self.ticket_repo = ticket_repo

    def execute(self, ticket_id: str) -> TicketOutputDTO:
        """
        Raises:
            EntityNotFoundError: Se ticket não existe
        """
        return TicketOutputDTO.from_entity(_get_ticket(self.ticket_repo, ticket_id))


class ListTicketsService:
    """
    Use Case: Listar tickets com filtros e paginação.

    Read-only: não usa Unit of Work.
    """

    MAX_PER_PAGE = 100

    def __init__(self, ticket_repo: TicketRepository):
        self.ticket_repo = ticket_repo

    def execute(self, query: Optional[ListTicketsQueryDTO] = None) -> PaginatedResultDTO:
        """
        Args:
            query: Filtros (opcional)

        Returns:
            Página de tickets (mais recentes primeiro)

        Raises:
            ValidationError: Se status ou paginação inválidos
        """
        query = query or ListTicketsQueryDTO()

        status = None
        if query.status:
            try:
                status = TicketStatus.from_string(query.status)
            except ValueError:
                raise ValidationError(f"Status inválido: {query.status}", field="status")

        if query.page < 1:
            raise ValidationError("Página deve ser maior que zero", field="page")
        per_page = min(max(query.per_page, 1), self.MAX_PER_PAGE)

        tickets = self.ticket_repo.list(
            status=status,
            area_id=query.area_id,
            assignee_id=query.assignee_id,
            requester_id=query.requester_id,
        )

        start = (query.page - 1) * per_page
        page_items = tickets[start:start + per_page]

        return PaginatedResultDTO(
            items=[TicketOutputDTO.from_entity(t) for t in page_items],
            total=len(tickets),
            page=query.page,
            per_page=per_page,
        )


class GetTicketAuditTrailService:
    """Use Case: Histórico de auditoria de um ticket."""

    def __init__(self, ticket_repo: TicketRepository, audit_repo: AuditRepository):
        self.ticket_repo = ticket_repo
        self.audit_repo = audit_repo

    def execute(self, ticket_id: str) -> List[AuditEntryOutputDTO]:
        """
        Raises:
            EntityNotFoundError: Se ticket não existe
        """
        _get_ticket(self.ticket_repo, ticket_id)
        return [
            AuditEntryOutputDTO.from_entity(entry)
            for entry in self.audit_repo.find_by_ticket_id(ticket_id)
        ]


class ListAreasService:
    """Use Case: Listar áreas, ordenadas por nome."""

    def __init__(self, area_repo: AreaRepository):
        self.area_repo = area_repo

    def execute(self, only_active: bool = False) -> List[AreaOutputDTO]:
        return [
            AreaOutputDTO.from_entity(area)
            for area in self.area_repo.list(only_active=only_active)
        ]


class ExportTicketHistoryService:
    """
    Use Case: Exportar o histórico completo de um ticket.

    Junta o estado atual do ticket e a trilha de auditoria num único
    documento, pronto para serializar em JSON.
    """

    def __init__(
        self,
        ticket_repo: TicketRepository,
        audit_repo: AuditRepository,
        clock: Optional[Clock] = None,
    ):
        self.ticket_repo = ticket_repo
        self.audit_repo = audit_repo
        self.clock = clock or SystemClock()

    def execute(self, ticket_id: str) -> TicketHistoryOutputDTO:
        """
        Raises:
            EntityNotFoundError: Se ticket não existe
        """
        ticket = _get_ticket(self.ticket_repo, ticket_id)
        trail = [
            AuditEntryOutputDTO.from_entity(entry)
            for entry in self.audit_repo.find_by_ticket_id(ticket_id)
        ]
        return TicketHistoryOutputDTO(
            ticket=TicketOutputDTO.from_entity(ticket),
            audit_trail=trail,
            exported_at=self.clock.now(),
        )


class GetWorkflowService:
    """Use Case: Workflow vigente (e histórico) de uma área."""

    def __init__(self, area_repo: AreaRepository, workflow_repo: WorkflowRepository):
        self.area_repo = area_repo
        self.workflow_repo = workflow_repo

    def execute(self, area_id: str) -> Optional[WorkflowOutputDTO]:
        """
        Returns:
            Versão vigente ou None se a área usa o grafo padrão

        Raises:
            EntityNotFoundError: Se área não existe
        """
        _get_area(self.area_repo, area_id)
        workflow = self.workflow_repo.find_latest_by_area_id(area_id)
        return WorkflowOutputDTO.from_entity(workflow) if workflow else None

    def history(self, area_id: str) -> List[WorkflowOutputDTO]:
        """Todas as versões, da mais antiga para a mais nova."""
        _get_area(self.area_repo, area_id)
        return [
            WorkflowOutputDTO.from_entity(w)
            for w in self.workflow_repo.find_by_area_id(area_id)
        ]
