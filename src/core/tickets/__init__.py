"""
Domínio de Tickets - Service Desk Hospitalar.

Este módulo contém toda a lógica de negócio relacionada ao ciclo de
vida de tickets, incluindo:
- Entidades (TicketEntity, AreaEntity, TicketStatus, TicketPriority)
- Máquina de estados e políticas de transição
- Workflow configurável por área (versionado)
- Política de SLA e métricas de conformidade
- Trilha de auditoria
- Use Cases, DTOs e Ports

Características do Domínio:
- Prazo de SLA calculado pela configuração da área na abertura
- Transições validadas pelo workflow da área (ou grafo padrão)
- Eventos bufferizados no agregado e publicados após commit
"""

from .entities import TicketEntity, AreaEntity, TicketStatus, TicketPriority, ACTIVE_STATUSES
from .sla import SLAEntity, compute_target, evaluate_breach
from .workflows import WorkflowEntity, validate_workflow
from .state_machine import (
    TicketStateMachine,
    TransitionPolicy,
    DefaultTransitionPolicy,
    WorkflowTransitionPolicy,
)
from .audit import AuditTrailEntry, AuditAction
from .metrics import SLAMetrics, SLAMetricsAggregator
from .ports import (
    TicketRepository,
    AreaRepository,
    WorkflowRepository,
    SLARepository,
    AuditRepository,
)
from .use_cases import (
    CreateAreaService,
    UpdateAreaService,
    DeactivateAreaService,
    CreateTicketService,
    AssignTicketService,
    TransitionTicketStatusService,
    CloseTicketService,
    ConfigureWorkflowService,
    ConfigureSLAService,
    CheckSLABreachesService,
    RecordAuditService,
    ComputeSLAMetricsService,
    GetTicketService,
    ListTicketsService,
    GetTicketAuditTrailService,
    ListAreasService,
    ExportTicketHistoryService,
    GetWorkflowService,
)

__all__ = [
    # Entities
    "TicketEntity",
    "AreaEntity",
    "TicketStatus",
    "TicketPriority",
    "ACTIVE_STATUSES",
    "SLAEntity",
    "WorkflowEntity",
    "AuditTrailEntry",
    "AuditAction",
    # Domain services
    "compute_target",
    "evaluate_breach",
    "validate_workflow",
    "TicketStateMachine",
    "TransitionPolicy",
    "DefaultTransitionPolicy",
    "WorkflowTransitionPolicy",
    "SLAMetrics",
    "SLAMetricsAggregator",
    # Ports
    "TicketRepository",
    "AreaRepository",
    "WorkflowRepository",
    "SLARepository",
    "AuditRepository",
    # Use Cases
    "CreateAreaService",
    "UpdateAreaService",
    "DeactivateAreaService",
    "CreateTicketService",
    "AssignTicketService",
    "TransitionTicketStatusService",
    "CloseTicketService",
    "ConfigureWorkflowService",
    "ConfigureSLAService",
    "CheckSLABreachesService",
    "RecordAuditService",
    "ComputeSLAMetricsService",
    "GetTicketService",
    "ListTicketsService",
    "GetTicketAuditTrailService",
    "ListAreasService",
    "ExportTicketHistoryService",
    "GetWorkflowService",
]
