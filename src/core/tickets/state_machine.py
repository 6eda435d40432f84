"""
Máquina de Estados de Tickets.

Decide se uma transição de status é legal e aplica seus efeitos.

Componentes:
- TransitionPolicy: De onde vem o grafo de transições
  - DefaultTransitionPolicy: Grafo embutido (área sem workflow)
  - WorkflowTransitionPolicy: Workflow da área, com fallback para o
    grafo embutido em estados que o workflow não declara
- TicketStateMachine: Aplica as verificações na ordem abaixo

Ordem das verificações:
    1. Ticket CLOSED → AlreadyClosedError
    2. Destino desconhecido → ValidationError
    3. Destino fora do conjunto permitido → InvalidTransitionError
    4. Campo obrigatório vazio → MissingRequiredFieldError

Example:
    policy = TransitionPolicy.for_workflow(workflow_repo.find_latest_by_area_id(area_id))
    TicketStateMachine().transition(ticket, "IN_PROGRESS", policy, clock.now())
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional, Tuple, Union
import re

from src.core.shared.events import utcnow
from src.core.shared.exceptions import (
    ValidationError,
    InvalidTransitionError,
    MissingRequiredFieldError,
    AlreadyClosedError,
)

from .entities import TicketEntity, TicketStatus
from .workflows import WorkflowEntity


DEFAULT_TRANSITIONS: Dict[str, Tuple[str, ...]] = {
    TicketStatus.OPEN.value: (TicketStatus.ASSIGNED.value, TicketStatus.CANCELLED.value),
    TicketStatus.ASSIGNED.value: (TicketStatus.IN_PROGRESS.value, TicketStatus.CANCELLED.value),
    TicketStatus.IN_PROGRESS.value: (TicketStatus.RESOLVED.value, TicketStatus.CANCELLED.value),
    TicketStatus.RESOLVED.value: (TicketStatus.CLOSED.value,),
    TicketStatus.CLOSED.value: (),
    TicketStatus.CANCELLED.value: (),
}

# Exigências que valem com ou sem workflow
BUILT_IN_REQUIRED_FIELDS: Dict[str, Tuple[str, ...]] = {
    TicketStatus.CLOSED.value: ("resolution_summary",),
}

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def to_snake_case(name: str) -> str:
    """Converte "resolutionSummary" em "resolution_summary"."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


class TransitionPolicy(ABC):
    """
    Fonte do grafo de transições e dos campos obrigatórios.

    Use for_workflow() para obter a política certa para uma área.
    """

    @abstractmethod
    def allowed_targets(self, current: str) -> Tuple[str, ...]:
        """Destinos permitidos a partir do estado atual."""
        raise NotImplementedError

    @abstractmethod
    def required_fields(self, target: str) -> Tuple[str, ...]:
        """Campos exigidos para entrar no estado de destino."""
        raise NotImplementedError

    @staticmethod
    def for_workflow(workflow: Optional[WorkflowEntity]) -> "TransitionPolicy":
        """
        Política para o workflow vigente de uma área.

        Args:
            workflow: Versão vigente ou None se a área não tem workflow

        Returns:
            WorkflowTransitionPolicy ou DefaultTransitionPolicy
        """
        if workflow is None:
            return DefaultTransitionPolicy()
        return WorkflowTransitionPolicy(workflow)


class DefaultTransitionPolicy(TransitionPolicy):
    """Grafo embutido, sem campos obrigatórios extras."""

    def allowed_targets(self, current: str) -> Tuple[str, ...]:
        return DEFAULT_TRANSITIONS.get(current, ())

    def required_fields(self, target: str) -> Tuple[str, ...]:
        return ()


class WorkflowTransitionPolicy(TransitionPolicy):
    """
    Grafo do workflow da área.

    Estados sem entrada no workflow usam o grafo embutido.
    """

    def __init__(self, workflow: WorkflowEntity):
        self.workflow = workflow
        self._fallback = DefaultTransitionPolicy()

    def allowed_targets(self, current: str) -> Tuple[str, ...]:
        if self.workflow.has_state(current):
            return self.workflow.allowed_from(current)
        return self._fallback.allowed_targets(current)

    def required_fields(self, target: str) -> Tuple[str, ...]:
        return self.workflow.required_fields_for(target)


class TicketStateMachine:
    """
    Valida e aplica transições de status.

    Stateless: uma instância pode ser compartilhada entre use cases.
    """

    def transition(
        self,
        ticket: TicketEntity,
        target: Union[TicketStatus, str],
        policy: Optional[TransitionPolicy] = None,
        now: Optional[datetime] = None,
        notify_requester: bool = True,
    ) -> TicketStatus:
        """
        Executa a transição do ticket para o status de destino.

        Args:
            ticket: Ticket a ser transicionado
            target: Status de destino (enum ou nome)
            policy: Política da área (default: grafo embutido)
            now: Instante da transição
            notify_requester: Repassado ao evento ticket.closed

        Returns:
            Status de destino aplicado

        Raises:
            AlreadyClosedError: Se ticket já fechado
            ValidationError: Se destino não é um status conhecido
            InvalidTransitionError: Se destino não permitido (status inalterado)
            MissingRequiredFieldError: Se falta campo obrigatório
        """
        if ticket.status == TicketStatus.CLOSED:
            raise AlreadyClosedError(ticket.id)

        target_status = self._parse_target(target)
        policy = policy or DefaultTransitionPolicy()

        if target_status.value not in policy.allowed_targets(ticket.status.value):
            raise InvalidTransitionError(ticket.status.value, target_status.value)

        missing = self.missing_fields(ticket, target_status, policy)
        if missing:
            raise MissingRequiredFieldError(missing[0], status=target_status.value)

        ticket.apply_transition(target_status, now or utcnow(), notify_requester)
        return target_status

    def can_transition(
        self,
        ticket: TicketEntity,
        target: Union[TicketStatus, str],
        policy: Optional[TransitionPolicy] = None,
    ) -> bool:
        """Verifica legalidade no grafo, sem efeitos colaterais."""
        if ticket.status == TicketStatus.CLOSED:
            return False
        try:
            target_status = self._parse_target(target)
        except ValidationError:
            return False
        policy = policy or DefaultTransitionPolicy()
        return target_status.value in policy.allowed_targets(ticket.status.value)

    def available_transitions(
        self,
        ticket: TicketEntity,
        policy: Optional[TransitionPolicy] = None,
    ) -> List[TicketStatus]:
        """Destinos alcançáveis a partir do status atual."""
        if ticket.status == TicketStatus.CLOSED:
            return []
        policy = policy or DefaultTransitionPolicy()
        return [
            TicketStatus(target)
            for target in policy.allowed_targets(ticket.status.value)
        ]

    def missing_fields(
        self,
        ticket: TicketEntity,
        target: TicketStatus,
        policy: TransitionPolicy,
    ) -> List[str]:
        """
        Campos exigidos pelo destino que estão vazios no ticket.

        Nomes em camelCase ou snake_case. A ordem do workflow é mantida,
        seguida das exigências embutidas.
        """
        required = list(policy.required_fields(target.value))
        for name in BUILT_IN_REQUIRED_FIELDS.get(target.value, ()):
            if name not in required and name not in map(to_snake_case, required):
                required.append(name)

        return [name for name in required if self._is_empty(ticket, name)]

    @staticmethod
    def _is_empty(ticket: TicketEntity, name: str) -> bool:
        value = getattr(ticket, to_snake_case(name), None)
        if value is None:
            return True
        if isinstance(value, str) and not value.strip():
            return True
        return False

    @staticmethod
    def _parse_target(target: Union[TicketStatus, str]) -> TicketStatus:
        try:
            return TicketStatus.from_string(target)
        except ValueError:
            raise ValidationError(f"Status inválido: {target}", field="status")
