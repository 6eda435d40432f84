"""
Entidades do Domínio de Tickets.

Este módulo define as entidades de domínio que encapsulam
regras de negócio relacionadas a tickets do service desk hospitalar.

Entidades:
- TicketEntity: Agregado principal do domínio
- AreaEntity: Área (departamento) dona de SLA e workflow
- TicketStatus: Estados possíveis de um ticket
- TicketPriority: Níveis de prioridade

Regras de Negócio Encapsuladas:
- Validação de dados na criação
- Prazo de SLA calculado a partir da configuração da área
- Efeitos colaterais de transição (timestamps, flag de SLA)
- Verificação periódica de violação de SLA

Note:
    A *legalidade* de uma transição é decidida por TicketStateMachine
    (state_machine.py). A entidade só aplica os efeitos de uma
    transição já validada.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import ClassVar, FrozenSet, Optional
import uuid

from src.core.shared.events import AggregateRoot, utcnow
from src.core.shared.exceptions import (
    ValidationError,
    AlreadyClosedError,
    AlreadyDeactivatedError,
)

from .events import (
    TicketCreatedEvent,
    TicketAssignedEvent,
    TicketStatusChangedEvent,
    TicketClosedEvent,
    TicketSLABreachedEvent,
    AreaCreatedEvent,
    AreaUpdatedEvent,
    AreaDeactivatedEvent,
)
from .sla import compute_target, evaluate_breach


class TicketStatus(Enum):
    """
    Estados possíveis de um ticket.

    Fluxo padrão (sem workflow configurado na área):
        OPEN → ASSIGNED → IN_PROGRESS → RESOLVED → CLOSED
          ↓        ↓            ↓
          └────────┴────────────┴──→ CANCELLED

    CLOSED e CANCELLED são terminais.
    """

    OPEN = "OPEN"
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"

    @classmethod
    def from_string(cls, value: str) -> "TicketStatus":
        """
        Converte string para enum.

        Aceita o nome com espaços ou hífens ("in progress", "in-progress").

        Args:
            value: Valor string

        Returns:
            TicketStatus correspondente

        Raises:
            ValueError: Se valor inválido
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Status inválido: {value}")

        normalized = value.strip().upper().replace(" ", "_").replace("-", "_")
        try:
            return cls[normalized]
        except KeyError:
            raise ValueError(f"Status inválido: {value}")

    @property
    def is_terminal(self) -> bool:
        """Estados sem saída no fluxo padrão."""
        return self in (TicketStatus.CLOSED, TicketStatus.CANCELLED)


# Status que bloqueiam a desativação de uma área
ACTIVE_STATUSES: FrozenSet[TicketStatus] = frozenset(
    status for status in TicketStatus if not status.is_terminal
)


class TicketPriority(Enum):
    """Níveis de prioridade do ticket."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"

    @classmethod
    def from_string(cls, value: str) -> "TicketPriority":
        """
        Converte string para enum.

        Args:
            value: Nome da prioridade (case insensitive)

        Returns:
            TicketPriority correspondente

        Raises:
            ValueError: Se valor inválido
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Prioridade inválida: {value}")

        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(f"Prioridade inválida: {value}")


@dataclass
class TicketEntity(AggregateRoot):
    """
    Entidade de Domínio: Ticket.

    Agregado principal do service desk. Nasce OPEN e só muda de
    status por transições validadas pela máquina de estados.

    Invariantes:
    - status é sempre um membro de TicketStatus
    - first_response_at é definido no máximo uma vez
    - sla_breached reflete resolved_at > sla_target_at após resolução
    - Ticket nunca é removido

    Attributes:
        id: Identificador único (UUID)
        title: Título do ticket
        description: Descrição do problema
        status: Estado atual
        priority: Nível de prioridade
        requester_id: Usuário que abriu o ticket
        assignee_id: Agente responsável
        area_id: Área responsável
        created_at / updated_at: Timestamps (UTC)
        first_response_at: Primeira saída de OPEN
        resolved_at: Entrada em RESOLVED
        closed_at: Entrada em CLOSED
        sla_target_at: Prazo de resolução
        sla_breached: Prazo violado
        resolution_summary: Resumo da solução (obrigatório para fechar)
        version: Controle de concorrência otimista (0 = nunca persistido)

    Example:
        ticket = TicketEntity.create(
            title="Monitor da UTI sem sinal",
            description="Monitor do leito 4 não exibe sinais vitais",
            requester_id="user-1",
            area_id="area-uti",
            priority=TicketPriority.HIGH,
            now=clock.now(),
            resolution_time_minutes=240,
        )
    """

    # Identificação
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    # Dados principais
    title: str = ""
    description: str = ""

    # Estado
    status: TicketStatus = TicketStatus.OPEN
    priority: TicketPriority = TicketPriority.MEDIUM

    # Relacionamentos
    requester_id: str = ""
    assignee_id: Optional[str] = None
    area_id: str = ""

    # Timestamps
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    first_response_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None

    # SLA
    sla_target_at: Optional[datetime] = None
    sla_breached: bool = False

    resolution_summary: Optional[str] = None
    version: int = 0

    # Constantes de validação
    TITLE_MIN_LENGTH: ClassVar[int] = 3
    TITLE_MAX_LENGTH: ClassVar[int] = 200
    DESCRIPTION_MAX_LENGTH: ClassVar[int] = 5000
    RESOLUTION_SUMMARY_MIN_LENGTH: ClassVar[int] = 10

    @classmethod
    def create(
        cls,
        title: str,
        description: str,
        requester_id: str,
        area_id: str,
        priority: TicketPriority = TicketPriority.MEDIUM,
        now: Optional[datetime] = None,
        resolution_time_minutes: int = 0,
    ) -> "TicketEntity":
        """
        Factory method para abrir ticket com validações.

        Args:
            title: Título (3 a 200 caracteres)
            description: Descrição (até 5000 caracteres)
            requester_id: Solicitante
            area_id: Área responsável
            priority: Prioridade (default: MEDIUM)
            now: Instante de criação (default: agora, UTC)
            resolution_time_minutes: Tempo de resolução do SLA da área

        Returns:
            Nova instância com evento ticket.created pendente

        Raises:
            ValidationError: Se dados de entrada inválidos
        """
        cls._validate_title(title)
        cls._validate_description(description)
        cls._validate_required(requester_id, "requester_id", "Solicitante é obrigatório")
        cls._validate_required(area_id, "area_id", "Área é obrigatória")

        now = now or utcnow()
        ticket = cls(
            title=title.strip(),
            description=(description or "").strip(),
            requester_id=requester_id,
            area_id=area_id,
            priority=priority,
            status=TicketStatus.OPEN,
            created_at=now,
            updated_at=now,
            sla_target_at=compute_target(now, resolution_time_minutes),
        )

        ticket.record_event(
            TicketCreatedEvent(
                aggregate_id=ticket.id,
                occurred_at=now,
                title=ticket.title,
                requester_id=ticket.requester_id,
                area_id=ticket.area_id,
                priority=ticket.priority.value,
                sla_target_at=ticket.sla_target_at,
            )
        )
        return ticket

    @classmethod
    def _validate_title(cls, title: str) -> None:
        """Valida título do ticket."""
        if not title or not title.strip():
            raise ValidationError("Título é obrigatório", field="title")

        length = len(title.strip())
        if length < cls.TITLE_MIN_LENGTH:
            raise ValidationError(
                f"Título deve ter pelo menos {cls.TITLE_MIN_LENGTH} caracteres",
                field="title"
            )
        if length > cls.TITLE_MAX_LENGTH:
            raise ValidationError(
                f"Título deve ter no máximo {cls.TITLE_MAX_LENGTH} caracteres",
                field="title"
            )

    @classmethod
    def _validate_description(cls, description: str) -> None:
        if description and len(description.strip()) > cls.DESCRIPTION_MAX_LENGTH:
            raise ValidationError(
                f"Descrição deve ter no máximo {cls.DESCRIPTION_MAX_LENGTH} caracteres",
                field="description"
            )

    @staticmethod
    def _validate_required(value: str, field_name: str, message: str) -> None:
        if not value or not str(value).strip():
            raise ValidationError(message, field=field_name)

    # =========================================================================
    # Comportamentos
    # =========================================================================

    def assign(self, assignee_id: str, now: Optional[datetime] = None) -> None:
        """
        Atribui ticket a um agente.

        Não altera o status: a passagem OPEN → ASSIGNED é feita pelo
        use case através da máquina de estados.

        Args:
            assignee_id: Agente responsável
            now: Instante da atribuição

        Raises:
            ValidationError: Se assignee_id vazio
            AlreadyClosedError: Se ticket fechado
        """
        self._validate_required(assignee_id, "assignee_id", "Agente é obrigatório")
        if self.status == TicketStatus.CLOSED:
            raise AlreadyClosedError(self.id)

        now = now or utcnow()
        previous = self.assignee_id
        self.assignee_id = assignee_id
        self.updated_at = now

        self.record_event(
            TicketAssignedEvent(
                aggregate_id=self.id,
                occurred_at=now,
                assignee_id=assignee_id,
                previous_assignee_id=previous,
            )
        )

    def set_resolution_summary(self, summary: str) -> None:
        """
        Define o resumo da resolução.

        Raises:
            ValidationError: Se vazio ou menor que o mínimo
        """
        cleaned = (summary or "").strip()
        if len(cleaned) < self.RESOLUTION_SUMMARY_MIN_LENGTH:
            raise ValidationError(
                "Resumo da resolução deve ter pelo menos "
                f"{self.RESOLUTION_SUMMARY_MIN_LENGTH} caracteres",
                field="resolution_summary"
            )
        self.resolution_summary = cleaned

    def apply_transition(
        self,
        target: TicketStatus,
        now: datetime,
        notify_requester: bool = True,
    ) -> None:
        """
        Aplica os efeitos de uma transição já validada.

        Efeitos:
        - Primeira saída de OPEN (exceto para CANCELLED) define
          first_response_at
        - Entrada em RESOLVED define resolved_at e avalia o SLA
        - Entrada em CLOSED define closed_at e emite ticket.closed
        - Demais entradas emitem ticket.status_changed

        Args:
            target: Novo status
            now: Instante da transição
            notify_requester: Repassado no evento ticket.closed
        """
        previous = self.status
        self.status = target

        if (
            previous == TicketStatus.OPEN
            and target != TicketStatus.CANCELLED
            and self.first_response_at is None
        ):
            self.first_response_at = now

        if target == TicketStatus.RESOLVED:
            self.resolved_at = now
            self.sla_breached = evaluate_breach(self, now)

        if target == TicketStatus.CLOSED:
            self.closed_at = now
            event = TicketClosedEvent(
                aggregate_id=self.id,
                occurred_at=now,
                from_status=previous.value,
                to_status=target.value,
                requester_id=self.requester_id,
                resolution_summary=self.resolution_summary,
                notify_requester=notify_requester,
            )
        else:
            event = TicketStatusChangedEvent(
                aggregate_id=self.id,
                occurred_at=now,
                from_status=previous.value,
                to_status=target.value,
            )

        self.updated_at = now
        self.record_event(event)

    def check_sla_breach(self, now: datetime) -> bool:
        """
        Marca violação de SLA de ticket ainda não resolvido.

        Idempotente: a flag e o evento são produzidos uma única vez.

        Returns:
            True se a violação foi marcada nesta chamada
        """
        if self.sla_breached or self.resolved_at is not None or self.status.is_terminal:
            return False
        if not evaluate_breach(self, now):
            return False

        self.sla_breached = True
        self.updated_at = now
        self.record_event(
            TicketSLABreachedEvent(
                aggregate_id=self.id,
                occurred_at=now,
                sla_target_at=self.sla_target_at,
                area_id=self.area_id,
                assignee_id=self.assignee_id,
            )
        )
        return True

    @property
    def is_closed(self) -> bool:
        return self.status == TicketStatus.CLOSED

    @property
    def is_assigned(self) -> bool:
        """Verifica se ticket está atribuído a alguém."""
        return self.assignee_id is not None

    def __repr__(self) -> str:
        """Representação string para debugging."""
        return (
            f"TicketEntity("
            f"id={self.id[:8]}..., "
            f"title='{self.title[:20]}', "
            f"status={self.status.value}, "
            f"priority={self.priority.value}"
            f")"
        )

    def __eq__(self, other: object) -> bool:
        """Comparação por ID (identidade de entidade)."""
        if not isinstance(other, TicketEntity):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass
class AreaEntity(AggregateRoot):
    """
    Entidade de Domínio: Área.

    Unidade organizacional (departamento do hospital) com SLA e
    workflow próprios. Desativação é lógica (soft delete).

    Attributes:
        id: Identificador único (UUID)
        name: Nome da área
        description: Descrição opcional
        is_active: Área aceita novos tickets
        created_at: Data de criação
    """

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    description: Optional[str] = None
    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)

    NAME_MAX_LENGTH: ClassVar[int] = 100

    @classmethod
    def create(
        cls,
        name: str,
        description: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> "AreaEntity":
        """
        Cria nova área ativa.

        Raises:
            ValidationError: Se nome vazio ou longo demais
        """
        name = cls._validate_name(name)
        now = now or utcnow()

        area = cls(
            name=name,
            description=(description or "").strip() or None,
            is_active=True,
            created_at=now,
        )
        area.record_event(
            AreaCreatedEvent(aggregate_id=area.id, occurred_at=now, name=area.name)
        )
        return area

    @classmethod
    def _validate_name(cls, name: str) -> str:
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValidationError("Nome da área não pode ser vazio", field="name")
        if len(cleaned) > cls.NAME_MAX_LENGTH:
            raise ValidationError(
                f"Nome da área deve ter no máximo {cls.NAME_MAX_LENGTH} caracteres",
                field="name"
            )
        return cleaned

    def update(
        self,
        name: str,
        description: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> None:
        """Atualiza nome e descrição."""
        self.name = self._validate_name(name)
        self.description = (description or "").strip() or None
        self.record_event(
            AreaUpdatedEvent(
                aggregate_id=self.id,
                occurred_at=now or utcnow(),
                name=self.name,
                description=self.description,
            )
        )

    def deactivate(self, now: Optional[datetime] = None) -> None:
        """
        Desativa a área.

        Raises:
            AlreadyDeactivatedError: Se já inativa
        """
        if not self.is_active:
            raise AlreadyDeactivatedError("Area", self.id)

        self.is_active = False
        self.record_event(
            AreaDeactivatedEvent(aggregate_id=self.id, occurred_at=now or utcnow())
        )
