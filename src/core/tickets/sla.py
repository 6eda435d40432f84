"""
Política de SLA do Domínio de Tickets.

Funções puras para prazo e violação de SLA, mais a entidade de
configuração de SLA por área.

Regras:
- Prazo = created_at + resolution_time_minutes (minutos, UTC)
- Área sem SLA configurado usa 0 minutos
- Alterar o SLA de uma área vale apenas para tickets novos
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import ClassVar, Optional
import uuid

from src.core.shared.events import AggregateRoot, utcnow
from src.core.shared.exceptions import ValidationError

from .events import SLAConfiguredEvent, SLAUpdatedEvent


DEFAULT_RESOLUTION_TIME_MINUTES = 0


def compute_target(created_at: datetime, resolution_time_minutes: int) -> datetime:
    """
    Calcula o prazo de resolução de um ticket.

    Args:
        created_at: Instante de criação do ticket
        resolution_time_minutes: Tempo de resolução do SLA da área

    Returns:
        created_at + resolution_time_minutes

    Raises:
        ValidationError: Se minutos negativos
    """
    if resolution_time_minutes is None:
        resolution_time_minutes = DEFAULT_RESOLUTION_TIME_MINUTES
    if resolution_time_minutes < 0:
        raise ValidationError(
            "Tempo de resolução não pode ser negativo",
            field="resolution_time_minutes"
        )
    return created_at + timedelta(minutes=resolution_time_minutes)


def evaluate_breach(ticket, now: datetime) -> bool:
    """
    Avalia se o SLA do ticket foi violado.

    Ticket resolvido compara resolved_at com o prazo; ticket em
    aberto compara o instante informado. Não altera o ticket.

    Args:
        ticket: Qualquer objeto com sla_target_at e resolved_at
        now: Instante de referência

    Returns:
        True se violado; False se sem prazo
    """
    if ticket.sla_target_at is None:
        return False
    if ticket.resolved_at is not None:
        return ticket.resolved_at > ticket.sla_target_at
    return now > ticket.sla_target_at


@dataclass
class SLAEntity(AggregateRoot):
    """
    Configuração de SLA de uma área.

    Invariante: 0 <= response_time_minutes <= resolution_time_minutes <= 10080

    Attributes:
        id: Identificador único
        area_id: Área dona do SLA (uma configuração por área)
        response_time_minutes: Prazo da primeira resposta
        resolution_time_minutes: Prazo de resolução
        created_at / updated_at: Timestamps (UTC)
    """

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    area_id: str = ""
    response_time_minutes: int = 0
    resolution_time_minutes: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    # 7 dias
    MAX_MINUTES: ClassVar[int] = 10080

    @classmethod
    def create(
        cls,
        area_id: str,
        response_time_minutes: int,
        resolution_time_minutes: int,
        now: Optional[datetime] = None,
    ) -> "SLAEntity":
        """
        Cria configuração de SLA.

        Raises:
            ValidationError: Se tempos inválidos
        """
        if not area_id:
            raise ValidationError("Área é obrigatória", field="area_id")
        cls._validate_times(response_time_minutes, resolution_time_minutes)

        now = now or utcnow()
        sla = cls(
            area_id=area_id,
            response_time_minutes=response_time_minutes,
            resolution_time_minutes=resolution_time_minutes,
            created_at=now,
            updated_at=now,
        )
        sla.record_event(
            SLAConfiguredEvent(
                aggregate_id=sla.id,
                occurred_at=now,
                area_id=area_id,
                response_time_minutes=response_time_minutes,
                resolution_time_minutes=resolution_time_minutes,
            )
        )
        return sla

    def update(
        self,
        response_time_minutes: int,
        resolution_time_minutes: int,
        now: Optional[datetime] = None,
    ) -> None:
        """
        Altera os tempos no lugar.

        Tickets já criados mantêm o prazo calculado na abertura.
        """
        self._validate_times(response_time_minutes, resolution_time_minutes)

        now = now or utcnow()
        self.response_time_minutes = response_time_minutes
        self.resolution_time_minutes = resolution_time_minutes
        self.updated_at = now
        self.record_event(
            SLAUpdatedEvent(
                aggregate_id=self.id,
                occurred_at=now,
                area_id=self.area_id,
                response_time_minutes=response_time_minutes,
                resolution_time_minutes=resolution_time_minutes,
            )
        )

    @classmethod
    def _validate_times(cls, response: int, resolution: int) -> None:
        for name, value in (
            ("response_time_minutes", response),
            ("resolution_time_minutes", resolution),
        ):
            # bool é subclasse de int
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(f"{name} deve ser um inteiro", field=name)
            if value < 0:
                raise ValidationError(f"{name} não pode ser negativo", field=name)
            if value > cls.MAX_MINUTES:
                raise ValidationError(
                    f"{name} não pode exceder {cls.MAX_MINUTES} minutos (7 dias)",
                    field=name
                )

        if response > resolution:
            raise ValidationError(
                "Tempo de resposta não pode superar o tempo de resolução",
                field="response_time_minutes"
            )
