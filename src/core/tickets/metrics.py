"""
Agregador de Métricas de SLA.

Resume um conjunto de tickets já persistidos: conformidade de SLA,
tempos médios e distribuição por prioridade e status.

Regras:
- Usa a flag sla_breached gravada (sem recalcular para tickets abertos)
- Arredondamento half-up com 2 casas decimais
- Médias em minutos; None quando nenhum ticket se qualifica
"""

from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, Optional

from .entities import TicketEntity


_TWO_PLACES = Decimal("0.01")


def round_half_up(value: float) -> float:
    """Arredonda para 2 casas (0.125 → 0.13)."""
    return float(Decimal(str(value)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class SLAMetrics:
    """Resultado da agregação."""

    total_tickets: int = 0
    sla_breached: int = 0
    sla_compliant: int = 0
    compliance_percentage: float = 0.0
    avg_first_response_time: Optional[float] = None
    avg_resolution_time: Optional[float] = None
    tickets_by_priority: Dict[str, int] = field(default_factory=dict)
    tickets_by_status: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "total_tickets": self.total_tickets,
            "sla_breached": self.sla_breached,
            "sla_compliant": self.sla_compliant,
            "compliance_percentage": self.compliance_percentage,
            "avg_first_response_time": self.avg_first_response_time,
            "avg_resolution_time": self.avg_resolution_time,
            "tickets_by_priority": dict(self.tickets_by_priority),
            "tickets_by_status": dict(self.tickets_by_status),
        }


class SLAMetricsAggregator:
    """
    Calcula SLAMetrics a partir de tickets.

    Example:
        metrics = SLAMetricsAggregator().compute(ticket_repo.find_by_filters(area_id="uti"))
        metrics.compliance_percentage  # 50.0
    """

    def compute(self, tickets: Iterable[TicketEntity]) -> SLAMetrics:
        tickets = list(tickets)
        total = len(tickets)
        breached = sum(1 for ticket in tickets if ticket.sla_breached)
        compliant = total - breached

        compliance = round_half_up(compliant / total * 100) if total else 0.0

        response_minutes = [
            (ticket.first_response_at - ticket.created_at).total_seconds() / 60
            for ticket in tickets
            if ticket.first_response_at is not None
        ]
        resolution_minutes = [
            (ticket.resolved_at - ticket.created_at).total_seconds() / 60
            for ticket in tickets
            if ticket.resolved_at is not None
        ]

        # Apenas valores presentes no conjunto
        by_priority = Counter(ticket.priority.value for ticket in tickets)
        by_status = Counter(ticket.status.value for ticket in tickets)

        return SLAMetrics(
            total_tickets=total,
            sla_breached=breached,
            sla_compliant=compliant,
            compliance_percentage=compliance,
            avg_first_response_time=self._average(response_minutes),
            avg_resolution_time=self._average(resolution_minutes),
            tickets_by_priority=dict(by_priority),
            tickets_by_status=dict(by_status),
        )

    @staticmethod
    def _average(values) -> Optional[float]:
        if not values:
            return None
        return round_half_up(sum(values) / len(values))
