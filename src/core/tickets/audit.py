"""
Trilha de Auditoria.

Registro imutável e append-only de cada ação que altera ticket,
área, SLA ou workflow. Gravado na mesma transação da alteração.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional
import uuid

from src.core.shared.events import utcnow
from src.core.shared.exceptions import ValidationError


SYSTEM_ACTOR = "system"


class AuditAction:
    """Ações auditadas."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    ASSIGN = "ASSIGN"
    TRANSITION = "TRANSITION"
    CLOSE = "CLOSE"
    DEACTIVATE = "DEACTIVATE"
    WORKFLOW_CREATED = "WORKFLOW_CREATED"
    WORKFLOW_UPDATED = "WORKFLOW_UPDATED"
    SLA_CREATED = "SLA_CREATED"
    SLA_UPDATED = "SLA_UPDATED"
    SLA_BREACHED = "SLA_BREACHED"


def diff(field_name: str, before: Any, after: Any) -> Dict[str, Dict[str, Any]]:
    """Monta entrada de changes no formato {campo: {from, to}}."""
    return {field_name: {"from": before, "to": after}}


@dataclass(frozen=True)
class AuditTrailEntry:
    """
    Entrada da trilha de auditoria.

    Attributes:
        id: Identificador único
        actor_id: Quem executou a ação ("system" para tarefas agendadas)
        action: Ação (ver AuditAction)
        entity_type: Tipo da entidade alterada (Ticket, Area, SLA, Workflow)
        entity_id: ID da entidade alterada
        changes: Diff antes/depois
        metadata: Dados adicionais (motivo, versão, etc)
        ticket_id: Ticket relacionado (para consulta por ticket)
        ip_address / user_agent: Origem da requisição, quando houver
        occurred_at: Instante da ação (UTC)
    """

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    actor_id: str = ""
    action: str = ""
    entity_type: str = ""
    entity_id: str = ""
    changes: Dict[str, Any] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)
    ticket_id: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    occurred_at: datetime = field(default_factory=utcnow)

    @classmethod
    def create(
        cls,
        actor_id: str,
        action: str,
        entity_type: str,
        entity_id: str,
        now: Optional[datetime] = None,
        changes: Optional[Dict[str, Any]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        ticket_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> "AuditTrailEntry":
        """
        Cria entrada validada.

        Raises:
            ValidationError: Se ator, ação ou entidade ausentes
        """
        for name, value in (
            ("actor_id", actor_id),
            ("action", action),
            ("entity_type", entity_type),
            ("entity_id", entity_id),
        ):
            if not value:
                raise ValidationError(f"{name} é obrigatório", field=name)

        return cls(
            actor_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            changes=dict(changes or {}),
            metadata=dict(metadata or {}),
            ticket_id=ticket_id,
            ip_address=ip_address,
            user_agent=user_agent,
            occurred_at=now or utcnow(),
        )
