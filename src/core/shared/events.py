"""
Domain Events - Comunicação Assíncrona entre Domínios.

Este módulo define a infraestrutura base para Domain Events,
permitindo comunicação desacoplada entre diferentes partes do sistema.

Características:
- Imutáveis após criação
- Auto-geração de ID e timestamp
- Serializáveis para persistência/transporte
- Rastreáveis via aggregate_id
- Bufferizados no agregado até o use case drenar (pull_domain_events)

Pattern: Deferred side effects
    - Entidade registra eventos em buffer próprio
    - Use case drena o buffer somente após persistir
    - UoW publica após commit
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, ClassVar
import uuid


def utcnow() -> datetime:
    """Retorna datetime atual com timezone UTC."""
    return datetime.now(timezone.utc)


@dataclass
class DomainEvent(ABC):
    """
    Classe base abstrata para Domain Events.

    Um Domain Event representa algo significativo que aconteceu
    no domínio e que pode ser relevante para outras partes do sistema.

    Attributes:
        event_id: Identificador único do evento
        aggregate_id: ID do agregado que gerou o evento
        occurred_at: Momento em que o evento ocorreu
        version: Versão do schema do evento (para evolução)

    Example:
        @dataclass
        class TicketAssignedEvent(DomainEvent):
            _event_type: ClassVar[str] = "ticket.assigned"
            assignee_id: str = ""

            @property
            def aggregate_type(self) -> str:
                return "Ticket"
    """

    # Campos comuns a todos os eventos
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    aggregate_id: str = ""
    occurred_at: datetime = field(default_factory=utcnow)
    version: int = 1  # Para versionamento de schema

    # Nome público do evento (ex: "ticket.status_changed")
    _event_type: ClassVar[str] = ""

    def __post_init__(self):
        """Validação após inicialização."""
        if not self.aggregate_id:
            raise ValueError("aggregate_id é obrigatório")

    @property
    @abstractmethod
    def aggregate_type(self) -> str:
        """
        Retorna o tipo do agregado que gerou este evento.

        Returns:
            Nome do tipo do agregado (ex: "Ticket", "Workflow")
        """
        ...

    @property
    def event_type(self) -> str:
        """
        Retorna o tipo do evento.

        Usa o nome público declarado na subclasse; na ausência,
        o nome da classe.
        """
        return self._event_type or self.__class__.__name__

    @property
    def payload(self) -> Dict[str, Any]:
        """Dados específicos do evento (sem metadados de envelope)."""
        return self._get_event_data()

    def to_dict(self) -> Dict[str, Any]:
        """
        Serializa evento para dicionário.

        Útil para:
        - Persistência em Event Store
        - Envio via Celery
        - Logging estruturado

        Returns:
            Dicionário com dados do evento
        """
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "aggregate_id": self.aggregate_id,
            "aggregate_type": self.aggregate_type,
            "occurred_at": self.occurred_at.isoformat(),
            "version": self.version,
            "data": self._get_event_data(),
        }

    def _get_event_data(self) -> Dict[str, Any]:
        """
        Retorna dados específicos do evento (para override em subclasses).

        Returns:
            Dicionário com dados específicos do evento
        """
        # Pega todos os campos que não são os da classe base
        base_fields = {"event_id", "aggregate_id", "occurred_at", "version"}
        return {
            key: value
            for key, value in self.__dict__.items()
            if key not in base_fields and not key.startswith("_")
        }

    def __repr__(self) -> str:
        """Representação string do evento para debugging."""
        return (
            f"{self.event_type}("
            f"event_id={self.event_id[:8]}..., "
            f"aggregate_id={self.aggregate_id}, "
            f"occurred_at={self.occurred_at.isoformat()}"
            f")"
        )


class AggregateRoot:
    """
    Mixin para agregados que registram Domain Events.

    O buffer fica fora dos campos do dataclass, então não participa
    de __eq__/__repr__ e funciona também em dataclasses frozen.

    Drenar não é idempotente: a segunda chamada de
    pull_domain_events() retorna lista vazia.
    """

    def record_event(self, event: DomainEvent) -> None:
        """Adiciona evento ao buffer de eventos pendentes."""
        self.__dict__.setdefault("_pending_events", []).append(event)

    def pull_domain_events(self) -> List[DomainEvent]:
        """Retorna e limpa os eventos pendentes."""
        return self.__dict__.pop("_pending_events", [])

    @property
    def pending_events(self) -> List[DomainEvent]:
        """Cópia dos eventos pendentes (sem drenar)."""
        return list(self.__dict__.get("_pending_events", []))
