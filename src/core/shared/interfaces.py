"""
Interfaces (Ports) - Contratos entre Core e Adapters.

Este módulo define as interfaces que os Adapters devem implementar.
São os "Ports" da Arquitetura Hexagonal.

Tipos de Ports:
- Driven Ports (lado direito): UnitOfWork, EventPublisher, EventStore, Clock
- Driving Ports (lado esquerdo): Definidos nos Use Cases

Princípio: Core define interfaces; Adapters implementam.
O fluxo de dependência sempre aponta para o Core.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from .events import DomainEvent, utcnow


class UnitOfWork(ABC):
    """
    Unit of Work - Coordena transações atômicas.

    Garante que múltiplas operações de persistência sejam
    executadas como uma única unidade: ou todas são persistidas
    ou nenhuma é.

    Pattern: Context Manager
        with uow:
            ticket_repo.save(ticket)
            audit_repo.save(entry)
            uow.publish_events(ticket.pull_domain_events())
        # Commit automático ao sair sem erro
        # Rollback automático se exceção

    Responsabilidades:
    - Gerenciar início/fim de transação
    - Commit/Rollback coordenado
    - Enfileirar eventos para publicação pós-commit
    - Garantir que eventos só são publicados após commit bem-sucedido
    """

    def __init__(self):
        self._events: List[DomainEvent] = []

    def __enter__(self) -> "UnitOfWork":
        """
        Inicia contexto de transação.

        Returns:
            Self para permitir uso como context manager
        """
        self._begin_transaction()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        """
        Finaliza contexto de transação.

        Returns:
            False para propagar exceções
        """
        if exc_type is not None:
            self.rollback()
        else:
            self.commit()
        return False  # Não suprime exceções

    @abstractmethod
    def _begin_transaction(self) -> None:
        """Inicia uma nova transação."""
        raise NotImplementedError

    @abstractmethod
    def commit(self) -> None:
        """
        Persiste todas as mudanças e publica eventos.

        Ordem de execução:
        1. Commit da transação no banco
        2. Publicação de eventos enfileirados
        3. Limpeza de estado interno

        Note:
            Falha na publicação é logada e não desfaz o commit.
        """
        raise NotImplementedError

    @abstractmethod
    def rollback(self) -> None:
        """Desfaz todas as mudanças e descarta eventos."""
        raise NotImplementedError

    def publish_event(self, event: DomainEvent) -> None:
        """
        Enfileira evento para publicação após commit.

        Args:
            event: Evento de domínio a ser publicado
        """
        self._events.append(event)

    def publish_events(self, events: Iterable[DomainEvent]) -> None:
        """Enfileira vários eventos (ex: drenados de um agregado)."""
        for event in events:
            self.publish_event(event)

    def collect_events(self) -> List[DomainEvent]:
        """
        Retorna eventos enfileirados (para testing/debugging).

        Returns:
            Lista de eventos pendentes
        """
        return list(self._events)

    def clear_events(self) -> None:
        """Limpa fila de eventos."""
        self._events.clear()


class EventPublisher(ABC):
    """
    Interface para publicação de eventos (Event Bus).

    Adapters implementam para integrar com diferentes
    sistemas de mensageria (Celery, logging, memória).

    Contrato:
        publish_all é best-effort: falha em um handler não impede
        a entrega dos demais eventos.
    """

    @abstractmethod
    def publish(self, event: DomainEvent) -> None:
        """
        Publica evento para consumidores.

        Args:
            event: Evento de domínio a ser publicado
        """
        raise NotImplementedError

    @abstractmethod
    def publish_all(self, events: List[DomainEvent]) -> None:
        """
        Publica múltiplos eventos.

        Args:
            events: Lista de eventos a serem publicados
        """
        raise NotImplementedError


EventBus = EventPublisher


class EventStore(ABC):
    """
    Interface para persistência de eventos.

    Permite armazenar histórico completo de eventos para
    auditoria e integração com outros sistemas.
    """

    @abstractmethod
    def append(self, event: DomainEvent, sequence: int = 0) -> None:
        """
        Adiciona evento ao store.

        Args:
            event: Evento a ser persistido
            sequence: Posição do evento no agregado
        """
        raise NotImplementedError

    @abstractmethod
    def get_events_for_aggregate(
        self,
        aggregate_id: str,
        since_sequence: int = 0
    ) -> List[dict]:
        """
        Recupera eventos de um agregado.

        Args:
            aggregate_id: ID do agregado
            since_sequence: Sequência inicial

        Returns:
            Lista de eventos serializados, ordenados por sequência
        """
        raise NotImplementedError


class Clock(ABC):
    """
    Fonte de tempo injetável.

    Toda regra temporal (SLA, timestamps de ciclo de vida) lê o
    horário daqui, nunca de datetime.now() direto.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Retorna o instante atual (timezone-aware, UTC)."""
        raise NotImplementedError


class SystemClock(Clock):
    """Relógio do sistema em UTC."""

    def now(self) -> datetime:
        return utcnow()


class FixedClock(Clock):
    """
    Relógio controlável para testes e simulações.

    Example:
        clock = FixedClock(datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc))
        clock.advance(minutes=90)
    """

    def __init__(self, current: Optional[datetime] = None):
        self._current = current or datetime(2024, 1, 1, tzinfo=timezone.utc)
        if self._current.tzinfo is None:
            self._current = self._current.replace(tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._current

    def set(self, current: datetime) -> None:
        """Define o instante atual."""
        self._current = current

    def advance(self, minutes: float = 0, **kwargs) -> datetime:
        """Avança o relógio e retorna o novo instante."""
        self._current = self._current + timedelta(minutes=minutes, **kwargs)
        return self._current


# Type alias para facilitar tipagem
UoW = UnitOfWork
