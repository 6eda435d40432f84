"""
Unit of Work - Implementação Django.

Gerencia transações atômicas entre múltiplos repositórios,
garantindo consistência de dados.

Responsabilidades:
- Iniciar/finalizar transações
- Commit/Rollback coordenado
- Persistir eventos no Event Store (mesma transação)
- Publicar eventos após commit bem-sucedido

ACID Guarantees:
- Atomicidade: Tudo ou nada
- Consistência: Eventos refletem estado persistido
- Isolamento: Cada request tem sua transação
- Durabilidade: PostgreSQL garante

Uma mesma instância pode ser usada em vários blocos `with`
consecutivos (ex: verificação de SLA, um ticket por transação).
"""

from typing import Dict, List, Optional
import logging

from django.db import transaction

from src.core.shared.events import DomainEvent
from src.core.shared.interfaces import EventPublisher, EventStore, UnitOfWork

logger = logging.getLogger(__name__)


class DjangoUnitOfWork(UnitOfWork):
    """
    Implementação Django do Unit of Work.

    Usa django.db.transaction para gerenciar transações.
    Eventos são publicados apenas após commit bem-sucedido.

    Example:
        with DjangoUnitOfWork(event_publisher=publisher) as uow:
            ticket_repo.save(ticket)
            audit_repo.save(entry)
            uow.publish_events(ticket.pull_domain_events())
        # Commit automático + eventos publicados

    Example com rollback:
        with DjangoUnitOfWork() as uow:
            ticket_repo.save(ticket)
            raise ValidationError("...")
        # Rollback automático, eventos descartados
    """

    def __init__(
        self,
        event_publisher: Optional[EventPublisher] = None,
        event_store: Optional[EventStore] = None,
    ):
        """
        Inicializa Unit of Work.

        Args:
            event_publisher: Publicador de eventos (Celery, logging, memória)
            event_store: Store para persistência de eventos
        """
        super().__init__()
        self._event_publisher = event_publisher
        self._event_store = event_store
        self._transaction_started = False
        self._savepoint_id: Optional[str] = None
        self._committed = False
        self._rolled_back = False
        self._sequence_counters: Dict[str, int] = {}

    def _begin_transaction(self) -> None:
        """
        Inicia transação.

        Se já existe um bloco atômico externo (ex: ATOMIC_REQUESTS ou
        testes), o UoW abre um savepoint nele em vez de controlar o
        autocommit.
        """
        self._committed = False
        self._rolled_back = False
        self._sequence_counters = {}

        if transaction.get_connection().in_atomic_block:
            self._transaction_started = False
            self._savepoint_id = transaction.savepoint()
            return

        transaction.set_autocommit(False)
        self._transaction_started = True
        logger.debug("Transaction started")

    def commit(self) -> None:
        """
        Persiste todas as mudanças e publica eventos.

        Ordem de execução:
        1. Persistir eventos no Event Store (dentro da transação)
        2. Commit da transação no banco
        3. Publicar eventos para handlers
        4. Limpar estado interno

        Raises:
            Exception: Se o commit falhar (após rollback)
        """
        if self._committed or self._rolled_back:
            logger.warning("Transaction already finalized")
            return

        events = list(self._events)

        try:
            if self._event_store and events:
                self._persist_events(events)

            if self._transaction_started:
                transaction.commit()
                logger.debug("Transaction committed")
            elif self._savepoint_id:
                transaction.savepoint_commit(self._savepoint_id)

            self._committed = True

        except Exception as e:
            logger.error(f"Commit failed: {e}")
            self.rollback()
            raise
        finally:
            self._finalize()

        self.clear_events()
        if events:
            self._publish_events(events)

    def rollback(self) -> None:
        """
        Desfaz todas as mudanças e descarta eventos.

        Chamado automaticamente se exceção ocorrer dentro do contexto.
        """
        if self._committed or self._rolled_back:
            return

        try:
            if self._transaction_started:
                transaction.rollback()
                logger.debug("Transaction rolled back")
            elif self._savepoint_id:
                transaction.savepoint_rollback(self._savepoint_id)
        finally:
            self._rolled_back = True
            self.clear_events()
            self._finalize()

    def _finalize(self) -> None:
        """Restaura autocommit da conexão."""
        self._savepoint_id = None
        if self._transaction_started:
            transaction.set_autocommit(True)
            self._transaction_started = False

    def _persist_events(self, events: List[DomainEvent]) -> None:
        """Persiste eventos no Event Store."""
        for event in events:
            self._event_store.append(
                event=event,
                sequence=self._get_next_sequence(event.aggregate_id),
            )

    def _publish_events(self, events: List[DomainEvent]) -> None:
        """
        Publica eventos para handlers.

        O commit já ocorreu: falhas de publicação são logadas e
        não desfazem a transação.
        """
        for event in events:
            logger.info(
                f"Publishing event: {event.event_type} "
                f"for aggregate {event.aggregate_id}"
            )

        if not self._event_publisher:
            return

        try:
            self._event_publisher.publish_all(events)
        except Exception as e:
            logger.error(f"Failed to publish events: {e}")

    def _get_next_sequence(self, aggregate_id: str) -> int:
        """
        Obtém próximo número de sequência para um agregado.

        Usado para ordenação de eventos no Event Store.
        """
        if aggregate_id not in self._sequence_counters:
            next_sequence = getattr(self._event_store, 'next_sequence', None)
            self._sequence_counters[aggregate_id] = (
                next_sequence(aggregate_id) if next_sequence else 0
            )

        sequence = self._sequence_counters[aggregate_id]
        self._sequence_counters[aggregate_id] += 1
        return sequence

    @property
    def is_committed(self) -> bool:
        """Verifica se a última transação foi comitada."""
        return self._committed

    @property
    def is_rolled_back(self) -> bool:
        """Verifica se a última transação foi revertida."""
        return self._rolled_back


class InMemoryUnitOfWork(UnitOfWork):
    """
    Unit of Work em memória para testes.

    Não persiste nada - apenas simula comportamento
    para testes unitários sem banco de dados.

    Example:
        uow = InMemoryUnitOfWork()
        with uow:
            uow.publish_event(event)

        assert uow.committed
        assert len(uow.published_events) == 1
    """

    def __init__(self, event_publisher: Optional[EventPublisher] = None):
        """Inicializa UoW em memória."""
        super().__init__()
        self._event_publisher = event_publisher
        self._committed = False
        self._rolled_back = False
        self._published_events: List[DomainEvent] = []
        self.commit_count = 0
        self.rollback_count = 0

    def _begin_transaction(self) -> None:
        self._committed = False
        self._rolled_back = False

    def commit(self) -> None:
        """Simula commit e entrega eventos ao publisher (se houver)."""
        events = list(self._events)
        self._committed = True
        self.commit_count += 1
        self._published_events.extend(events)
        self.clear_events()

        if self._event_publisher and events:
            try:
                self._event_publisher.publish_all(events)
            except Exception as e:
                logger.error(f"Failed to publish events: {e}")

    def rollback(self) -> None:
        """Simula rollback."""
        self._rolled_back = True
        self.rollback_count += 1
        self.clear_events()

    @property
    def committed(self) -> bool:
        return self._committed

    @property
    def rolled_back(self) -> bool:
        return self._rolled_back

    @property
    def published_events(self) -> List[DomainEvent]:
        """Retorna eventos que foram 'publicados'."""
        return self._published_events

    def reset(self) -> None:
        """Reset para próximo teste."""
        self._committed = False
        self._rolled_back = False
        self.commit_count = 0
        self.rollback_count = 0
        self._published_events.clear()
        self.clear_events()
