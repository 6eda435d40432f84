"""
Shared Domain Components.

Contém componentes compartilhados entre todos os domínios:
- Exceções de domínio
- Interfaces (Ports): UnitOfWork, EventPublisher, Clock
- Base classes para Domain Events e agregados
"""

from .exceptions import (
    DomainException,
    ValidationError,
    EntityNotFoundError,
    NotFoundError,
    BusinessRuleViolationError,
    InvalidTransitionError,
    MissingRequiredFieldError,
    AlreadyClosedError,
    AlreadyDeactivatedError,
    UnknownStateError,
    ConcurrencyError,
    ConcurrentModificationError,
)
from .events import DomainEvent, AggregateRoot
from .interfaces import UnitOfWork, EventPublisher, EventBus, Clock, SystemClock, FixedClock

__all__ = [
    "DomainException",
    "ValidationError",
    "EntityNotFoundError",
    "NotFoundError",
    "BusinessRuleViolationError",
    "InvalidTransitionError",
    "MissingRequiredFieldError",
    "AlreadyClosedError",
    "AlreadyDeactivatedError",
    "UnknownStateError",
    "ConcurrencyError",
    "ConcurrentModificationError",
    "DomainEvent",
    "AggregateRoot",
    "UnitOfWork",
    "EventPublisher",
    "EventBus",
    "Clock",
    "SystemClock",
    "FixedClock",
]
