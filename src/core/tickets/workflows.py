"""
Workflow configurável por área.

Um workflow é um grafo de transições (estado → próximos estados)
mais os campos obrigatórios para entrar em cada estado. Cada
configuração gera uma nova versão imutável; a de maior versão é a
vigente.

Nomes de estado na configuração precisam existir em TicketStatus;
estados desconhecidos são rejeitados ao configurar.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Tuple
import uuid

from src.core.shared.events import AggregateRoot, utcnow
from src.core.shared.exceptions import ValidationError, UnknownStateError

from .entities import TicketStatus
from .events import WorkflowCreatedEvent, WorkflowUpdatedEvent


KNOWN_STATUSES = frozenset(status.value for status in TicketStatus)

Transitions = Dict[str, Tuple[str, ...]]
RequiredFields = Dict[str, Tuple[str, ...]]


def _validate_mapping(value: Any, field_name: str, allow_empty: bool) -> None:
    """Valida formato string → lista de strings."""
    if not isinstance(value, Mapping):
        raise ValidationError(
            f"{field_name} deve ser um mapa de estado para lista de strings",
            field=field_name
        )
    if not value and not allow_empty:
        raise ValidationError(f"{field_name} não pode ser vazio", field=field_name)

    for key, items in value.items():
        if not isinstance(key, str) or not key.strip():
            raise ValidationError(
                f"Chaves de {field_name} devem ser strings não vazias",
                field=field_name
            )
        if isinstance(items, (str, bytes)) or not isinstance(items, (list, tuple)):
            raise ValidationError(
                f'{field_name}["{key}"] deve ser uma lista de strings',
                field=field_name
            )
        for item in items:
            if not isinstance(item, str) or not item.strip():
                raise ValidationError(
                    f'{field_name}["{key}"] deve conter apenas strings não vazias',
                    field=field_name
                )


def validate_workflow(
    transitions: Mapping[str, Any],
    required_fields: Optional[Mapping[str, Any]] = None,
) -> Tuple[Transitions, RequiredFields]:
    """
    Valida e normaliza uma configuração de workflow.

    O conjunto de estados é a união das chaves com todos os destinos.
    Toda chave e todo destino precisam ser um TicketStatus; um destino
    pode não ter chave própria (ex: CLOSED como destino final). Nenhuma
    parte da configuração é aplicada se algo falhar.

    Args:
        transitions: Mapa estado → próximos estados
        required_fields: Mapa estado → campos obrigatórios

    Returns:
        Tupla (transitions, required_fields) normalizada em tuplas

    Raises:
        ValidationError: Se formato inválido
        UnknownStateError: Se estado não é um TicketStatus ou chave
            de required_fields não pertence ao grafo
    """
    required_fields = {} if required_fields is None else required_fields
    _validate_mapping(transitions, "transitions", allow_empty=False)
    _validate_mapping(required_fields, "required_fields", allow_empty=True)

    all_states = set(transitions)
    for next_states in transitions.values():
        all_states.update(next_states)

    for state in transitions:
        if state not in KNOWN_STATUSES:
            raise UnknownStateError(state)
    for next_states in transitions.values():
        for next_state in next_states:
            if next_state not in KNOWN_STATUSES:
                raise UnknownStateError(next_state)

    for state in required_fields:
        if state not in all_states:
            raise UnknownStateError(state, field="required_fields")

    normalized_transitions = {
        state: tuple(next_states) for state, next_states in transitions.items()
    }
    normalized_required = {
        state: tuple(fields) for state, fields in required_fields.items()
    }
    return normalized_transitions, normalized_required


@dataclass(frozen=True)
class WorkflowEntity(AggregateRoot):
    """
    Versão de workflow de uma área.

    Imutável: reconfigurar gera nova instância com version + 1.

    Attributes:
        id: Identificador único da versão
        area_id: Área dona do workflow
        version: Número da versão (1, 2, ...)
        transitions: Estado → próximos estados permitidos
        required_fields: Estado → campos obrigatórios para entrar nele
        created_at / updated_at: Timestamps (UTC)
    """

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    area_id: str = ""
    version: int = 1
    transitions: Transitions = field(default_factory=dict)
    required_fields: RequiredFields = field(default_factory=dict)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def define(
        cls,
        area_id: str,
        transitions: Mapping[str, Any],
        required_fields: Optional[Mapping[str, Any]] = None,
        now: Optional[datetime] = None,
        previous: Optional["WorkflowEntity"] = None,
    ) -> "WorkflowEntity":
        """
        Valida a configuração e produz a próxima versão.

        Args:
            area_id: Área dona do workflow
            transitions: Grafo de transições
            required_fields: Campos obrigatórios por estado
            now: Instante da configuração
            previous: Versão vigente (None na primeira configuração)

        Returns:
            Nova versão com evento workflow.created ou workflow.updated

        Raises:
            ValidationError / UnknownStateError: Se configuração inválida
        """
        if not area_id:
            raise ValidationError("Área é obrigatória", field="area_id")

        normalized_transitions, normalized_required = validate_workflow(
            transitions, required_fields
        )
        now = now or utcnow()

        workflow = cls(
            area_id=area_id,
            version=previous.version + 1 if previous else 1,
            transitions=normalized_transitions,
            required_fields=normalized_required,
            created_at=now,
            updated_at=now,
        )

        event_kwargs = dict(
            aggregate_id=workflow.id,
            occurred_at=now,
            area_id=area_id,
            workflow_version=workflow.version,
            transitions=workflow.transitions_as_lists(),
            required_fields=workflow.required_fields_as_lists(),
        )
        if previous is None:
            workflow.record_event(WorkflowCreatedEvent(**event_kwargs))
        else:
            workflow.record_event(
                WorkflowUpdatedEvent(previous_workflow_id=previous.id, **event_kwargs)
            )
        return workflow

    @property
    def states(self) -> frozenset:
        """Todos os estados do grafo (chaves e destinos)."""
        states = set(self.transitions)
        for next_states in self.transitions.values():
            states.update(next_states)
        return frozenset(states)

    def has_state(self, state: str) -> bool:
        """Estado tem entrada própria no grafo."""
        return state in self.transitions

    def allowed_from(self, state: str) -> Tuple[str, ...]:
        return self.transitions.get(state, ())

    def required_fields_for(self, state: str) -> Tuple[str, ...]:
        return self.required_fields.get(state, ())

    def transitions_as_lists(self) -> Dict[str, list]:
        """Formato serializável (JSON)."""
        return {state: list(targets) for state, targets in self.transitions.items()}

    def required_fields_as_lists(self) -> Dict[str, list]:
        return {state: list(fields) for state, fields in self.required_fields.items()}
