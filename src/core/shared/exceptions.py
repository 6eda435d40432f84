"""
Exceções de Domínio do Hospital Service Desk.

Este módulo define exceções específicas do domínio que permitem
comunicar erros de forma clara e tipada entre as camadas.

Hierarquia:
    DomainException (base)
    ├── ValidationError (validação de entrada)
    │   └── UnknownStateError (workflow referencia estado inexistente)
    ├── EntityNotFoundError / NotFoundError (entidade não existe)
    ├── BusinessRuleViolationError (regra de negócio violada)
    │   ├── InvalidTransitionError
    │   ├── MissingRequiredFieldError
    │   ├── AlreadyClosedError
    │   └── AlreadyDeactivatedError
    └── ConcurrencyError
        └── ConcurrentModificationError
"""

from typing import Optional


class DomainException(Exception):
    """
    Exceção base para todos os erros de domínio.

    Todas as exceções específicas do domínio devem herdar desta classe.
    Isso permite capturar qualquer erro de domínio de forma genérica.

    Example:
        try:
            state_machine.transition(ticket, "CLOSED", policy, now)
        except DomainException as e:
            logger.error(f"Erro de domínio: {e}")
    """

    def __init__(self, message: str, code: str = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict:
        """Serializa exceção para dicionário (útil para APIs)."""
        return {
            "error": self.code,
            "message": self.message,
        }


class ValidationError(DomainException):
    """
    Erro de validação de dados de entrada.

    Lançada quando dados fornecidos não atendem aos requisitos
    mínimos para processamento.

    Example:
        if len(title) < 3:
            raise ValidationError("Título deve ter pelo menos 3 caracteres", field="title")
    """

    def __init__(self, message: str, field: str = None):
        self.field = field
        code = f"VALIDATION_ERROR_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(message, code)

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        return result


class UnknownStateError(ValidationError):
    """
    Configuração de workflow referencia um estado fora do grafo.

    A configuração inteira é rejeitada (nada é aplicado parcialmente).

    Attributes:
        state: Nome do estado desconhecido
    """

    def __init__(self, state: str, field: str = "transitions"):
        self.state = state
        super().__init__(
            f'Estado "{state}" não está definido como chave ou destino do workflow',
            field=field,
        )
        self.code = "UNKNOWN_STATE"

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["state"] = self.state
        return result


class EntityNotFoundError(DomainException):
    """
    Entidade não encontrada no repositório.

    Lançada quando uma busca por ID não retorna resultado.

    Example:
        ticket = repo.find_by_id(ticket_id)
        if not ticket:
            raise EntityNotFoundError(f"Ticket {ticket_id} não encontrado")
    """

    def __init__(self, message: str, entity_type: str = None, entity_id: str = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(message, "ENTITY_NOT_FOUND")

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.entity_type:
            result["entity_type"] = self.entity_type
        if self.entity_id:
            result["entity_id"] = self.entity_id
        return result


NotFoundError = EntityNotFoundError


class BusinessRuleViolationError(DomainException):
    """
    Violação de regra de negócio.

    Lançada quando uma operação viola uma regra de negócio
    estabelecida no domínio.

    Example:
        if area.is_active is False:
            raise BusinessRuleViolationError(
                "Não é possível abrir ticket em área inativa",
                rule="area_inativa"
            )
    """

    def __init__(self, message: str, rule: str = None, code: str = None):
        self.rule = rule
        super().__init__(message, code or "BUSINESS_RULE_VIOLATION")

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.rule:
            result["rule"] = self.rule
        return result


class InvalidTransitionError(BusinessRuleViolationError):
    """
    Status de destino não é alcançável a partir do status atual.

    Attributes:
        from_status: Status atual do ticket
        to_status: Status solicitado
    """

    def __init__(self, from_status: str, to_status: str):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Transição de {from_status} para {to_status} não é permitida",
            rule="transicao_status_invalida",
            code="INVALID_TRANSITION",
        )

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["from"] = self.from_status
        result["to"] = self.to_status
        return result


class MissingRequiredFieldError(BusinessRuleViolationError):
    """
    Campo obrigatório ausente para entrar no status de destino.

    Attributes:
        field_name: Nome do primeiro campo ausente
        status: Status de destino que exige o campo
    """

    def __init__(self, field_name: str, status: Optional[str] = None):
        self.field_name = field_name
        self.status = status
        destino = f" para entrar em {status}" if status else ""
        super().__init__(
            f"Campo obrigatório ausente{destino}: {field_name}",
            rule="campo_obrigatorio",
            code="MISSING_REQUIRED_FIELD",
        )

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["field"] = self.field_name
        return result


class AlreadyClosedError(BusinessRuleViolationError):
    """Operação sobre ticket que já está fechado."""

    def __init__(self, ticket_id: str):
        self.ticket_id = ticket_id
        super().__init__(
            f"Ticket {ticket_id} já está fechado",
            rule="ticket_ja_fechado",
            code="ALREADY_CLOSED",
        )


class AlreadyDeactivatedError(BusinessRuleViolationError):
    """Desativação de entidade que já está inativa."""

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"{entity_type} {entity_id} já está desativado(a)",
            rule="ja_desativado",
            code="ALREADY_DEACTIVATED",
        )


class ConcurrencyError(DomainException):
    """
    Erro de concorrência/conflito de versão.

    Lançada quando uma operação falha devido a modificação
    concorrente da entidade.

    Example:
        if entity.version != expected_version:
            raise ConcurrencyError("Entidade foi modificada por outro processo")
    """

    def __init__(self, message: str, code: str = None):
        super().__init__(message, code or "CONCURRENCY_ERROR")


class ConcurrentModificationError(ConcurrencyError):
    """
    Versão persistida difere da versão carregada (optimistic locking).

    O chamador deve recarregar a entidade e tentar novamente.
    """

    def __init__(
        self,
        entity_id: str,
        expected_version: Optional[int] = None,
        actual_version: Optional[int] = None,
    ):
        self.entity_id = entity_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Entidade {entity_id} foi modificada por outro processo "
            f"(esperada v{expected_version}, atual v{actual_version})",
            code="CONCURRENT_MODIFICATION",
        )
