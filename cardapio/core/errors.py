"""Erros tipados da camada de pedidos.

Erros de validação e de cupom são resolvidos localmente e devolvidos como
dados estruturados; falhas do banco sobem como as exceções abaixo para que o
chamador escolha a mensagem adequada (e ofereça nova tentativa em timeouts).
"""

from __future__ import annotations

TIMEOUT_MESSAGE = "Tempo de espera esgotado. Tente novamente."
GENERIC_FAILURE_MESSAGE = "Erro ao processar solicitação. Tente novamente."


class CardapioError(Exception):
    message = GENERIC_FAILURE_MESSAGE

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        if message:
            self.message = message


class ValidationError(CardapioError):
    message = "Dados inválidos"

    def __init__(self, errors: dict[str, str], message: str | None = None) -> None:
        super().__init__(message)
        self.errors = dict(errors)


class NotFoundError(CardapioError):
    message = "Registro não encontrado"


class StoreTimeoutError(CardapioError):
    message = TIMEOUT_MESSAGE
    retryable = True


class AuthorizationError(CardapioError):
    reason = "unauthorized"


class NotAuthenticatedError(AuthorizationError):
    message = "Admin não autenticado"
    reason = "not_authenticated"


class ForbiddenError(AuthorizationError):
    message = "Permissão insuficiente"
    reason = "role_denied"


class PersistenceError(CardapioError):
    message = GENERIC_FAILURE_MESSAGE

    def __init__(self, message: str | None = None, *, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation
