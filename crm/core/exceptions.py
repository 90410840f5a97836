"""
Exceptions customizadas do CRM.
"""
from typing import Optional


class CRMException(Exception):
    """Base exception para todos os erros do sistema."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        original_error: Optional[Exception] = None
    ):
        self.message = message
        self.details = details or {}
        self.original_error = original_error
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class DatabaseError(CRMException):
    """Erro de banco de dados (Supabase)."""
    pass


class ExternalAPIError(CRMException):
    """Erro de API externa (vendor de mensagens, Supabase Auth)."""

    def __init__(
        self,
        message: str,
        service: str,
        details: Optional[dict] = None,
        original_error: Optional[Exception] = None
    ):
        self.service = service
        super().__init__(message, details, original_error)


class ValidationError(CRMException):
    """Erro de validacao de dados de entrada."""
    pass


class AuthenticationError(CRMException):
    """Credencial ausente ou invalida (token do usuario, assinatura do vendor)."""
    pass


class NotFoundError(CRMException):
    """
    Recurso nao encontrado.

    Tambem usado quando o recurso pertence a outro tenant, para nao
    confirmar a existencia dele.
    """

    def __init__(
        self,
        resource: str,
        identifier: Optional[str] = None,
        message: Optional[str] = None,
    ):
        details = {}
        if identifier:
            details["id"] = identifier
        super().__init__(message or f"{resource} not found", details)


class ConflictError(CRMException):
    """Operacao bloqueada pelo estado atual do recurso."""
    pass


class ConfigurationError(CRMException):
    """Erro de configuracao do sistema."""
    pass
