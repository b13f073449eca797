"""
errors.py
=========
Taxonomia de erros do streamfinder.

Apenas falhas de validação, de inicialização do navegador e de navegação
escalam até o nível da requisição. Falhas por candidata ou por iframe são
absorvidas localmente pelos componentes.
"""

from typing import Any, Dict, Optional

from playwright.async_api import TimeoutError as PlaywrightTimeoutError


class ExtractionError(Exception):
    """Erro base: carrega os campos do contrato de erro (error/details/errorCode)."""

    status_code = 500
    default_error = "Request failed"
    default_code = "UNKNOWN"

    def __init__(self, details: str, error: Optional[str] = None, error_code: Optional[str] = None):
        super().__init__(details)
        self.details = details
        self.error = error or self.default_error
        self.error_code = error_code or self.default_code

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.error,
            "details": self.details,
            "errorCode": self.error_code,
        }


class ValidationError(ExtractionError):
    """URL ausente ou inválida; rejeitada antes de abrir qualquer sessão."""
    status_code = 400
    default_error = "Invalid URL format"
    default_code = "EINVALID"


class NetworkError(ExtractionError):
    """Falha de DNS ou conexão recusada durante a navegação."""
    status_code = 400
    default_error = "Network error"
    default_code = "ENETWORK"


class ExtractionTimeout(ExtractionError):
    """Prazo da navegação (ou o prazo total opcional) esgotado."""
    status_code = 408
    default_error = "Request timeout"
    default_code = "ETIMEDOUT"


class InternalError(ExtractionError):
    """Qualquer outra falha não classificada (ex: navegador não inicia)."""
    status_code = 500


# Fragmentos das mensagens de erro do Chromium -> (erro, detalhes, código)
_NETWORK_ERRORS = {
    "net::ERR_NAME_NOT_RESOLVED": ("Domain not found", "Check the URL.", "ENOTFOUND"),
    "NS_ERROR_UNKNOWN_HOST": ("Domain not found", "Check the URL.", "ENOTFOUND"),
    "net::ERR_CONNECTION_REFUSED": ("Connection refused", "Server may be down.", "ECONNREFUSED"),
    "NS_ERROR_CONNECTION_REFUSED": ("Connection refused", "Server may be down.", "ECONNREFUSED"),
}


def classify_navigation_error(exc: BaseException) -> ExtractionError:
    """Converte uma exceção levantada por page.goto() no erro correspondente."""
    if isinstance(exc, ExtractionError):
        return exc

    message = str(exc)
    for fragment, (error, details, code) in _NETWORK_ERRORS.items():
        if fragment in message:
            return NetworkError(details, error=error, error_code=code)

    if isinstance(exc, PlaywrightTimeoutError):
        return ExtractionTimeout("Page took too long to load.")

    return internal_error(exc)


def internal_error(exc: BaseException) -> InternalError:
    if isinstance(exc, InternalError):
        return exc
    code = getattr(exc, "code", None)
    return InternalError(
        f"Error: {exc}",
        error_code=code if isinstance(code, str) and code else None,
    )
