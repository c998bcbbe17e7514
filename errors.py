"""
Error kinds raised by the voting service.

Handlers and the vote pipeline raise ``VotingError`` with an explicit
``ErrorKind``; ``main.py`` renders it as ``{"error": ..., "details": ...}``
with the status code the kind maps to.
"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL: 500,
}


# User-facing messages
INVALID_DATA = "Datos inválidos"
INVALID_CREDENTIALS = "Credenciales inválidas"
NOT_AUTHORIZED = "No autorizado"
VOTING_CLOSED = "Las votaciones están cerradas"
DUPLICATE_RUT = "Ya existe un voto registrado con este RUT"
INTERNAL_ERROR = "Error interno del servidor"


class VotingError(Exception):
    def __init__(self, kind: ErrorKind, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details = details

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


def not_found(message: str) -> VotingError:
    return VotingError(ErrorKind.NOT_FOUND, message)


def conflict(message: str) -> VotingError:
    return VotingError(ErrorKind.CONFLICT, message)


def invalid_input(message: str = INVALID_DATA, details: Optional[Any] = None) -> VotingError:
    return VotingError(ErrorKind.INVALID_INPUT, message, details)
