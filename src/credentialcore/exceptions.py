"""Unified exception hierarchy for credentialcore.

All errors raised by the package inherit from CredentialCoreError. This module provides:
- Base exception hierarchy with stable error codes
- ErrorRegistry for mapping codes back to exception classes

Usage:
    from credentialcore.exceptions import (
        ConfigurationError,
        UnknownAccessKind,
        UnknownCredentialReference,
    )

Configuration errors are raised while an entity type's access policy is
being built. They are never retried: the declaration has to be fixed.
"""

from __future__ import annotations

from typing import Any, Callable, TypeVar, cast

__all__ = [
    # Base hierarchy
    "CredentialCoreError",
    "ConfigurationError",
    "UnknownCredentialReference",
    "InvalidCredential",
    "InvalidFieldPolicy",
    "InvalidHookResult",
    "PrincipalError",
    "UnknownAccessKind",
    # Registry
    "ErrorRegistry",
    "error_registry",
    "register_error",
]


# ---- Exception Hierarchy ----------------------------------------------------


class CredentialCoreError(Exception):
    """Base exception for credentialcore.

    Attributes:
        code: Stable error code string (e.g. "CONFIGURATION_ERROR").
        message: Human-readable error description.
        details: Additional context as keyword arguments.
    """

    code: str = "INTERNAL_ERROR"
    message: str = "An internal error occurred"

    def __init__(self, message: str | None = None, code: str | None = None, **kwargs: Any) -> None:
        self.message = message or self.message
        self.code = code or self.code
        self.details = kwargs
        super().__init__(self.message)


class ConfigurationError(CredentialCoreError):
    """Invalid access-control configuration."""

    code: str = "CONFIGURATION_ERROR"


class UnknownCredentialReference(ConfigurationError):
    """A relation list names a credential that is not declared.

    ``details`` carries ``entity_type``, ``credential``, ``reference`` and
    ``relation``.
    """

    code: str = "UNKNOWN_CREDENTIAL_REFERENCE"


class InvalidCredential(ConfigurationError):
    """Malformed credential declaration (bad name or structure)."""

    code: str = "INVALID_CREDENTIAL"


class InvalidFieldPolicy(ConfigurationError):
    """Field requirement that is neither a declared credential, None nor FORBIDDEN."""

    code: str = "INVALID_FIELD_POLICY"


class InvalidHookResult(ConfigurationError):
    """An override hook returned something other than a name, FORBIDDEN or NotImplemented."""

    code: str = "INVALID_HOOK_RESULT"


class PrincipalError(ConfigurationError):
    """Missing or malformed principal passed to an access check."""

    code: str = "PRINCIPAL_ERROR"


class UnknownAccessKind(CredentialCoreError):
    """Strict resolution was requested for an access kind nobody knows."""

    code: str = "UNKNOWN_ACCESS_KIND"


# ---- Error Registry ---------------------------------------------------------

_E = TypeVar("_E", bound=type[CredentialCoreError])


class ErrorRegistry:
    """Registry mapping stable error codes to exception classes."""

    def __init__(self) -> None:
        self._errors: dict[str, type[CredentialCoreError]] = {}

    def register(self, code: str, error_cls: type[CredentialCoreError]) -> None:
        self._errors[code] = error_cls

    def get(self, code: str) -> type[CredentialCoreError] | None:
        return self._errors.get(code)

    def all(self) -> dict[str, type[CredentialCoreError]]:
        return dict(self._errors)


error_registry = ErrorRegistry()


def register_error(code: str) -> Callable[[_E], _E]:
    """Decorator to register a custom error type.

    Usage:
        @register_error("ORDER_POLICY_ERROR")
        class OrderPolicyError(ConfigurationError):
            code = "ORDER_POLICY_ERROR"
    """

    def decorator(cls: _E) -> _E:
        error_registry.register(code, cls)
        return cls

    return cast(Callable[[_E], _E], decorator)


for _cls in (
    CredentialCoreError,
    ConfigurationError,
    UnknownCredentialReference,
    InvalidCredential,
    InvalidFieldPolicy,
    InvalidHookResult,
    PrincipalError,
    UnknownAccessKind,
):
    error_registry.register(_cls.code, _cls)
del _cls
