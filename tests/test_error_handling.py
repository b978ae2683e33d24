"""Tests for the exception hierarchy and error registry."""

from __future__ import annotations

import pytest
from credentialcore import (
    ConfigurationError,
    CredentialCoreError,
    InvalidCredential,
    InvalidFieldPolicy,
    InvalidHookResult,
    PrincipalError,
    UnknownAccessKind,
    UnknownCredentialReference,
)
from credentialcore.exceptions import error_registry, register_error


class TestExceptionHierarchy:
    """Tests for error classes and codes."""

    @pytest.mark.parametrize(
        ("error_cls", "code"),
        [
            (ConfigurationError, "CONFIGURATION_ERROR"),
            (UnknownCredentialReference, "UNKNOWN_CREDENTIAL_REFERENCE"),
            (InvalidCredential, "INVALID_CREDENTIAL"),
            (InvalidFieldPolicy, "INVALID_FIELD_POLICY"),
            (InvalidHookResult, "INVALID_HOOK_RESULT"),
            (PrincipalError, "PRINCIPAL_ERROR"),
        ],
    )
    def test_configuration_errors(self, error_cls: type[CredentialCoreError], code: str) -> None:
        """Test declaration problems share ConfigurationError."""
        error = error_cls("broken")
        assert isinstance(error, ConfigurationError)
        assert error.code == code
        assert error_registry.get(code) is error_cls

    def test_unknown_access_kind_is_not_configuration(self) -> None:
        """Test strict-mode lookups are a separate failure."""
        error = UnknownAccessKind("Invoice: unknown access type \"publish\".")
        assert isinstance(error, CredentialCoreError)
        assert not isinstance(error, ConfigurationError)
        assert error.code == "UNKNOWN_ACCESS_KIND"

    def test_details_and_message(self) -> None:
        """Test keyword arguments become details."""
        error = UnknownCredentialReference("Invoice: approve cannot imply x", entity_type="Invoice", reference="x")
        assert str(error) == "Invoice: approve cannot imply x"
        assert error.message == "Invoice: approve cannot imply x"
        assert error.details == {"entity_type": "Invoice", "reference": "x"}

    def test_default_message(self) -> None:
        """Test errors without a message use the class default."""
        error = CredentialCoreError()
        assert error.message == "An internal error occurred"
        assert error.code == "INTERNAL_ERROR"

    def test_code_override(self) -> None:
        """Test a code can be given per instance."""
        assert ConfigurationError("broken", code="LEGACY_CONFIG").code == "LEGACY_CONFIG"


class TestErrorRegistry:
    """Tests for the error registry."""

    def test_all_registered(self) -> None:
        """Test the built-in codes are registered."""
        codes = error_registry.all()
        assert codes["CONFIGURATION_ERROR"] is ConfigurationError
        assert codes["UNKNOWN_ACCESS_KIND"] is UnknownAccessKind

    def test_register_custom_error(self) -> None:
        """Test the decorator registers application errors."""

        @register_error("ORDER_POLICY_ERROR")
        class OrderPolicyError(ConfigurationError):
            code = "ORDER_POLICY_ERROR"

        assert error_registry.get("ORDER_POLICY_ERROR") is OrderPolicyError
        assert OrderPolicyError("x").code == "ORDER_POLICY_ERROR"

    def test_unknown_code(self) -> None:
        """Test unknown codes return None."""
        assert error_registry.get("NOPE") is None
