"""Tests for credential registries, formatting and compiled policies."""

from __future__ import annotations

from types import MappingProxyType

import pytest
from credentialcore import (
    FORBIDDEN,
    AccessConfig,
    AccessHooks,
    AccessKind,
    ConfigurationError,
    Credential,
    CredentialRegistry,
    EntityAccessPolicy,
    FieldPolicy,
    InvalidCredential,
    InvalidFieldPolicy,
    UnknownCredentialReference,
    build_policy,
    format_credential,
    format_credentials,
    resolve_entity_access,
    split_credential,
)
from credentialcore.credentials.registry import merge_credential


class TestCredentialRegistry:
    """Tests for CredentialRegistry."""

    def test_with_defaults(self) -> None:
        """Test default credentials are present."""
        registry = CredentialRegistry.with_defaults("Invoice")
        assert registry.names() == ("manager", "create", "view", "edit", "delete")
        assert registry.entity_type == "Invoice"

    def test_with_soft_delete(self) -> None:
        """Test soft-delete credentials are merged in."""
        registry = CredentialRegistry.with_defaults("Invoice", soft_delete=True)
        assert {"restore", "view_deleted", "view_undeleted"} <= set(registry)
        assert len(registry) == 8

    def test_declare_new_credential(self) -> None:
        """Test declaring a credential keeps it as given."""
        registry = CredentialRegistry("Invoice")
        credential = registry.declare("approve", label="Approve invoice", implies=["view"])
        assert credential == Credential("approve", label="Approve invoice", implies=("view",))
        assert registry["approve"] is credential
        assert "approve" in registry

    def test_redeclare_unions_relations(self) -> None:
        """Test redeclaring merges relation lists and keeps base labels."""
        registry = CredentialRegistry.with_defaults("Invoice")
        registry.declare("edit", implies=["create"])
        edit = registry["edit"]
        assert edit.implies == ("view", "create")
        assert edit.label == "Edit record"

    def test_redeclare_overrides_label(self) -> None:
        """Test label and description of a redeclaration win."""
        registry = CredentialRegistry.with_defaults("Invoice")
        registry.declare("view", label="Read invoice", description="Can read invoices")
        assert registry["view"].label == "Read invoice"
        assert registry["view"].description == "Can read invoices"

    def test_merge_credential_deduplicates(self) -> None:
        """Test merge keeps base order and drops duplicates."""
        merged = merge_credential(
            Credential("edit", implies=("view", "create")),
            Credential("edit", implies=("create", "delete")),
        )
        assert merged.implies == ("view", "create", "delete")

    @pytest.mark.parametrize("name", ["", "   ", "Invoice___edit", None, 42])
    def test_invalid_names_rejected(self, name: object) -> None:
        """Test names that cannot be formatted are rejected."""
        registry = CredentialRegistry("Invoice")
        with pytest.raises(InvalidCredential):
            registry.add(Credential(name))  # type: ignore[arg-type]

    def test_non_string_reference_rejected(self) -> None:
        """Test relation lists must hold names."""
        registry = CredentialRegistry("Invoice")
        with pytest.raises(InvalidCredential, match="must list credential names"):
            registry.add(Credential("edit", implies=(1,)))  # type: ignore[arg-type]

    @pytest.mark.parametrize("credential", [{"name": "approve"}, "approve", None])
    def test_non_credential_rejected(self, credential: object) -> None:
        """Test only Credential instances can be registered."""
        registry = CredentialRegistry("Invoice")
        with pytest.raises(InvalidCredential, match="Invoice: credentials must be Credential instances") as exc_info:
            registry.add(credential)  # type: ignore[arg-type]
        assert exc_info.value.details["credential_type"] == type(credential).__name__

    def test_build_rejects_non_credential(self) -> None:
        """Test malformed declarations surface as configuration errors."""
        with pytest.raises(InvalidCredential) as exc_info:
            build_policy("Invoice", [{"name": "approve"}])  # type: ignore[list-item]
        assert isinstance(exc_info.value, ConfigurationError)
        assert exc_info.value.code == "INVALID_CREDENTIAL"
        assert exc_info.value.details["credential_type"] == "dict"

    def test_mapping_key_must_match_name(self) -> None:
        """Test a mapping cannot register a credential under another name."""
        registry = CredentialRegistry("Invoice")
        with pytest.raises(InvalidCredential, match="'other' is registered under the key 'approve'"):
            registry.update({"approve": Credential("other")})
        assert "other" not in registry

    def test_build_rejects_mismatched_key(self) -> None:
        """Test build_policy applies the same key check."""
        with pytest.raises(InvalidCredential):
            build_policy("Invoice", {"approve": Credential("other")})

    def test_snapshot_is_a_copy(self) -> None:
        """Test snapshot does not expose the internal table."""
        registry = CredentialRegistry.with_defaults()
        snapshot = registry.snapshot()
        snapshot.pop("manager")
        assert "manager" in registry

    def test_get_missing(self) -> None:
        """Test get returns None for unknown names."""
        assert CredentialRegistry().get("approve") is None


class TestFormatting:
    """Tests for credential name formatting."""

    def test_declared_name_is_namespaced(self) -> None:
        """Test declared names get the entity type prefix."""
        assert format_credential("Invoice", "edit", {"edit"}) == "Invoice___edit"

    def test_undeclared_name_passes_through(self) -> None:
        """Test global credentials are not namespaced."""
        assert format_credential("Invoice", "superuser", {"edit"}) == "superuser"

    def test_formatting_is_idempotent(self) -> None:
        """Test already formatted names are left alone."""
        known = {"edit"}
        once = format_credential("Invoice", "edit", known)
        assert format_credential("Invoice", once, known) == once

    def test_non_string_rejected(self) -> None:
        """Test only strings can be formatted."""
        with pytest.raises(TypeError, match="Invalid credential type"):
            format_credential("Invoice", 3, {"edit"})  # type: ignore[arg-type]

    def test_format_credentials_keeps_order(self) -> None:
        """Test order is kept and duplicates dropped."""
        result = format_credentials("Invoice", ["view", "superuser", "view", "edit"], {"view", "edit"})
        assert result == ("Invoice___view", "superuser", "Invoice___edit")

    def test_split_credential(self) -> None:
        """Test formatted names split back into entity type and name."""
        assert split_credential("Invoice___edit") == ("Invoice", "edit")
        assert split_credential("superuser") == (None, "superuser")
        assert split_credential("___edit") == (None, "___edit")


class TestBuildPolicy:
    """Tests for build_policy()."""

    def test_defaults_compiled(self) -> None:
        """Test the default graph is compiled and closed."""
        policy = build_policy("Invoice")
        assert isinstance(policy, EntityAccessPolicy)
        assert policy.credential("view").implied_by == ("delete", "edit", "manager")
        assert policy.credential("manager").subrights == ("create", "delete", "edit", "view")
        assert policy.soft_delete is False
        assert policy.strict is False

    def test_policy_is_read_only(self) -> None:
        """Test compiled mappings cannot be changed."""
        policy = build_policy("Invoice")
        assert isinstance(policy.credentials, MappingProxyType)
        with pytest.raises(TypeError):
            policy.credentials["approve"] = Credential("approve")  # type: ignore[index]

    def test_custom_credential_joins_graph(self) -> None:
        """Test a custom sub-right of manager is implied by manager."""
        policy = build_policy(
            "Invoice",
            [Credential("approve", subright_of=("manager",), implies=("view",))],
        )
        assert policy.credential("approve").implied_by == ("manager",)
        assert "approve" in policy.credential("view").implied_by
        assert "approve" in policy.credential("manager").implies

    def test_accepts_registry(self) -> None:
        """Test a CredentialRegistry can be passed directly."""
        registry = CredentialRegistry("Invoice")
        registry.declare("approve", subright_of=["manager"])
        policy = build_policy("Invoice", registry)
        assert policy.has_credential("approve")

    def test_without_defaults(self) -> None:
        """Test include_defaults=False compiles only the declared graph."""
        policy = build_policy(
            "Report",
            {
                "manager": Credential("manager", subrights=("edit",)),
                "edit": Credential("edit", implies=("view",)),
                "view": Credential("view"),
            },
            include_defaults=False,
        )
        assert set(policy.credentials) == {"manager", "edit", "view"}
        assert policy.credential("view").implied_by == ("edit", "manager")

    def test_soft_delete_merged_before_compile(self) -> None:
        """Test soft-delete relations are mirrored like declared ones."""
        policy = build_policy("Invoice", soft_delete=True)
        assert policy.soft_delete is True
        assert policy.credential("restore").subright_of == ("manager",)
        assert "restore" in policy.credential("view_deleted").implied_by
        assert policy.hooks.has_access_hook(AccessKind.VIEW)

    def test_soft_delete_keeps_user_view_hook(self) -> None:
        """Test a registered view hook is not replaced."""

        def custom_view(record):
            return NotImplemented

        hooks = AccessHooks()
        hooks.register_access("view", custom_view)
        policy = build_policy("Invoice", soft_delete=True, hooks=hooks)
        assert policy.hooks.lookup_access("view").fn is custom_view

    def test_hooks_are_copied(self) -> None:
        """Test later registrations do not leak into a built policy."""
        hooks = AccessHooks()
        policy = build_policy("Invoice", hooks=hooks)
        hooks.register_access("edit", lambda record: "manager")
        assert not policy.hooks.has_access_hook("edit")

    def test_policy_hooks_are_read_only(self) -> None:
        """Test hooks of a built policy cannot be changed afterwards."""
        policy = build_policy("Invoice")
        assert policy.hooks.frozen is True
        with pytest.raises(TypeError, match="read-only"):
            policy.hooks.register_access("view", lambda record: "manager")
        with pytest.raises(TypeError, match="read-only"):
            policy.hooks.register_field("view", lambda record, field: FORBIDDEN)
        assert resolve_entity_access(policy, "view").names[0] == "Invoice___view"

    def test_hook_tables_are_read_only(self) -> None:
        """Test the frozen tables reject direct item assignment."""
        policy = build_policy("Invoice", soft_delete=True)
        with pytest.raises(TypeError):
            policy.hooks._access["view"] = None  # type: ignore[index]
        assert policy.hooks.has_access_hook("view")

    def test_unknown_reference_fails_whole_build(self) -> None:
        """Test no policy is returned for a dangling reference."""
        with pytest.raises(UnknownCredentialReference, match="approve cannot imply nonexistent"):
            build_policy("Invoice", [Credential("approve", implies=("nonexistent",))])

    @pytest.mark.parametrize("entity_type", ["", "  ", "Invoice___Line", None])
    def test_invalid_entity_type(self, entity_type: object) -> None:
        """Test entity types that cannot namespace credentials are rejected."""
        with pytest.raises(ConfigurationError):
            build_policy(entity_type)  # type: ignore[arg-type]

    def test_strict_from_config(self) -> None:
        """Test strict mode defaults to the configured value."""
        config = AccessConfig(strict_resolution=True)
        assert build_policy("Invoice", config=config).strict is True
        assert build_policy("Invoice", config=config, strict=False).strict is False

    def test_format_and_expand(self) -> None:
        """Test policy helpers format names and expand held credentials."""
        policy = build_policy("Invoice")
        assert policy.format("edit") == "Invoice___edit"
        assert policy.format_all(["edit", "superuser"]) == ("Invoice___edit", "superuser")
        assert policy.expand(["edit"]) == ("edit", "view")

    def test_unknown_credential_lookup(self) -> None:
        """Test credential() names the entity type in the KeyError."""
        with pytest.raises(KeyError, match="Invoice declares no credential 'approve'"):
            build_policy("Invoice").credential("approve")

    def test_credential_choices(self) -> None:
        """Test admin choices list formatted names with labels."""
        choices = build_policy("Invoice").credential_choices()
        assert [name for name, _, _ in choices] == [
            "Invoice___create",
            "Invoice___delete",
            "Invoice___edit",
            "Invoice___manager",
            "Invoice___view",
        ]
        assert ("Invoice___edit", "Edit record", "Can edit records") in choices

    def test_build_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test compilation is logged at INFO."""
        with caplog.at_level("INFO", logger="credentialcore"):
            build_policy("Invoice")
        assert "Access policy for Invoice compiled" in caplog.text


class TestFieldPolicies:
    """Tests for field policy validation."""

    def test_mapping_values_normalized(self, invoice_policy: EntityAccessPolicy) -> None:
        """Test False becomes FORBIDDEN and missing kinds become None."""
        iban = invoice_policy.field_policy("iban")
        assert iban == FieldPolicy("iban", view="manager", create=None, edit=FORBIDDEN)
        assert iban.is_forbidden("edit")
        assert not iban.is_forbidden("view")

    def test_unconfigured_field(self, invoice_policy: EntityAccessPolicy) -> None:
        """Test fields without a policy return None."""
        assert invoice_policy.field_policy("number") is None

    def test_field_policy_instance_accepted(self) -> None:
        """Test FieldPolicy objects can be passed directly."""
        policy = build_policy("Invoice", fields={"iban": FieldPolicy("iban", view=FORBIDDEN)})
        assert policy.field_policy("iban").view is FORBIDDEN

    def test_requirement_for_non_field_kind(self) -> None:
        """Test field policies never refine delete or manager."""
        assert FieldPolicy("iban", view="manager").requirement("delete") is None

    def test_undeclared_credential_rejected(self) -> None:
        """Test field values must be declared credentials."""
        with pytest.raises(InvalidFieldPolicy, match="'approve' of field total is not declared"):
            build_policy("Invoice", fields={"total": {"edit": "approve"}})

    @pytest.mark.parametrize("value", [True, 3, ["manager"]])
    def test_invalid_type_rejected(self, value: object) -> None:
        """Test non-name values are rejected with the field named."""
        with pytest.raises(InvalidFieldPolicy, match="invalid type for field total"):
            build_policy("Invoice", fields={"total": {"edit": value}})

    def test_unknown_kind_rejected(self) -> None:
        """Test only view / create / edit can be configured."""
        with pytest.raises(InvalidFieldPolicy, match="unknown access kinds"):
            build_policy("Invoice", fields={"total": {"delete": "manager"}})

    def test_non_mapping_rejected(self) -> None:
        """Test a field must be configured with a mapping."""
        with pytest.raises(InvalidFieldPolicy):
            build_policy("Invoice", fields={"total": "manager"})

    def test_error_is_configuration_error(self) -> None:
        """Test field errors share the configuration error base."""
        with pytest.raises(ConfigurationError) as exc_info:
            build_policy("Invoice", fields={"total": {"edit": "approve"}})
        assert exc_info.value.code == "INVALID_FIELD_POLICY"
        assert exc_info.value.details["field"] == "total"
