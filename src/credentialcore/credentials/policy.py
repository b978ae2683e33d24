"""Compiled access policy for one entity type.

Provides:
- ``EntityAccessPolicy`` — immutable compiled credentials + field policies + hooks.
- ``build_policy()`` — merge defaults, compile relations, validate field policies.
- ``validate_field_policies()`` — the field policy table check.

A policy is built once while the entity type is set up and is read-only
afterwards, so it can be shared between threads without locking.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional, Union

from ..exceptions import ConfigurationError, InvalidFieldPolicy
from .closure import compile_relations, expand_credentials
from .constants import FORBIDDEN, SEPARATOR, AccessKind
from .formatting import format_credential, format_credentials
from .hooks import AccessHooks, soft_delete_view_hook
from .models import Credential, FieldPolicy, Requirement
from .registry import SOFT_DELETE_CREDENTIALS, CredentialRegistry

if TYPE_CHECKING:
    from ..config import AccessConfig

logger = logging.getLogger(__name__)

FieldSpec = Union[FieldPolicy, Mapping[str, Any]]


@dataclass(frozen=True, eq=False)
class EntityAccessPolicy:
    """Compiled access-control policy of one entity type.

    Attributes:
        entity_type: Namespace for formatted credentials (``"Invoice"``).
        credentials: Read-only ``name -> Credential`` map, relations closed.
        fields: Read-only ``field -> FieldPolicy`` map.
        hooks: Override hooks consulted before default resolution.
        soft_delete: Whether the soft-delete credentials were merged in.
        strict: Default resolution mode for this policy.
    """

    entity_type: str
    credentials: Mapping[str, Credential]
    fields: Mapping[str, FieldPolicy] = field(default_factory=lambda: MappingProxyType({}))
    hooks: AccessHooks = field(default_factory=AccessHooks)
    soft_delete: bool = False
    strict: bool = False

    def has_credential(self, name: str) -> bool:
        return name in self.credentials

    def credential(self, name: str) -> Credential:
        try:
            return self.credentials[name]
        except KeyError:
            raise KeyError(f"{self.entity_type} declares no credential {name!r}") from None

    def field_policy(self, field_name: str) -> Optional[FieldPolicy]:
        """Declared policy for ``field_name``; None when the field is not configured."""
        return self.fields.get(field_name)

    def format(self, name: str) -> str:
        return format_credential(self.entity_type, name, self.credentials)

    def format_all(self, names: Iterable[str]) -> tuple[str, ...]:
        return format_credentials(self.entity_type, names, self.credentials)

    def expand(self, held: Iterable[str]) -> tuple[str, ...]:
        """Bare names in ``held`` plus every credential they imply."""
        return expand_credentials(self.credentials, held)

    def credential_choices(self) -> list[tuple[str, str, str]]:
        """``(formatted name, label, description)`` for every credential, sorted by name.

        Feeds admin screens and principal-side credential stores.
        """
        return [
            (self.format(name), credential.label or name, credential.description or "")
            for name, credential in sorted(self.credentials.items())
        ]


def _normalize_requirement(
    entity_type: str,
    field_name: str,
    access_kind: str,
    value: Any,
    known: Mapping[str, Credential],
) -> Requirement:
    if value is None or value is FORBIDDEN:
        return value
    if value is False:
        return FORBIDDEN
    if isinstance(value, str):
        if value not in known:
            raise InvalidFieldPolicy(
                f"{entity_type}: {access_kind} credential {value!r} of field {field_name} is not declared.",
                entity_type=entity_type,
                field=field_name,
                access_kind=access_kind,
            )
        return value
    raise InvalidFieldPolicy(
        f"{entity_type}: {access_kind} credential has an invalid type for field {field_name}: {value!r}",
        entity_type=entity_type,
        field=field_name,
        access_kind=access_kind,
    )


def validate_field_policies(
    entity_type: str,
    fields: Mapping[str, FieldSpec],
    credentials: Mapping[str, Credential],
) -> dict[str, FieldPolicy]:
    """Validate field requirements against the compiled credentials.

    Each view / create / edit value must be a declared credential name,
    None, or FORBIDDEN (``False`` is accepted as FORBIDDEN).

    Raises:
        InvalidFieldPolicy: unknown access kind key, undeclared credential,
            or a value of any other type.
    """
    validated: dict[str, FieldPolicy] = {}
    for field_name, spec in fields.items():
        if not isinstance(field_name, str) or not field_name:
            raise InvalidFieldPolicy(
                f"{entity_type}: field names must be non-empty strings, got {field_name!r}",
                entity_type=entity_type,
                field=field_name,
            )

        if isinstance(spec, FieldPolicy):
            values = {kind: spec.requirement(kind) for kind in AccessKind.FIELD_KINDS}
        elif isinstance(spec, Mapping):
            unknown = sorted(set(spec) - set(AccessKind.FIELD_KINDS))
            if unknown:
                raise InvalidFieldPolicy(
                    f"{entity_type}: field {field_name} configures unknown access kinds {unknown}",
                    entity_type=entity_type,
                    field=field_name,
                    access_kind=unknown[0],
                )
            values = {kind: spec.get(kind) for kind in AccessKind.FIELD_KINDS}
        else:
            raise InvalidFieldPolicy(
                f"{entity_type}: field {field_name} must be configured with a mapping, got {spec!r}",
                entity_type=entity_type,
                field=field_name,
            )

        validated[field_name] = FieldPolicy(
            field=field_name,
            **{
                kind: _normalize_requirement(entity_type, field_name, kind, value, credentials)
                for kind, value in values.items()
            },
        )
    return validated


def build_policy(
    entity_type: str,
    credentials: Union[CredentialRegistry, Mapping[str, Credential], Iterable[Credential]] = (),
    fields: Optional[Mapping[str, FieldSpec]] = None,
    *,
    hooks: Optional[AccessHooks] = None,
    soft_delete: bool = False,
    include_defaults: bool = True,
    strict: Optional[bool] = None,
    config: Optional[AccessConfig] = None,
) -> EntityAccessPolicy:
    """Set up the access policy of an entity type.

    Steps:
    1. Start from the default credentials (unless ``include_defaults=False``)
       and, for soft-deletable types, the soft-delete credentials.
    2. Merge the declared credentials over them.
    3. Compile relations to their closed, mirrored form.
    4. Validate field policies against the compiled credentials.
    5. Freeze a copy of the hooks; soft-deletable types get the record-state
       ``view`` hook unless a ``view`` hook was registered.

    Args:
        entity_type: Entity type name, used as credential namespace.
        credentials: Declared credentials.
        fields: ``field -> FieldPolicy`` or ``field -> {"view": ..., "edit": ...}``.
        hooks: Override hooks. The policy keeps its own read-only copy.
        soft_delete: Merge the restore / view_deleted / view_undeleted credentials.
        include_defaults: Start from manager / create / view / edit / delete.
        strict: Default resolution mode; falls back to ``config.strict_resolution``.
        config: Supplies ``strict_resolution`` and ``soft_delete_field``.

    Raises:
        ConfigurationError: any declaration problem. Nothing is returned
            for a partially valid declaration.
    """
    if not isinstance(entity_type, str) or not entity_type.strip():
        raise ConfigurationError(f"entity_type must be a non-empty string, got {entity_type!r}")
    if SEPARATOR in entity_type:
        raise ConfigurationError(
            f"entity_type {entity_type!r} must not contain {SEPARATOR!r}",
            entity_type=entity_type,
        )

    if include_defaults:
        registry = CredentialRegistry.with_defaults(entity_type, soft_delete=soft_delete)
    else:
        registry = CredentialRegistry(entity_type)
        if soft_delete:
            registry.update(SOFT_DELETE_CREDENTIALS)

    if isinstance(credentials, CredentialRegistry):
        registry.update(credentials.snapshot())
    else:
        registry.update(credentials)

    compiled = compile_relations(registry, entity_type=entity_type)
    field_policies = validate_field_policies(entity_type, fields or {}, compiled)

    policy_hooks = hooks.copy() if hooks is not None else AccessHooks()
    if soft_delete and not policy_hooks.has_access_hook(AccessKind.VIEW):
        deleted_field = config.soft_delete_field if config is not None else "deleted_at"
        policy_hooks.register_access(AccessKind.VIEW, soft_delete_view_hook(deleted_field))

    if strict is None:
        strict = config.strict_resolution if config is not None else False

    policy = EntityAccessPolicy(
        entity_type=entity_type,
        credentials=MappingProxyType(compiled),
        fields=MappingProxyType(field_policies),
        hooks=policy_hooks.freeze(),
        soft_delete=soft_delete,
        strict=strict,
    )
    logger.info(
        "Access policy for %s compiled: %d credentials, %d field policies, %d hooks",
        entity_type,
        len(compiled),
        len(field_policies),
        len(policy_hooks),
    )
    return policy


__all__ = [
    "EntityAccessPolicy",
    "build_policy",
    "validate_field_policies",
]
