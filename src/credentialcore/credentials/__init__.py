"""Credential graph compiler and access evaluation.

Defines:
- AccessKind / FORBIDDEN / SEPARATOR: naming constants and the deny marker
- CredentialRegistry: raw declarations, with DEFAULT_CREDENTIALS and
  SOFT_DELETE_CREDENTIALS
- compile_relations(): mirror and close the four credential relations
- build_policy() / EntityAccessPolicy: compiled, immutable per-entity policy
- AccessHooks: explicit override hooks (Hook / NO_HOOK)
- resolve_entity_access() / resolve_field_access(): credential sets
- has_access() / has_field_access(): decisions against a principal
- PolicyCache: at-most-once compilation per entity type
"""

from .access import (
    CredentialHolder,
    StaticPrincipal,
    has_access,
    has_access_async,
    has_field_access,
    has_field_access_async,
)
from .cache import PolicyCache
from .closure import compile_relations, expand_credentials, is_closed
from .constants import FORBIDDEN, SEPARATOR, AccessKind, Forbidden, Relation
from .formatting import format_credential, format_credentials, split_credential
from .hooks import NO_HOOK, AccessHooks, Hook, NoHook, soft_delete_view_hook
from .models import Credential, FieldPolicy, ResolvedCredentialSet
from .policy import EntityAccessPolicy, build_policy, validate_field_policies
from .registry import (
    DEFAULT_CREDENTIALS,
    SOFT_DELETE_CREDENTIALS,
    CredentialRegistry,
)
from .resolver import resolve_entity_access, resolve_field_access

__all__ = [
    "DEFAULT_CREDENTIALS",
    "FORBIDDEN",
    "NO_HOOK",
    "SEPARATOR",
    "SOFT_DELETE_CREDENTIALS",
    "AccessHooks",
    "AccessKind",
    "Credential",
    "CredentialHolder",
    "CredentialRegistry",
    "EntityAccessPolicy",
    "FieldPolicy",
    "Forbidden",
    "Hook",
    "NoHook",
    "PolicyCache",
    "Relation",
    "ResolvedCredentialSet",
    "StaticPrincipal",
    "build_policy",
    "compile_relations",
    "expand_credentials",
    "format_credential",
    "format_credentials",
    "has_access",
    "has_access_async",
    "has_field_access",
    "has_field_access_async",
    "is_closed",
    "resolve_entity_access",
    "resolve_field_access",
    "soft_delete_view_hook",
    "split_credential",
    "validate_field_policies",
]
