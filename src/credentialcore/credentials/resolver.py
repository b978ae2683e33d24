"""Access resolution: which credentials satisfy an access kind.

``resolve_entity_access`` answers "which credentials let a principal do
``access_kind`` on this entity type"; ``resolve_field_access`` answers
the same question for one field, or returns FORBIDDEN.

Resolution order:
1. An override hook for the access kind (or field + access kind).
2. The access kind itself (entity level) or the field policy (field level).
3. Expansion: a declared credential resolves to itself plus every
   credential that implies it; an undeclared name resolves to itself.
4. Formatting to ``<entityType>___<credential>``.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

from ..exceptions import InvalidHookResult, UnknownAccessKind
from .constants import FORBIDDEN, Forbidden
from .hooks import Hook, HookResult
from .models import ResolvedCredentialSet
from .policy import EntityAccessPolicy

logger = logging.getLogger(__name__)

FieldResolution = Union[ResolvedCredentialSet, Forbidden]


def expand_requirement(policy: EntityAccessPolicy, credential: str) -> ResolvedCredentialSet:
    """``{credential} ∪ implied_by(credential)``, formatted."""
    declared = policy.credentials.get(credential)
    names = [credential, *declared.implied_by] if declared is not None else [credential]
    return ResolvedCredentialSet(policy.format_all(names))


def _invalid_hook_result(
    policy: EntityAccessPolicy,
    hook: Hook,
    access_kind: str,
    result: Any,
    field: Optional[str] = None,
) -> InvalidHookResult:
    target = f"{access_kind} on field {field}" if field is not None else access_kind
    return InvalidHookResult(
        f"{policy.entity_type}: hook {getattr(hook.fn, '__name__', hook.fn)!r} for {target} returned {result!r}",
        entity_type=policy.entity_type,
        access_kind=access_kind,
        field=field,
    )


def _ask_access_hook(policy: EntityAccessPolicy, access_kind: str, record: Any) -> Optional[str]:
    hook = policy.hooks.lookup_access(access_kind)
    if not isinstance(hook, Hook):
        return None

    result: HookResult = hook(record)
    if result is NotImplemented:
        return None
    if isinstance(result, str):
        return result
    raise _invalid_hook_result(policy, hook, access_kind, result)


def resolve_entity_access(
    policy: EntityAccessPolicy,
    access_kind: str,
    record: Any = None,
    *,
    strict: Optional[bool] = None,
) -> ResolvedCredentialSet:
    """Credentials that satisfy ``access_kind`` on the policy's entity type.

    Args:
        policy: Compiled entity policy.
        access_kind: ``"view"``, ``"edit"``, ... or any custom kind.
        record: Passed to the override hook (e.g. to read deletion state).
        strict: Raise for unknown access kinds. Defaults to ``policy.strict``.

    Returns:
        Formatted names; holding any one of them grants access.

    Raises:
        UnknownAccessKind: strict mode, and the kind has neither a hook
            answer nor a declared credential.

    Example::

        resolve_entity_access(invoice_policy, "view")
        # ResolvedCredentialSet(['Invoice___view', 'Invoice___delete',
        #                        'Invoice___edit', 'Invoice___manager'])
    """
    if strict is None:
        strict = policy.strict

    credential = _ask_access_hook(policy, access_kind, record)
    if credential is None:
        if strict and not policy.has_credential(access_kind):
            raise UnknownAccessKind(
                f'{policy.entity_type}: unknown access type "{access_kind}".',
                entity_type=policy.entity_type,
                access_kind=access_kind,
            )
        credential = access_kind

    resolved = expand_requirement(policy, credential)
    logger.debug(
        "Resolved %s access on %s via %s: %s",
        access_kind,
        policy.entity_type,
        credential,
        list(resolved),
    )
    return resolved


def resolve_field_access(
    policy: EntityAccessPolicy,
    field: str,
    access_kind: str,
    record: Any = None,
) -> FieldResolution:
    """Field-level credentials for ``access_kind`` on ``field``, or FORBIDDEN.

    An empty set means the field adds no requirement beyond the
    entity-level check. Fields without a declared policy and fields
    declared with ``None`` behave the same.

    Field hooks may answer a credential name, FORBIDDEN (``False`` is read
    as FORBIDDEN), ``None`` for "no field requirement", or
    ``NotImplemented`` to fall back to the field policy.
    """
    hook = policy.hooks.lookup_field(field, access_kind)
    if isinstance(hook, Hook):
        result: HookResult = hook(record, field)
        if result is FORBIDDEN or result is False:
            logger.debug("Field %s.%s is forbidden for %s by hook", policy.entity_type, field, access_kind)
            return FORBIDDEN
        if result is None:
            return ResolvedCredentialSet()
        if isinstance(result, str):
            return expand_requirement(policy, result)
        if result is not NotImplemented:
            raise _invalid_hook_result(policy, hook, access_kind, result, field)

    field_policy = policy.field_policy(field)
    requirement = field_policy.requirement(access_kind) if field_policy is not None else None

    if requirement is None:
        return ResolvedCredentialSet()
    if requirement is FORBIDDEN:
        logger.debug("Field %s.%s is forbidden for %s", policy.entity_type, field, access_kind)
        return FORBIDDEN
    return expand_requirement(policy, requirement)


__all__ = [
    "FieldResolution",
    "expand_requirement",
    "resolve_entity_access",
    "resolve_field_access",
]
