"""Access-check entry points.

Resolves the credentials an operation needs and asks the principal
whether it holds them. The principal is always passed explicitly; there
is no ambient "current user".

Combinators:
- ``has_access`` — the principal must hold ANY credential of the
  resolved set (holding the credential or anything implying it).
- ``has_field_access`` — the principal must satisfy the entity-level
  set AND the field-level set (OR inside each group). A field right
  refines the entity right, it never replaces it. FORBIDDEN fields are
  denied before the principal is consulted.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Optional, Protocol, Sequence, Union, runtime_checkable

from ..exceptions import PrincipalError
from .constants import FORBIDDEN
from .policy import EntityAccessPolicy
from .resolver import resolve_entity_access, resolve_field_access

logger = logging.getLogger(__name__)

# A credential name, or a nested group evaluated with the opposite combinator.
CredentialSpec = Union[str, Sequence["CredentialSpec"]]


@runtime_checkable
class CredentialHolder(Protocol):
    """Anything that can answer "do you hold these credentials?".

    ``credentials`` is a sequence of formatted names and nested groups. A
    nested group is evaluated with the opposite combinator, so
    ``has_credential([["A", "B"], ["C"]], use_and=True)`` means
    ``(A or B) and C``. ``record`` is the entity instance being accessed,
    for holders whose answer depends on it.

    Async holders return an awaitable; use the ``*_async`` checks for them.
    """

    def has_credential(
        self,
        credentials: Sequence[CredentialSpec],
        use_and: bool = True,
        record: Any = None,
    ) -> Union[bool, Awaitable[bool]]: ...


@dataclass(frozen=True)
class StaticPrincipal:
    """Principal holding a fixed set of formatted credentials.

    Example::

        clerk = StaticPrincipal(("Invoice___edit",), principal_id="clerk-7")
        has_access(clerk, invoice_policy, "view")  # True, edit implies view
    """

    credentials: tuple[str, ...] = ()
    principal_id: Optional[str] = None
    _held: frozenset[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_held", frozenset(self.credentials))

    def has_credential(
        self,
        credentials: Union[str, Sequence[CredentialSpec]],
        use_and: bool = True,
        record: Any = None,
    ) -> bool:
        if isinstance(credentials, str):
            return credentials in self._held

        for item in credentials:
            if isinstance(item, str):
                matched = item in self._held
            else:
                matched = self.has_credential(item, not use_and, record)
            if use_and and not matched:
                return False
            if not use_and and matched:
                return True
        return use_and


def _require_principal(principal: Any) -> CredentialHolder:
    if principal is None:
        raise PrincipalError("An access check needs a principal; none was supplied.")
    if not callable(getattr(principal, "has_credential", None)):
        raise PrincipalError(
            f"Principal must implement has_credential(credentials, use_and, record), got {type(principal).__name__}",
            principal_type=type(principal).__name__,
        )
    return principal


def _entity_request(
    policy: EntityAccessPolicy,
    access_kind: str,
    record: Any,
    strict: Optional[bool],
) -> list[str]:
    return list(resolve_entity_access(policy, access_kind, record, strict=strict))


def _field_request(
    policy: EntityAccessPolicy,
    field_name: str,
    access_kind: str,
    record: Any,
    strict: Optional[bool],
) -> Optional[list[list[str]]]:
    """Nested groups for a field check, or None when the field is forbidden."""
    field_set = resolve_field_access(policy, field_name, access_kind, record)
    if field_set is FORBIDDEN:
        return None
    groups = [_entity_request(policy, access_kind, record, strict)]
    if field_set:
        groups.append(list(field_set))
    return groups


def _sync_answer(answer: Union[bool, Awaitable[bool]], check: str) -> bool:
    if inspect.isawaitable(answer):
        if inspect.iscoroutine(answer):
            answer.close()
        raise PrincipalError(
            f"Principal answered {check} with an awaitable; use {check}_async for async principals.",
        )
    return bool(answer)


def _log_decision(
    policy: EntityAccessPolicy,
    access_kind: str,
    granted: bool,
    field_name: Optional[str] = None,
) -> None:
    logger.debug(
        "%s %s%s -> %s",
        access_kind,
        policy.entity_type,
        f".{field_name}" if field_name else "",
        "granted" if granted else "denied",
        extra={"entity_type": policy.entity_type},
    )


def has_access(
    principal: Any,
    policy: EntityAccessPolicy,
    access_kind: str,
    record: Any = None,
    *,
    strict: Optional[bool] = None,
) -> bool:
    """Check whether ``principal`` may perform ``access_kind`` on the entity type.

    Args:
        principal: A :class:`CredentialHolder`.
        policy: Compiled entity policy.
        access_kind: ``"view"``, ``"edit"``, ...
        record: The entity instance, passed to hooks and to the principal.
        strict: See :func:`resolve_entity_access`.

    Raises:
        PrincipalError: ``principal`` is None or has no ``has_credential``.
        UnknownAccessKind: strict resolution of an unknown access kind.
    """
    holder = _require_principal(principal)
    credentials = _entity_request(policy, access_kind, record, strict)
    granted = _sync_answer(holder.has_credential(credentials, False, record), "has_access")
    _log_decision(policy, access_kind, granted)
    return granted


def has_field_access(
    principal: Any,
    policy: EntityAccessPolicy,
    field_name: str,
    access_kind: str,
    record: Any = None,
    *,
    strict: Optional[bool] = None,
) -> bool:
    """Check entity-level AND field-level access for ``field_name``.

    Returns False without consulting the principal when the field is
    FORBIDDEN for ``access_kind``.
    """
    holder = _require_principal(principal)
    groups = _field_request(policy, field_name, access_kind, record, strict)
    if groups is None:
        _log_decision(policy, access_kind, False, field_name)
        return False
    granted = _sync_answer(holder.has_credential(groups, True, record), "has_field_access")
    _log_decision(policy, access_kind, granted, field_name)
    return granted


async def has_access_async(
    principal: Any,
    policy: EntityAccessPolicy,
    access_kind: str,
    record: Any = None,
    *,
    strict: Optional[bool] = None,
) -> bool:
    """:func:`has_access` for principals whose ``has_credential`` may be async."""
    holder = _require_principal(principal)
    credentials = _entity_request(policy, access_kind, record, strict)
    answer = holder.has_credential(credentials, False, record)
    if inspect.isawaitable(answer):
        answer = await answer
    granted = bool(answer)
    _log_decision(policy, access_kind, granted)
    return granted


async def has_field_access_async(
    principal: Any,
    policy: EntityAccessPolicy,
    field_name: str,
    access_kind: str,
    record: Any = None,
    *,
    strict: Optional[bool] = None,
) -> bool:
    """:func:`has_field_access` for principals whose ``has_credential`` may be async."""
    holder = _require_principal(principal)
    groups = _field_request(policy, field_name, access_kind, record, strict)
    if groups is None:
        _log_decision(policy, access_kind, False, field_name)
        return False
    answer = holder.has_credential(groups, True, record)
    if inspect.isawaitable(answer):
        answer = await answer
    granted = bool(answer)
    _log_decision(policy, access_kind, granted, field_name)
    return granted


__all__ = [
    "CredentialHolder",
    "CredentialSpec",
    "StaticPrincipal",
    "has_access",
    "has_access_async",
    "has_field_access",
    "has_field_access_async",
]
