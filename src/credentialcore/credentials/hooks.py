"""Override hooks for credential resolution.

A hook replaces the default credential for one access kind (entity level)
or for one access kind on a field (field level). Hooks are registered
explicitly while the policy is set up:

    hooks = AccessHooks()

    @hooks.access("view")
    def view_credential(record):
        return "view_archived" if record.archived else NotImplemented

    @hooks.field("edit", field="iban")
    def iban_edit(record, field):
        return FORBIDDEN if record.locked else "edit_banking"

Hook return values:
- a credential name — used instead of the access kind;
- ``FORBIDDEN`` (field hooks) — deny regardless of principal;
- ``NotImplemented`` — the hook declines, default resolution applies.

Lookups return the tagged variant ``Hook(fn)`` or ``NO_HOOK``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Optional, Union

from .constants import AccessKind, Forbidden

HookResult = Union[str, Forbidden, type(NotImplemented)]
AccessHookFn = Callable[[Any], HookResult]
FieldHookFn = Callable[[Any, str], HookResult]


@dataclass(frozen=True)
class Hook:
    """A registered override function."""

    fn: Callable[..., HookResult]

    def __call__(self, *args: Any) -> HookResult:
        return self.fn(*args)


class NoHook:
    """Absence of a hook for a lookup key."""

    _instance: Optional[NoHook] = None

    def __new__(cls) -> NoHook:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_HOOK"


NO_HOOK = NoHook()

HookLookup = Union[Hook, NoHook]


class AccessHooks:
    """Hook table for one entity type.

    Entity-level hooks are keyed by access kind. Field-level hooks are keyed
    by ``(field, access_kind)``; a hook registered with ``field=None``
    applies to every field and is consulted only when no field-specific
    hook exists.

    Compiled policies hold a frozen table (see :meth:`freeze`); registering
    on it raises TypeError.
    """

    def __init__(self) -> None:
        self._access: Mapping[str, Hook] = {}
        self._fields: Mapping[tuple[Optional[str], str], Hook] = {}
        self._frozen = False

    # ── Registration ────────────────────────────────────

    def register_access(self, access_kind: str, fn: AccessHookFn) -> None:
        self._check_mutable()
        self._access[access_kind] = Hook(fn)  # type: ignore[index]

    def register_field(self, access_kind: str, fn: FieldHookFn, *, field: Optional[str] = None) -> None:
        self._check_mutable()
        self._fields[(field, access_kind)] = Hook(fn)  # type: ignore[index]

    def _check_mutable(self) -> None:
        if self._frozen:
            raise TypeError("Hooks of a compiled policy are read-only; register on a copy() and rebuild the policy")

    def access(self, access_kind: str) -> Callable[[AccessHookFn], AccessHookFn]:
        """Decorator form of :meth:`register_access`."""

        def decorator(fn: AccessHookFn) -> AccessHookFn:
            self.register_access(access_kind, fn)
            return fn

        return decorator

    def field(self, access_kind: str, *, field: Optional[str] = None) -> Callable[[FieldHookFn], FieldHookFn]:
        """Decorator form of :meth:`register_field`."""

        def decorator(fn: FieldHookFn) -> FieldHookFn:
            self.register_field(access_kind, fn, field=field)
            return fn

        return decorator

    # ── Lookup ──────────────────────────────────────────

    def lookup_access(self, access_kind: str) -> HookLookup:
        return self._access.get(access_kind, NO_HOOK)

    def lookup_field(self, field: str, access_kind: str) -> HookLookup:
        hook = self._fields.get((field, access_kind))
        if hook is None:
            hook = self._fields.get((None, access_kind))
        return hook if hook is not None else NO_HOOK

    def has_access_hook(self, access_kind: str) -> bool:
        return access_kind in self._access

    def access_kinds(self) -> tuple[str, ...]:
        return tuple(sorted(self._access))

    @property
    def frozen(self) -> bool:
        return self._frozen

    def copy(self) -> AccessHooks:
        """Mutable copy, also of a frozen table."""
        clone = AccessHooks()
        clone._access = dict(self._access)
        clone._fields = dict(self._fields)
        return clone

    def freeze(self) -> AccessHooks:
        """Read-only copy: registration raises TypeError, tables are MappingProxyType."""
        frozen = AccessHooks()
        frozen._access = MappingProxyType(dict(self._access))
        frozen._fields = MappingProxyType(dict(self._fields))
        frozen._frozen = True
        return frozen

    def __len__(self) -> int:
        return len(self._access) + len(self._fields)

    def __repr__(self) -> str:
        fields = sorted(f"{field or '*'}:{kind}" for field, kind in self._fields)
        return f"AccessHooks(access={list(self.access_kinds())!r}, fields={fields!r})"


def soft_delete_view_hook(deleted_field: str = "deleted_at") -> AccessHookFn:
    """Build the ``view`` hook for soft-deletable records.

    The record is ``deleted`` when its ``deleted_field`` (attribute, or key
    for mapping records) is not None. The hook answers ``view_deleted`` or
    ``view_undeleted``; without a record it declines.
    """

    def view_hook(record: Any) -> HookResult:
        if record is None:
            return NotImplemented
        if isinstance(record, Mapping):
            marker = record.get(deleted_field)
        else:
            marker = getattr(record, deleted_field, None)
        return AccessKind.VIEW_DELETED if marker is not None else AccessKind.VIEW_UNDELETED

    view_hook.__name__ = f"soft_delete_view_hook[{deleted_field}]"
    return view_hook


__all__ = [
    "NO_HOOK",
    "AccessHookFn",
    "AccessHooks",
    "FieldHookFn",
    "Hook",
    "HookLookup",
    "HookResult",
    "NoHook",
    "soft_delete_view_hook",
]
