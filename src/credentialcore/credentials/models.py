"""Value types shared by the compiler, resolver and evaluator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Union

from .constants import FORBIDDEN, AccessKind, Forbidden, Relation

# A field requirement: a credential name, None (no extra requirement) or FORBIDDEN.
Requirement = Union[str, None, Forbidden]


@dataclass(frozen=True)
class Credential:
    """A named capability and its relations to other credentials of the same entity type.

    Attributes:
        name: Unique name within the entity type (e.g. ``"edit"``).
        label: Human readable name (``"Edit record"``).
        description: Longer explanation for admin tooling.
        implies: Credentials satisfied by holding this one.
        implied_by: Credentials whose holders also satisfy this one.
        subrights: Credentials this one is the parent of.
        subright_of: Credentials this one is a child of.

    Relation tuples are sorted once the credential has been compiled.
    """

    name: str
    label: str | None = None
    description: str | None = None
    implies: tuple[str, ...] = ()
    implied_by: tuple[str, ...] = ()
    subrights: tuple[str, ...] = ()
    subright_of: tuple[str, ...] = ()

    def relation(self, relation: str) -> tuple[str, ...]:
        """Return one of the four relation tuples by name."""
        if relation not in Relation.ALL:
            raise ValueError(f"Unknown relation: {relation}")
        return getattr(self, relation)

    def references(self) -> Iterator[tuple[str, str]]:
        """Yield ``(relation, credential_name)`` for every outgoing reference."""
        for relation in Relation.ALL:
            for name in getattr(self, relation):
                yield relation, name


@dataclass(frozen=True)
class FieldPolicy:
    """Per-field credential requirements for view / create / edit."""

    field: str
    view: Requirement = None
    create: Requirement = None
    edit: Requirement = None

    def requirement(self, access_kind: str) -> Requirement:
        """Requirement for ``access_kind``; kinds a field cannot refine yield None."""
        if access_kind not in AccessKind.FIELD_KINDS:
            return None
        return getattr(self, access_kind)

    def is_forbidden(self, access_kind: str) -> bool:
        return self.requirement(access_kind) is FORBIDDEN


class ResolvedCredentialSet:
    """Ordered, duplicate-free set of formatted credential names.

    The evaluator treats it as "satisfy any member". Order is the order of
    first occurrence: the requested credential first, then the credentials
    that imply it.
    """

    __slots__ = ("_names",)

    def __init__(self, names: Iterable[str] = ()) -> None:
        self._names: tuple[str, ...] = tuple(dict.fromkeys(names))

    @property
    def names(self) -> tuple[str, ...]:
        return self._names

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __bool__(self) -> bool:
        return bool(self._names)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ResolvedCredentialSet):
            return set(self._names) == set(other._names)
        if isinstance(other, (set, frozenset)):
            return set(self._names) == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(frozenset(self._names))

    def __repr__(self) -> str:
        return f"ResolvedCredentialSet({list(self._names)!r})"


__all__ = [
    "Credential",
    "FieldPolicy",
    "Requirement",
    "ResolvedCredentialSet",
]
