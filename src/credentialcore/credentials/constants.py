"""Credential constants for credentialcore.

Provides:
- ``AccessKind`` — the built-in access kinds / credential names.
- ``Relation`` — the four relation list names of a credential.
- ``FORBIDDEN`` — marker for "deny regardless of principal".
- ``SEPARATOR`` — the ``<entityType>___<credential>`` naming separator.
"""

from __future__ import annotations

from enum import Enum

# Formatted names are ``f"{entity_type}{SEPARATOR}{credential}"``. Credential
# stores on the principal side rely on this exact separator.
SEPARATOR = "___"


class AccessKind:
    """Built-in access kinds.

    Each is also the name of a default credential, so ``has_access(p, policy,
    AccessKind.EDIT)`` resolves to the ``edit`` credential plus everything that
    implies it.
    """

    MANAGER = "manager"
    CREATE = "create"
    VIEW = "view"
    EDIT = "edit"
    DELETE = "delete"

    # Soft-delete extension
    RESTORE = "restore"
    VIEW_UNDELETED = "view_undeleted"
    VIEW_DELETED = "view_deleted"

    # Kinds a field policy can refine
    FIELD_KINDS = ("view", "create", "edit")


class Relation:
    """Names of the four relation lists carried by every credential."""

    IMPLIES = "implies"
    IMPLIED_BY = "implied_by"
    SUBRIGHTS = "subrights"
    SUBRIGHT_OF = "subright_of"

    ALL = ("implies", "implied_by", "subrights", "subright_of")


class Forbidden(Enum):
    """Resolution outcome meaning access is denied unconditionally.

    Not an error: field policies and hooks return it as a normal answer.
    """

    FORBIDDEN = "forbidden"

    def __repr__(self) -> str:
        return "FORBIDDEN"


FORBIDDEN = Forbidden.FORBIDDEN


__all__ = [
    "FORBIDDEN",
    "SEPARATOR",
    "AccessKind",
    "Forbidden",
    "Relation",
]
