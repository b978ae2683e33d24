"""Credential name formatting.

Credentials declared on an entity type are namespaced as
``<entityType>___<credential>`` so that ``Invoice___edit`` and
``Customer___edit`` stay distinct in a principal's credential store.
Names the entity type does not declare (global credentials, or names
that are already namespaced) pass through unchanged, which makes
formatting idempotent.
"""

from __future__ import annotations

from typing import Container, Iterable

from .constants import SEPARATOR


def format_credential(entity_type: str, name: str, known: Container[str]) -> str:
    """Namespace ``name`` if it is one of the entity type's credentials.

    Args:
        entity_type: Entity type owning the credentials (e.g. ``"Invoice"``).
        name: Bare or already formatted credential name.
        known: Names declared for ``entity_type``.

    Returns:
        ``"Invoice___edit"`` for a declared name, ``name`` otherwise.
    """
    if not isinstance(name, str):
        raise TypeError(f"Invalid credential type: {name!r}")
    if name in known:
        return f"{entity_type}{SEPARATOR}{name}"
    return name


def format_credentials(entity_type: str, names: Iterable[str], known: Container[str]) -> tuple[str, ...]:
    """Format every name, keeping order and dropping duplicates."""
    return tuple(dict.fromkeys(format_credential(entity_type, name, known) for name in names))


def split_credential(formatted: str) -> tuple[str | None, str]:
    """Inverse of :func:`format_credential`.

    Returns ``(entity_type, name)``, or ``(None, formatted)`` for a name
    that carries no namespace.
    """
    entity_type, sep, name = formatted.rpartition(SEPARATOR)
    if not sep or not entity_type:
        return None, formatted
    return entity_type, name


__all__ = [
    "format_credential",
    "format_credentials",
    "split_credential",
]
