"""Raw credential declarations per entity type.

Provides:
- ``DEFAULT_CREDENTIALS`` — manager / create / view / edit / delete.
- ``SOFT_DELETE_CREDENTIALS`` — restore / view_undeleted / view_deleted.
- ``CredentialRegistry`` — the mutable table that is fed to the compiler.

The registry holds declarations exactly as given. Relations are mirrored
and closed only by :func:`~credentialcore.credentials.closure.compile_relations`.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, Mapping

from ..exceptions import InvalidCredential
from .constants import SEPARATOR, AccessKind, Relation
from .models import Credential

logger = logging.getLogger(__name__)

# ── Default Credentials ─────────────────────────────────
# Every entity type starts from these four basic rights plus "manager".

DEFAULT_CREDENTIALS: dict[str, Credential] = {
    AccessKind.MANAGER: Credential(
        name=AccessKind.MANAGER,
        label="Exercise full control over a record",
        description="Can execute all possible actions on the record",
        subrights=(AccessKind.CREATE, AccessKind.VIEW, AccessKind.EDIT, AccessKind.DELETE),
    ),
    AccessKind.CREATE: Credential(
        name=AccessKind.CREATE,
        label="Create new record",
        description="Can create new records",
    ),
    AccessKind.VIEW: Credential(
        name=AccessKind.VIEW,
        label="View record",
        description="Can view records",
    ),
    AccessKind.EDIT: Credential(
        name=AccessKind.EDIT,
        label="Edit record",
        description="Can edit records",
        implies=(AccessKind.VIEW,),
    ),
    AccessKind.DELETE: Credential(
        name=AccessKind.DELETE,
        label="Delete record",
        description="Can delete records",
        implies=(AccessKind.VIEW,),
    ),
}

# ── Soft-delete Extension ───────────────────────────────
# Adds "restore" and splits "view" by deletion state. Must be merged
# before compilation so the injected relations get mirrored.

SOFT_DELETE_CREDENTIALS: dict[str, Credential] = {
    AccessKind.RESTORE: Credential(
        name=AccessKind.RESTORE,
        label="Restore record",
        description="Can restore records",
        implies=(AccessKind.VIEW_DELETED,),
        subright_of=(AccessKind.MANAGER,),
    ),
    AccessKind.VIEW_UNDELETED: Credential(
        name=AccessKind.VIEW_UNDELETED,
        label="View un-deleted records",
        description="Can view un-deleted records",
        subright_of=(AccessKind.VIEW,),
    ),
    AccessKind.VIEW_DELETED: Credential(
        name=AccessKind.VIEW_DELETED,
        label="View deleted records",
        description="Can view deleted records",
        subright_of=(AccessKind.VIEW,),
    ),
}


def validate_credential_name(name: object, *, entity_type: str | None = None) -> str:
    """Reject names that would break formatting.

    Raises:
        InvalidCredential: name is not a non-empty string, or contains
            the ``___`` separator.
    """
    if not isinstance(name, str) or not name.strip():
        raise InvalidCredential(
            f"{entity_type or '<unbound>'}: credential names must be non-empty strings, got {name!r}",
            entity_type=entity_type,
            credential=name,
        )
    if SEPARATOR in name:
        raise InvalidCredential(
            f"{entity_type or '<unbound>'}: credential name {name!r} must not contain {SEPARATOR!r}",
            entity_type=entity_type,
            credential=name,
        )
    return name


def merge_credential(base: Credential, override: Credential) -> Credential:
    """Merge ``override`` over ``base``.

    Label and description from ``override`` win when set; the four
    relation lists are unioned (base order first).
    """
    merged: dict[str, tuple[str, ...]] = {}
    for relation in Relation.ALL:
        merged[relation] = tuple(dict.fromkeys(base.relation(relation) + override.relation(relation)))
    return Credential(
        name=base.name,
        label=override.label if override.label is not None else base.label,
        description=override.description if override.description is not None else base.description,
        **merged,
    )


class CredentialRegistry:
    """In-memory table of raw credential declarations for one entity type.

    Example::

        registry = CredentialRegistry.with_defaults("Invoice", soft_delete=True)
        registry.declare("approve", label="Approve invoice", subright_of=["manager"])
        compiled = compile_relations(registry, entity_type="Invoice")
    """

    def __init__(self, entity_type: str | None = None) -> None:
        self.entity_type = entity_type
        self._credentials: dict[str, Credential] = {}

    @classmethod
    def with_defaults(cls, entity_type: str | None = None, *, soft_delete: bool = False) -> CredentialRegistry:
        """Registry pre-filled with the default (and optionally soft-delete) credentials."""
        registry = cls(entity_type)
        registry.update(DEFAULT_CREDENTIALS.values())
        if soft_delete:
            registry.update(SOFT_DELETE_CREDENTIALS.values())
        return registry

    def declare(
        self,
        name: str,
        *,
        label: str | None = None,
        description: str | None = None,
        implies: Iterable[str] = (),
        implied_by: Iterable[str] = (),
        subrights: Iterable[str] = (),
        subright_of: Iterable[str] = (),
    ) -> Credential:
        """Declare a credential, merging with an existing declaration of the same name."""
        return self.add(
            Credential(
                name=name,
                label=label,
                description=description,
                implies=tuple(implies),
                implied_by=tuple(implied_by),
                subrights=tuple(subrights),
                subright_of=tuple(subright_of),
            )
        )

    def add(self, credential: Credential) -> Credential:
        if not isinstance(credential, Credential):
            raise InvalidCredential(
                f"{self.entity_type or '<unbound>'}: credentials must be Credential instances, "
                f"got {type(credential).__name__}",
                entity_type=self.entity_type,
                credential_type=type(credential).__name__,
            )
        validate_credential_name(credential.name, entity_type=self.entity_type)
        for relation, reference in credential.references():
            if not isinstance(reference, str):
                raise InvalidCredential(
                    f"{self.entity_type or '<unbound>'}: {credential.name}.{relation} "
                    f"must list credential names, got {reference!r}",
                    entity_type=self.entity_type,
                    credential=credential.name,
                    relation=relation,
                )

        existing = self._credentials.get(credential.name)
        if existing is not None:
            logger.debug("Merging declaration of %s into existing %s credential", credential.name, self.entity_type)
            credential = merge_credential(existing, credential)
        self._credentials[credential.name] = credential
        return credential

    def update(self, credentials: Iterable[Credential] | Mapping[str, Credential]) -> None:
        """Add every credential; mapping keys must match the credential names."""
        if isinstance(credentials, Mapping):
            for name, credential in credentials.items():
                if isinstance(credential, Credential) and credential.name != name:
                    raise InvalidCredential(
                        f"{self.entity_type or '<unbound>'}: credential {credential.name!r} "
                        f"is registered under the key {name!r}",
                        entity_type=self.entity_type,
                        credential=credential.name,
                        key=name,
                    )
                self.add(credential)
            return
        for credential in credentials:
            self.add(credential)

    def snapshot(self) -> dict[str, Credential]:
        """Shallow copy of the declarations (credentials themselves are immutable)."""
        return dict(self._credentials)

    def names(self) -> tuple[str, ...]:
        return tuple(self._credentials)

    def get(self, name: str) -> Credential | None:
        return self._credentials.get(name)

    def __getitem__(self, name: str) -> Credential:
        return self._credentials[name]

    def __contains__(self, name: object) -> bool:
        return name in self._credentials

    def __iter__(self) -> Iterator[str]:
        return iter(self._credentials)

    def __len__(self) -> int:
        return len(self._credentials)

    def __repr__(self) -> str:
        return f"CredentialRegistry(entity_type={self.entity_type!r}, credentials={list(self._credentials)!r})"


__all__ = [
    "DEFAULT_CREDENTIALS",
    "SOFT_DELETE_CREDENTIALS",
    "CredentialRegistry",
    "merge_credential",
    "validate_credential_name",
]
