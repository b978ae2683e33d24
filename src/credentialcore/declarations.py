"""Declarative access-control input.

Pydantic models for the configuration format consumed at policy-load
time, plus YAML loading. A declaration file maps model names to their
access-control section:

.. code-block:: yaml

    Invoice:
      soft_delete: true
      credentials:
        approve:
          name: Approve invoice
          subright_of: [manager]
          implies: [view]
      fields:
        iban:
          view: manager
          edit: false        # forbidden
        total:
          edit: approve

Malformed input is rejected here, at load time, with a
:class:`~credentialcore.exceptions.ConfigurationError`.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .config import AccessConfig
from .credentials.constants import FORBIDDEN, AccessKind
from .credentials.hooks import AccessHooks
from .credentials.models import Credential, Requirement
from .credentials.policy import EntityAccessPolicy, build_policy
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class CredentialDeclaration(BaseModel):
    """One credential as written in a declaration.

    ``name`` is accepted as an alias of ``label`` (the human readable name).
    """

    label: Optional[str] = Field(default=None, alias="name")
    description: Optional[str] = None
    implies: list[str] = Field(default_factory=list)
    implied_by: list[str] = Field(default_factory=list)
    subrights: list[str] = Field(default_factory=list)
    subright_of: list[str] = Field(default_factory=list)

    model_config = {
        "extra": "forbid",
        "populate_by_name": True,
    }

    def to_credential(self, name: str) -> Credential:
        return Credential(
            name=name,
            label=self.label,
            description=self.description,
            implies=tuple(self.implies),
            implied_by=tuple(self.implied_by),
            subrights=tuple(self.subrights),
            subright_of=tuple(self.subright_of),
        )


class FieldPolicyDeclaration(BaseModel):
    """Field requirements: a credential name, null, or false (forbidden)."""

    view: Optional[Union[str, bool]] = None
    create: Optional[Union[str, bool]] = None
    edit: Optional[Union[str, bool]] = None

    model_config = {"extra": "forbid"}

    @field_validator("view", "create", "edit", mode="before")
    @classmethod
    def validate_requirement(cls, v: Any) -> Any:
        """Only a credential name, null, or false are meaningful."""
        if v is None or v is False or isinstance(v, str):
            return v
        raise ValueError(f"must be a credential name, null or false, got {v!r}")

    def requirements(self) -> dict[str, Requirement]:
        return {
            kind: FORBIDDEN if getattr(self, kind) is False else getattr(self, kind)
            for kind in AccessKind.FIELD_KINDS
        }


class EntityDeclaration(BaseModel):
    """Access-control section of one entity type."""

    entity_type: str = Field(min_length=1)
    credentials: dict[str, Optional[CredentialDeclaration]] = Field(default_factory=dict)
    fields: dict[str, FieldPolicyDeclaration] = Field(default_factory=dict)
    soft_delete: bool = False
    include_defaults: bool = True
    strict: Optional[bool] = None

    model_config = {"extra": "forbid"}

    def to_credentials(self) -> list[Credential]:
        return [
            (declaration or CredentialDeclaration()).to_credential(name)
            for name, declaration in self.credentials.items()
        ]

    def fingerprint(self) -> str:
        """Canonical JSON of the declaration; equal for equal content."""
        return json.dumps(self.model_dump(mode="json"), sort_keys=True, separators=(",", ":"))

    def build_policy(
        self,
        *,
        hooks: Optional[AccessHooks] = None,
        config: Optional[AccessConfig] = None,
    ) -> EntityAccessPolicy:
        """Compile this declaration into an :class:`EntityAccessPolicy`."""
        return build_policy(
            self.entity_type,
            self.to_credentials(),
            {name: declaration.requirements() for name, declaration in self.fields.items()},
            hooks=hooks,
            soft_delete=self.soft_delete,
            include_defaults=self.include_defaults,
            strict=self.strict,
            config=config,
        )


def parse_declaration(data: Mapping[str, Any], entity_type: Optional[str] = None) -> EntityDeclaration:
    """Validate one entity section.

    Args:
        data: The section body.
        entity_type: Used when the body has no ``entity_type`` key.

    Raises:
        ConfigurationError: the section does not validate.
    """
    if not isinstance(data, Mapping):
        raise ConfigurationError(
            f"{entity_type or '<unknown>'}: access-control section must be a mapping, got {type(data).__name__}",
            entity_type=entity_type,
        )
    body = dict(data)
    if entity_type is not None:
        body.setdefault("entity_type", entity_type)
    try:
        return EntityDeclaration.model_validate(body)
    except ValidationError as e:
        name = body.get("entity_type") or "<unknown>"
        logger.error("Invalid access-control declaration for %s: %s", name, e)
        raise ConfigurationError(
            f"{name}: invalid access-control declaration: {e}",
            entity_type=name,
            errors=e.errors(include_url=False),
        ) from e


def load_declarations(data: Mapping[str, Any]) -> dict[str, EntityDeclaration]:
    """Validate a ``{model name: section}`` mapping.

    The model name is the default entity type; a section may override it
    with its own ``entity_type``. A section of ``null`` declares an entity
    type with the default credentials only.
    """
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Declarations must be a mapping of model names, got {type(data).__name__}")
    return {
        name: parse_declaration({} if body is None else body, entity_type=name)
        for name, body in data.items()
    }


def parse_declarations_yaml(text: str) -> dict[str, EntityDeclaration]:
    """Parse declarations from YAML text."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in access-control declarations: {e}") from e
    if data is None:
        return {}
    return load_declarations(data)


def load_declarations_from_yaml(path: Union[str, Path]) -> dict[str, EntityDeclaration]:
    """Read and parse a YAML declaration file."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read access-control declarations from {path}: {e}", path=str(path)) from e
    declarations = parse_declarations_yaml(text)
    logger.info("Loaded %d access-control declarations from %s", len(declarations), path)
    return declarations


def build_policies(
    declarations: Mapping[str, EntityDeclaration],
    *,
    hooks: Optional[Mapping[str, AccessHooks]] = None,
    config: Optional[AccessConfig] = None,
) -> dict[str, EntityAccessPolicy]:
    """Compile every declaration; ``hooks`` is keyed like ``declarations``."""
    hooks = hooks or {}
    return {
        name: declaration.build_policy(hooks=hooks.get(name), config=config)
        for name, declaration in declarations.items()
    }


__all__ = [
    "CredentialDeclaration",
    "EntityDeclaration",
    "FieldPolicyDeclaration",
    "build_policies",
    "load_declarations",
    "load_declarations_from_yaml",
    "parse_declaration",
    "parse_declarations_yaml",
]
