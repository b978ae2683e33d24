"""Shared fixtures for credentialcore tests."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import pytest
from credentialcore import EntityAccessPolicy, build_policy


@dataclass
class Invoice:
    """Minimal soft-deletable record."""

    number: str
    deleted_at: Optional[datetime] = None


@pytest.fixture
def invoice_policy() -> EntityAccessPolicy:
    """Default credentials, no soft delete, a few field policies."""
    return build_policy(
        "Invoice",
        fields={
            "iban": {"view": "manager", "edit": False},
            "total": {"edit": "manager"},
            "notes": {"view": None},
        },
    )


@pytest.fixture
def archived_policy() -> EntityAccessPolicy:
    """Default credentials with the soft-delete extension."""
    return build_policy("Invoice", soft_delete=True)
