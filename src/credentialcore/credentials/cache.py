"""Compiled-policy cache.

Compilation is idempotent but not cheap, so services that rebuild
policies from declarations on demand keep them here. At most one
compilation runs per entity type for an unchanged declaration; a
changed declaration is recompiled and swapped in under the same lock.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Optional

from .hooks import AccessHooks
from .policy import EntityAccessPolicy

if TYPE_CHECKING:
    from ..config import AccessConfig
    from ..declarations import EntityDeclaration

logger = logging.getLogger(__name__)


class PolicyCache:
    """Thread-safe ``entity_type -> EntityAccessPolicy`` cache.

    Entries are keyed by entity type and tagged with the declaration
    fingerprint. Hooks are bound when an entry is compiled; call
    :meth:`invalidate` after changing them.

    Usage::

        cache = PolicyCache(config=load_access_config_from_env())
        policy = cache.get(declarations["Invoice"], hooks=invoice_hooks)
    """

    def __init__(self, config: Optional[AccessConfig] = None) -> None:
        self._config = config
        self._entries: dict[str, tuple[str, EntityAccessPolicy]] = {}
        self._lock = threading.Lock()
        self._compile_count = 0

    @property
    def compile_count(self) -> int:
        """How many compilations this cache has run."""
        return self._compile_count

    def get(self, declaration: EntityDeclaration, *, hooks: Optional[AccessHooks] = None) -> EntityAccessPolicy:
        """Return the compiled policy, compiling only if missing or stale."""
        fingerprint = declaration.fingerprint()
        with self._lock:
            cached = self._entries.get(declaration.entity_type)
            if cached is not None and cached[0] == fingerprint:
                return cached[1]

            if cached is not None:
                logger.info("Declaration of %s changed, recompiling access policy", declaration.entity_type)

            policy = declaration.build_policy(hooks=hooks, config=self._config)
            self._entries[declaration.entity_type] = (fingerprint, policy)
            self._compile_count += 1
            return policy

    def peek(self, entity_type: str) -> Optional[EntityAccessPolicy]:
        """Cached policy without compiling, or None."""
        with self._lock:
            cached = self._entries.get(entity_type)
        return cached[1] if cached is not None else None

    def invalidate(self, entity_type: Optional[str] = None) -> None:
        """Drop one entry, or all entries when ``entity_type`` is None."""
        with self._lock:
            if entity_type is None:
                self._entries.clear()
            else:
                self._entries.pop(entity_type, None)

    def __contains__(self, entity_type: object) -> bool:
        with self._lock:
            return entity_type in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = ["PolicyCache"]
