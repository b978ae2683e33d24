"""Relation closure compiler.

Turns a registry of raw declarations into a graph where every relation is
present from both endpoints and implication is transitively closed:

- ``B in A.implies``     <=> ``A in B.implied_by``
- ``B in A.subrights``   <=> ``A in B.subright_of``
- ``A subright_of B``    =>  ``A implied_by B``

Declarations may be given from one side only (``implies`` without the
matching ``implied_by``); the compiler fills in the other side.

The compiler repeats full propagation passes until a pass leaves the
canonical (sorted) form of the graph unchanged. Passes only ever add
names to finite sets, so the loop terminates.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Union

from ..exceptions import UnknownCredentialReference
from .constants import Relation
from .models import Credential
from .registry import CredentialRegistry

logger = logging.getLogger(__name__)

_Graph = dict[str, dict[str, list[str]]]
_Canonical = dict[str, tuple[tuple[str, ...], ...]]

# Wording used in UnknownCredentialReference messages, per relation.
_REFERENCE_ERRORS = {
    Relation.IMPLIED_BY: "{credential} cannot be implied by {reference} since it does not exist.",
    Relation.IMPLIES: "{credential} cannot imply {reference} since it does not exist.",
    Relation.SUBRIGHTS: "{credential} cannot be a parent right of {reference} since it does not exist.",
    Relation.SUBRIGHT_OF: "{credential} cannot be a sub right of {reference} since it does not exist.",
}


def _check_references(graph: _Graph, entity_type: str | None) -> None:
    for credential, relations in graph.items():
        for relation in Relation.ALL:
            for reference in relations[relation]:
                if reference not in graph:
                    message = _REFERENCE_ERRORS[relation].format(credential=credential, reference=reference)
                    logger.error("%s: %s", entity_type or "<unbound>", message)
                    raise UnknownCredentialReference(
                        f"{entity_type or '<unbound>'}: {message}",
                        entity_type=entity_type,
                        credential=credential,
                        reference=reference,
                        relation=relation,
                    )


def _canonical(graph: _Graph) -> _Canonical:
    return {name: tuple(tuple(relations[r]) for r in Relation.ALL) for name, relations in graph.items()}


def _merge(graph: _Graph, target: str, relation: str, names: Iterable[str]) -> None:
    current = graph[target][relation]
    graph[target][relation] = sorted(set(current).union(names))


def _propagate(graph: _Graph) -> None:
    """One full pass over every credential and every relation list."""
    for name in graph:
        relations = graph[name]
        implies = list(relations[Relation.IMPLIES])
        implied_by = list(relations[Relation.IMPLIED_BY])
        subrights = list(relations[Relation.SUBRIGHTS])
        subright_of = list(relations[Relation.SUBRIGHT_OF])

        for parent in implied_by:
            _merge(graph, parent, Relation.IMPLIES, [name, *implies])

        for child in implies:
            _merge(graph, child, Relation.IMPLIED_BY, [name, *implied_by])

        for sub in subrights:
            _merge(graph, sub, Relation.SUBRIGHT_OF, [name, *subright_of])
            _merge(graph, sub, Relation.IMPLIED_BY, [name, *implied_by])

        for parent in subright_of:
            _merge(graph, parent, Relation.SUBRIGHTS, [name, *subrights])
            _merge(graph, parent, Relation.IMPLIES, [name, *implies])


def compile_relations(
    credentials: Union[CredentialRegistry, Mapping[str, Credential]],
    *,
    entity_type: str | None = None,
) -> dict[str, Credential]:
    """Compile raw declarations into a mirrored, transitively closed graph.

    Args:
        credentials: A registry or a ``name -> Credential`` mapping. It is not
            modified.
        entity_type: Used in error messages and logs. Defaults to the
            registry's entity type.

    Returns:
        New ``name -> Credential`` mapping with sorted relation tuples.

    Raises:
        UnknownCredentialReference: a relation names a credential that is
            not declared. Raised before any propagation happens.

    Example::

        >>> compiled = compile_relations({
        ...     "manager": Credential("manager", subrights=("edit",)),
        ...     "edit": Credential("edit", implies=("view",)),
        ...     "view": Credential("view"),
        ... })
        >>> compiled["view"].implied_by
        ('edit', 'manager')
    """
    if isinstance(credentials, CredentialRegistry):
        entity_type = entity_type or credentials.entity_type
        source = credentials.snapshot()
    else:
        source = dict(credentials)

    graph: _Graph = {
        name: {relation: sorted(set(credential.relation(relation))) for relation in Relation.ALL}
        for name, credential in source.items()
    }
    _check_references(graph, entity_type)

    passes = 0
    while True:
        before = _canonical(graph)
        _propagate(graph)
        passes += 1
        if _canonical(graph) == before:
            break

    logger.debug(
        "Compiled %d credentials for %s in %d passes",
        len(graph),
        entity_type or "<unbound>",
        passes,
    )

    return {
        name: Credential(
            name=name,
            label=source[name].label,
            description=source[name].description,
            **{relation: tuple(graph[name][relation]) for relation in Relation.ALL},
        )
        for name in graph
    }


def is_closed(credentials: Mapping[str, Credential]) -> bool:
    """True when another compilation pass would not change ``credentials``."""
    graph: _Graph = {
        name: {relation: sorted(set(credential.relation(relation))) for relation in Relation.ALL}
        for name, credential in credentials.items()
    }
    if any(reference not in graph for c in credentials.values() for _, reference in c.references()):
        return False
    before = _canonical(graph)
    _propagate(graph)
    return _canonical(graph) == before


def expand_credentials(compiled: Mapping[str, Credential], held: Iterable[str]) -> tuple[str, ...]:
    """Expand bare credential names by everything they imply.

    Names unknown to ``compiled`` are kept as they are.

    Example::

        >>> expand_credentials(compiled, ("edit",))
        ('edit', 'view')
    """
    expanded: set[str] = set(held)
    for name in list(expanded):
        credential = compiled.get(name)
        if credential is not None:
            expanded.update(credential.implies)
    return tuple(sorted(expanded))


__all__ = [
    "compile_relations",
    "expand_credentials",
    "is_closed",
]
