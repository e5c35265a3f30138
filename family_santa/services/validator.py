from __future__ import annotations

from collections.abc import Mapping, Set
from typing import NamedTuple

from .registry import ForbiddenSet, PersonRegistry


UNKNOWN_GIVER = "unknown_giver"
UNKNOWN_RECIPIENT = "unknown_recipient"
CARDINALITY = "cardinality"
FORBIDDEN = "forbidden"
SAME_FAMILY = "same_family"
RECIPROCAL = "reciprocal"
FAMILY_EDGE = "family_edge"


class Violation(NamedTuple):
    kind: str
    giver: str
    recipient: str | None = None


def find_violation(
    registry: PersonRegistry,
    forbidden: ForbiddenSet,
    candidate: Mapping[str, Set[str]],
) -> Violation | None:
    """Return the first broken rule in ``candidate``, or None if it is valid."""
    for giver in candidate:
        if giver not in registry:
            return Violation(UNKNOWN_GIVER, giver)

    # (giver family, recipient family) edges seen so far in this pass
    family_edges: set[tuple[int, int]] = set()

    for source in registry.values():
        targets = candidate.get(source.name, frozenset())
        if len(targets) != source.participation:
            return Violation(CARDINALITY, source.name)

        banned = forbidden.for_giver(source.name)
        for target_name in sorted(targets):
            target = registry.get(target_name)
            if target is None:
                return Violation(UNKNOWN_RECIPIENT, source.name, target_name)
            if target_name in banned:
                return Violation(FORBIDDEN, source.name, target_name)
            if target.family == source.family:
                return Violation(SAME_FAMILY, source.name, target_name)
            if source.name in candidate.get(target_name, frozenset()):
                return Violation(RECIPROCAL, source.name, target_name)

            edge = (source.family, target.family)
            if edge in family_edges:
                return Violation(FAMILY_EDGE, source.name, target_name)
            family_edges.add(edge)

    return None


def is_valid(
    registry: PersonRegistry,
    forbidden: ForbiddenSet,
    candidate: Mapping[str, Set[str]],
) -> bool:
    return find_violation(registry, forbidden, candidate) is None
