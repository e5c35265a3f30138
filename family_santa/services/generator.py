from __future__ import annotations

import random

from .registry import PersonRegistry


def generate_candidate(registry: PersonRegistry, rng: random.Random) -> dict[str, set[str]]:
    """
    Shuffle one recipient slot per unit of participation and deal them out
    to givers in registry order. Only cardinality is honored; a giver dealt
    the same name twice ends up with a short set, which the validator rejects.
    """
    slots = [person.name for person in registry.values() for _ in range(person.participation)]
    rng.shuffle(slots)

    candidate: dict[str, set[str]] = {}
    for person in registry.values():
        recipients = candidate.setdefault(person.name, set())
        for _ in range(person.participation):
            recipients.add(slots.pop())
    return candidate
