from __future__ import annotations

import logging
import random
import time
from collections import Counter
from typing import NamedTuple

from .generator import generate_candidate
from .registry import Assignment, FeasibilityError, ForbiddenSet, PersonRegistry
from .validator import find_violation


logger = logging.getLogger(__name__)


def check_feasibility(registry: PersonRegistry, forbidden: ForbiddenSet) -> None:
    """
    Cheap necessary conditions; raises FeasibilityError when any of them fails.
    Passing this check does not guarantee that a valid assignment exists.
    """
    if len(registry) < 2:
        raise FeasibilityError("Need at least 2 participants to run assignments.")

    families = registry.families()
    other_families = len(families) - 1

    for members in families.values():
        # every gift out of (or into) a family needs its own partner family
        given = sum(p.participation for p in members)
        if given > other_families:
            names = ", ".join(p.name for p in members)
            raise FeasibilityError(
                f"Family of {names} gives {given} gift(s) but only {other_families} other famil(y/ies) exist."
            )

    for person in registry.values():
        banned = forbidden.for_giver(person.name)
        allowed_families = {
            other.family
            for other in registry.values()
            if other.family != person.family and other.name not in banned
        }
        if len(allowed_families) < person.participation:
            raise FeasibilityError(
                f"{person.name} needs {person.participation} recipient(s) from different families "
                f"but only {len(allowed_families)} famil(y/ies) are allowed."
            )


class DrawResult(NamedTuple):
    assignment: Assignment
    attempts: int


def run_draw(
    registry: PersonRegistry,
    forbidden: ForbiddenSet | None = None,
    rng: random.Random | None = None,
    max_attempts: int | None = None,
    timeout: float | None = None,
    precheck: bool = False,
) -> DrawResult:
    """
    Rejection sampling: draw shuffled candidates until one passes every rule.

    With neither ``max_attempts`` nor ``timeout`` the loop runs until it
    succeeds, which never happens for an infeasible setup. With a budget,
    running out raises FeasibilityError.
    """
    forbidden = forbidden if forbidden is not None else ForbiddenSet()
    rng = rng if rng is not None else random.SystemRandom()

    if precheck:
        check_feasibility(registry, forbidden)

    deadline = time.monotonic() + timeout if timeout is not None else None
    rejections: Counter[str] = Counter()
    attempts = 0

    while max_attempts is None or attempts < max_attempts:
        if deadline is not None and time.monotonic() >= deadline:
            break
        attempts += 1

        candidate = generate_candidate(registry, rng)
        violation = find_violation(registry, forbidden, candidate)
        if violation is None:
            logger.info("Found a valid assignment after %d attempt(s)", attempts)
            logger.debug("Rejected candidates by rule: %s", dict(rejections))
            assignment = {giver: frozenset(targets) for giver, targets in candidate.items()}
            return DrawResult(assignment, attempts)
        rejections[violation.kind] += 1

    logger.debug("Rejected candidates by rule: %s", dict(rejections))
    raise FeasibilityError(
        f"No valid assignment found after {attempts} attempt(s).", attempts=attempts
    )


def generate_valid_assignment(
    registry: PersonRegistry,
    forbidden: ForbiddenSet | None = None,
    rng: random.Random | None = None,
    max_attempts: int | None = None,
    timeout: float | None = None,
    precheck: bool = False,
) -> Assignment:
    return run_draw(registry, forbidden, rng, max_attempts, timeout, precheck).assignment
