from __future__ import annotations

import random
from datetime import datetime
from flask import current_app

from ..extensions import db
from ..models import AssignmentEdge, AssignmentState, Person
from ..security import decrypt_recipient, encrypt_recipient
from .draw import DrawResult, run_draw
from .registry import AssignmentError, FeasibilityError
from .roster import draw_pool, forbidden_from_db, registry_from_db


def _draw_rng() -> random.Random:
    seed = current_app.config.get("SANTA_SEED")
    if seed is None:
        return random.SystemRandom()
    return random.Random(seed)


def draw_from_db(rng: random.Random | None = None) -> DrawResult:
    registry = registry_from_db()
    forbidden = forbidden_from_db()

    if current_app.config.get("SANTA_STRICT_FORBIDDEN"):
        forbidden.require_known(registry)

    unknown = forbidden.unknown_names(registry)
    if unknown:
        current_app.logger.warning("Forbidden list mentions unknown person(s): %s", ", ".join(sorted(unknown)))

    try:
        return run_draw(
            registry,
            forbidden,
            rng=rng or _draw_rng(),
            max_attempts=current_app.config.get("SANTA_MAX_ATTEMPTS"),
            timeout=current_app.config.get("SANTA_TIMEOUT"),
            precheck=True,
        )
    except FeasibilityError as e:
        current_app.logger.warning("Draw failed: %s", e)
        raise


def _clear_edges(people: list[Person]) -> None:
    for p in people:
        p.assignments.clear()


def run_and_lock_assignments(rng: random.Random | None = None) -> None:
    state = AssignmentState.get_singleton()
    if state.is_locked:
        return

    result = draw_from_db(rng)

    people = draw_pool()
    _clear_edges(people)
    for p in people:
        for recipient in sorted(result.assignment.get(p.name, ())):
            p.assignments.append(AssignmentEdge(recipient_ciphertext=encrypt_recipient(recipient)))

    state.is_locked = True
    state.run_at = datetime.utcnow()
    state.attempts = result.attempts
    db.session.commit()
    current_app.logger.info("Assignments locked for %d person(s)", len(people))


def unset_and_unlock_assignments() -> None:
    state = AssignmentState.get_singleton()

    _clear_edges(Person.query.all())

    state.is_locked = False
    state.run_at = None
    state.attempts = None
    db.session.commit()


def assignments_for(person: Person) -> list[str]:
    """Decrypted recipient names for one giver."""
    return sorted(decrypt_recipient(edge.recipient_ciphertext) for edge in person.assignments)


def export_assignments() -> dict[str, list[str]]:
    if not AssignmentState.get_singleton().is_locked:
        raise AssignmentError("Assignments have not been run yet.")
    return {p.name: assignments_for(p) for p in draw_pool()}
