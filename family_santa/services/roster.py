from __future__ import annotations

import os
from collections.abc import Iterable

from flask import current_app

from ..extensions import db
from ..models import Family, ForbiddenPair, Person
from .loaders import children_of, parse_forbidden, parse_member, read_forbidden, read_json
from .registry import (
    AssignmentError,
    DuplicatePersonError,
    ForbiddenSet,
    LoadError,
    PersonRegistry,
    UnknownPersonError,
)
from .registry import Person as PersonRecord


def draw_pool() -> list[Person]:
    admin_name = (current_app.config.get("SANTA_ADMIN_NAME") or "").strip()
    q = Person.query
    if admin_name:
        q = q.filter(Person.name != admin_name)
    return q.order_by(Person.id.asc()).all()


def registry_from_db() -> PersonRegistry:
    """Draw pool in import order; family ids are the Family primary keys."""
    return PersonRegistry(
        PersonRecord(p.name, p.participation, p.family_id) for p in draw_pool()
    )


def forbidden_from_db() -> ForbiddenSet:
    pairs: dict[str, set[str]] = {}
    for row in ForbiddenPair.query.all():
        pairs.setdefault(row.giver_name, set()).add(row.receiver_name)
    return ForbiddenSet(pairs)


def _stage_families(data, seen: set[str]) -> list[Family]:
    if isinstance(data, dict):
        labelled = list(data.items())
    else:
        labelled = [(None, family) for family in children_of(data, "families")]

    existing = {name for (name,) in db.session.query(Person.name).all()}
    families: list[Family] = []

    for label, members in labelled:
        family = Family(label=label)
        for record in children_of(members, "persons"):
            name, participation = parse_member(record)
            if name in existing or name in seen:
                raise DuplicatePersonError(f"Person {name!r} is listed more than once.")
            seen.add(name)
            family.members.append(Person(name=name, participation=participation))
        if not family.members:
            raise LoadError("Families must have at least one member.")
        db.session.add(family)
        families.append(family)
    return families


def import_documents(documents: Iterable) -> list[Family]:
    """
    Add every family in each persons document. A name already in the
    database, repeated anywhere in the input, or a malformed record aborts
    the whole import and nothing is written.
    """
    seen: set[str] = set()
    families: list[Family] = []
    try:
        for data in documents:
            families.extend(_stage_families(data, seen))
    except AssignmentError:
        db.session.rollback()
        raise

    db.session.commit()
    current_app.logger.info("Imported %d famil(y/ies), %d person(s)", len(families), len(seen))
    return families


def import_families(data) -> list[Family]:
    return import_documents([data])


def import_persons(paths: Iterable[str | os.PathLike]) -> list[Family]:
    # read and stage every file before the single commit
    return import_documents(read_json(path) for path in paths)


def import_forbidden_pairs(data) -> int:
    added = 0
    for giver, targets in parse_forbidden(data).items():
        for receiver in targets:
            exists = ForbiddenPair.query.filter_by(giver_name=giver, receiver_name=receiver).first()
            if not exists:
                db.session.add(ForbiddenPair(giver_name=giver, receiver_name=receiver))
                added += 1
    db.session.commit()
    return added


def import_forbidden(paths: Iterable[str | os.PathLike], strict: bool = False) -> int:
    """With ``strict``, names not in the database reject the file before anything is stored."""
    merged = read_forbidden(paths)
    unknown = merged.unknown_names({p.name: p for p in Person.query.all()})
    if strict and unknown:
        raise UnknownPersonError(unknown)

    added = import_forbidden_pairs({giver: sorted(targets) for giver, targets in merged.items()})
    if unknown:
        current_app.logger.warning("Forbidden list mentions unknown person(s): %s", ", ".join(sorted(unknown)))
    return added
