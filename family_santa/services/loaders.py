from __future__ import annotations

import json
import os
from collections.abc import Iterable, Mapping

from .registry import BASE_FAMILY_ID, ForbiddenSet, LoadError, PersonRegistry


DEFAULT_PARTICIPATION = 1


def children_of(node, what: str) -> list:
    # families and members may be given either as arrays or as keyed objects
    if isinstance(node, list):
        return node
    if isinstance(node, dict):
        return list(node.values())
    raise LoadError(f"Expected a list or object of {what}, got {type(node).__name__}.")


def parse_member(record) -> tuple[str, int]:
    if not isinstance(record, dict):
        raise LoadError(f"Person record must be an object, got {record!r}.")

    name = record.get("name")
    if not isinstance(name, str) or not name.strip():
        raise LoadError(f"Person record is missing a name: {record!r}.")

    participation = record.get("p", DEFAULT_PARTICIPATION)
    if isinstance(participation, bool) or not isinstance(participation, int) or participation < 1:
        raise LoadError(f"{name}: participation must be a positive integer, got {participation!r}.")

    return name.strip(), participation


def parse_families(data) -> list[list[tuple[str, int]]]:
    """
    Persons document: a list of families, each family a list of
    ``{"name": ..., "p": ...}`` records (``p`` defaults to 1).
    """
    return [
        [parse_member(record) for record in children_of(family, "persons")]
        for family in children_of(data, "families")
    ]


def parse_forbidden(data) -> dict[str, set[str]]:
    """Forbidden document: ``{"giver": ["name", ...], ...}``."""
    if not isinstance(data, dict):
        raise LoadError("Forbidden assignments must be an object of name -> list of names.")

    pairs: dict[str, set[str]] = {}
    for giver, targets in data.items():
        if isinstance(targets, str):
            targets = [targets]
        if not isinstance(targets, list) or not all(isinstance(t, str) for t in targets):
            raise LoadError(f"{giver}: forbidden targets must be a list of names.")
        pairs.setdefault(giver.strip(), set()).update(t.strip() for t in targets)
    return pairs


def read_json(path: str | os.PathLike):
    try:
        with open(path, encoding="utf-8") as fh:
            return json.load(fh)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise LoadError(f"{os.fspath(path)}: invalid JSON ({e}).") from e


def read_families(paths: Iterable[str | os.PathLike]) -> list[list[tuple[str, int]]]:
    families: list[list[tuple[str, int]]] = []
    for path in paths:
        families.extend(parse_families(read_json(path)))
    return families


def read_persons(
    paths: Iterable[str | os.PathLike],
    base_family_id: int = BASE_FAMILY_ID,
) -> PersonRegistry:
    """Family ids keep counting across files, in the order the files are given."""
    return PersonRegistry.from_families(read_families(paths), base_family_id=base_family_id)


def read_forbidden(paths: Iterable[str | os.PathLike]) -> ForbiddenSet:
    merged: dict[str, set[str]] = {}
    for path in paths:
        for giver, targets in parse_forbidden(read_json(path)).items():
            merged.setdefault(giver, set()).update(targets)
    return ForbiddenSet(merged)


def dump_assignment(assignment: Mapping[str, Iterable[str]]) -> dict[str, list[str]]:
    return {giver: sorted(targets) for giver, targets in sorted(assignment.items())}


def write_assignment(assignment: Mapping[str, Iterable[str]], path: str | os.PathLike) -> None:
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(dump_assignment(assignment), fh, indent=4, ensure_ascii=False)
        fh.write("\n")
