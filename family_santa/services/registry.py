from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType


BASE_FAMILY_ID = 0

# giver name -> recipient names
Assignment = dict[str, frozenset[str]]


class AssignmentError(RuntimeError):
    pass


class FeasibilityError(AssignmentError):
    """No valid assignment could be produced within the draw budget."""

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class DuplicatePersonError(AssignmentError):
    pass


class UnknownPersonError(AssignmentError):
    def __init__(self, names: Iterable[str]):
        self.names = sorted(set(names))
        super().__init__("Unknown person(s): " + ", ".join(self.names))


class LoadError(AssignmentError):
    pass


@dataclass(frozen=True)
class Person:
    name: str
    participation: int
    family: int


class PersonRegistry(Mapping[str, Person]):
    """
    Read-only, insertion-ordered name -> Person mapping.
    Names are unique across the whole population.
    """

    def __init__(self, persons: Iterable[Person] = ()):
        by_name: dict[str, Person] = {}
        for person in persons:
            if person.participation < 1:
                raise LoadError(f"{person.name}: participation must be at least 1")
            if person.name in by_name:
                raise DuplicatePersonError(f"Person {person.name!r} is listed more than once.")
            by_name[person.name] = person
        self._persons = MappingProxyType(by_name)

    @classmethod
    def from_families(
        cls,
        families: Iterable[Iterable[tuple[str, int]]],
        base_family_id: int = BASE_FAMILY_ID,
    ) -> PersonRegistry:
        """Each family is an iterable of (name, participation); ids are handed out sequentially."""
        persons = []
        for family_id, members in enumerate(families, start=base_family_id):
            for name, participation in members:
                persons.append(Person(name, participation, family_id))
        return cls(persons)

    def __getitem__(self, name: str) -> Person:
        return self._persons[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._persons)

    def __len__(self) -> int:
        return len(self._persons)

    def __repr__(self) -> str:
        return f"PersonRegistry({list(self._persons.values())!r})"

    def families(self) -> dict[int, list[Person]]:
        grouped: dict[int, list[Person]] = {}
        for person in self._persons.values():
            grouped.setdefault(person.family, []).append(person)
        return grouped


class ForbiddenSet(Mapping[str, frozenset[str]]):
    """
    Directed constraint table: giver name -> names the giver may never draw.
    Names are not checked against a registry here.
    """

    def __init__(self, pairs: Mapping[str, Iterable[str]] | None = None):
        self._pairs = MappingProxyType(
            {giver: frozenset(targets) for giver, targets in (pairs or {}).items()}
        )

    def __getitem__(self, giver: str) -> frozenset[str]:
        return self._pairs[giver]

    def __iter__(self) -> Iterator[str]:
        return iter(self._pairs)

    def __len__(self) -> int:
        return len(self._pairs)

    def __repr__(self) -> str:
        return f"ForbiddenSet({dict(self._pairs)!r})"

    def for_giver(self, giver: str) -> frozenset[str]:
        return self._pairs.get(giver, frozenset())

    def unknown_names(self, registry: Mapping[str, Person]) -> set[str]:
        names = set(self._pairs)
        for targets in self._pairs.values():
            names |= targets
        return {name for name in names if name not in registry}

    def require_known(self, registry: Mapping[str, Person]) -> None:
        unknown = self.unknown_names(registry)
        if unknown:
            raise UnknownPersonError(unknown)
