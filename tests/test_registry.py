import pytest

from family_santa.services.registry import (
    BASE_FAMILY_ID,
    DuplicatePersonError,
    ForbiddenSet,
    LoadError,
    Person,
    PersonRegistry,
    UnknownPersonError,
)


def test_from_families_hands_out_sequential_family_ids():
    registry = PersonRegistry.from_families([[("A1", 1), ("A2", 2)], [("B1", 1)]])
    assert registry["A1"] == Person("A1", 1, BASE_FAMILY_ID)
    assert registry["A2"] == Person("A2", 2, BASE_FAMILY_ID)
    assert registry["B1"].family == BASE_FAMILY_ID + 1


def test_from_families_custom_base():
    registry = PersonRegistry.from_families([[("A", 1)], [("B", 1)]], base_family_id=10)
    assert [p.family for p in registry.values()] == [10, 11]


def test_registry_keeps_insertion_order():
    registry = PersonRegistry.from_families([[("Zed", 1)], [("Amy", 1)], [("Max", 1)]])
    assert list(registry) == ["Zed", "Amy", "Max"]


def test_duplicate_name_is_rejected():
    with pytest.raises(DuplicatePersonError):
        PersonRegistry.from_families([[("A", 1)], [("B", 1), ("A", 1)]])


def test_participation_must_be_positive():
    with pytest.raises(LoadError):
        PersonRegistry([Person("A", 0, 0)])


def test_registry_is_read_only():
    registry = PersonRegistry([Person("A", 1, 0)])
    with pytest.raises(TypeError):
        registry["B"] = Person("B", 1, 1)


def test_families_groups_members():
    registry = PersonRegistry.from_families([[("A1", 1), ("A2", 1)], [("B1", 1)]])
    groups = registry.families()
    assert [p.name for p in groups[0]] == ["A1", "A2"]
    assert [p.name for p in groups[1]] == ["B1"]


def test_forbidden_for_giver_defaults_to_empty():
    forbidden = ForbiddenSet({"A": ["B"]})
    assert forbidden.for_giver("A") == frozenset({"B"})
    assert forbidden.for_giver("Nobody") == frozenset()


def test_forbidden_unknown_names():
    registry = PersonRegistry.from_families([[("A", 1)], [("B", 1)]])
    forbidden = ForbiddenSet({"A": ["B", "Ghost"], "Phantom": ["A"]})
    assert forbidden.unknown_names(registry) == {"Ghost", "Phantom"}

    with pytest.raises(UnknownPersonError) as exc:
        forbidden.require_known(registry)
    assert exc.value.names == ["Ghost", "Phantom"]


def test_forbidden_require_known_passes_for_clean_table():
    registry = PersonRegistry.from_families([[("A", 1)], [("B", 1)]])
    ForbiddenSet({"A": ["B"]}).require_known(registry)
