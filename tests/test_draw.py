import random
from collections import Counter

import pytest

from family_santa.services.draw import check_feasibility, generate_valid_assignment, run_draw
from family_santa.services.registry import FeasibilityError, ForbiddenSet, PersonRegistry


def assert_all_rules_hold(registry, forbidden, assignment):
    edges = Counter()
    for giver, targets in assignment.items():
        source = registry[giver]
        assert len(targets) == source.participation
        for target in targets:
            assert target not in forbidden.for_giver(giver)
            assert registry[target].family != source.family
            assert giver not in assignment[target]
            edges[(source.family, registry[target].family)] += 1
    assert set(assignment) == set(registry)
    assert all(count == 1 for count in edges.values())


def test_triangle_draws_a_three_cycle(triangle):
    assignment = generate_valid_assignment(triangle, rng=random.Random(0))
    assert assignment in (
        {"A": {"B"}, "B": {"C"}, "C": {"A"}},
        {"A": {"C"}, "C": {"B"}, "B": {"A"}},
    )


@pytest.mark.parametrize("seed", range(8))
def test_cousins_draw_satisfies_every_rule(cousins, seed):
    forbidden = ForbiddenSet({"Ann": ["Cid", "Eve"], "Hal": ["Bob"]})
    assignment = generate_valid_assignment(cousins, forbidden, rng=random.Random(seed), max_attempts=20000)
    assert_all_rules_hold(cousins, forbidden, assignment)


@pytest.mark.parametrize("seed", range(5))
def test_weighted_participation(seed):
    # five singletons giving two gifts each; e.g. i -> i+1, i+2 (mod 5)
    registry = PersonRegistry.from_families([[(name, 2)] for name in "VWXYZ"])
    assignment = generate_valid_assignment(registry, rng=random.Random(seed), max_attempts=50000)
    assert_all_rules_hold(registry, ForbiddenSet(), assignment)


def test_same_seed_same_assignment(cousins):
    first = generate_valid_assignment(cousins, rng=random.Random(99), max_attempts=20000)
    second = generate_valid_assignment(cousins, rng=random.Random(99), max_attempts=20000)
    assert first == second


def test_result_recipients_are_frozen(triangle):
    assignment = generate_valid_assignment(triangle, rng=random.Random(1))
    assert all(isinstance(targets, frozenset) for targets in assignment.values())


def test_unbounded_draw_returns_for_feasible_setup(triangle):
    result = run_draw(triangle, rng=random.Random(5))
    assert result.attempts >= 1
    assert set(result.assignment) == {"A", "B", "C"}


def test_two_families_of_two_exhaust_the_budget():
    # both members of a family would need the single cross-family edge
    registry = PersonRegistry.from_families([[("A1", 1), ("A2", 1)], [("B1", 1), ("B2", 1)]])
    with pytest.raises(FeasibilityError) as exc:
        generate_valid_assignment(registry, rng=random.Random(0), max_attempts=300)
    assert exc.value.attempts == 300


def test_single_person_exhausts_the_budget():
    registry = PersonRegistry.from_families([[("Solo", 1)]])
    with pytest.raises(FeasibilityError) as exc:
        generate_valid_assignment(registry, rng=random.Random(0), max_attempts=50)
    assert exc.value.attempts == 50


def test_forbidding_the_only_target_exhausts_the_budget():
    registry = PersonRegistry.from_families([[("A", 1), ("A2", 1)], [("B", 1), ("B2", 1)]])
    forbidden = ForbiddenSet({"A": ["B", "B2"]})
    with pytest.raises(FeasibilityError):
        generate_valid_assignment(registry, forbidden, rng=random.Random(0), max_attempts=200)


def test_zero_timeout_gives_up_before_drawing(triangle):
    with pytest.raises(FeasibilityError) as exc:
        run_draw(triangle, rng=random.Random(0), timeout=0)
    assert exc.value.attempts == 0


def test_precheck_reports_single_person_without_sampling():
    registry = PersonRegistry.from_families([[("Solo", 1)]])
    with pytest.raises(FeasibilityError) as exc:
        run_draw(registry, rng=random.Random(0), precheck=True)
    assert exc.value.attempts == 0


def test_precheck_reports_family_with_too_few_partners():
    registry = PersonRegistry.from_families([[("A1", 1), ("A2", 1)], [("B1", 1), ("B2", 1)]])
    with pytest.raises(FeasibilityError, match="A1, A2"):
        check_feasibility(registry, ForbiddenSet())


def test_precheck_reports_person_with_no_allowed_recipient():
    registry = PersonRegistry.from_families([[("A", 1)], [("B", 1)], [("C", 1)]])
    with pytest.raises(FeasibilityError, match="^A needs 1"):
        check_feasibility(registry, ForbiddenSet({"A": ["B", "C"]}))


def test_precheck_counts_families_not_people():
    # D could draw two people, but both are in the same family
    registry = PersonRegistry.from_families([[("D", 2)], [("E1", 1), ("E2", 1)], [("F", 1)], [("G", 1)]])
    with pytest.raises(FeasibilityError, match="^D needs 2"):
        check_feasibility(registry, ForbiddenSet({"D": ["F", "G"]}))


def test_precheck_passes_for_feasible_setup(cousins):
    check_feasibility(cousins, ForbiddenSet({"Ann": ["Cid"]}))
