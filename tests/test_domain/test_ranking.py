"""
Tests for the PowerRanker preference ranking
"""
import pytest

from chorewheel.domain.ranking import PowerRanker, Preference

DISHES, SWEEPING, RESTOCK = 1, 2, 3
CHORES = [DISHES, SWEEPING, RESTOCK]


def test_no_preferences_is_exactly_uniform():
    rankings = PowerRanker(CHORES, [], num_residents=4).run()

    assert rankings == {DISHES: 1 / 3, SWEEPING: 1 / 3, RESTOCK: 1 / 3}


def test_no_items_returns_empty():
    assert PowerRanker([], [], num_residents=4).run() == {}


def test_rankings_sum_to_one():
    preferences = [
        Preference(DISHES, SWEEPING, 0.9),
        Preference(SWEEPING, RESTOCK, 0.3),
        Preference(DISHES, RESTOCK, 0.6),
    ]
    rankings = PowerRanker(CHORES, preferences, num_residents=3).run()

    assert sum(rankings.values()) == pytest.approx(1.0)
    assert all(r > 0 for r in rankings.values())


def test_chain_preferences_are_ordered():
    """dishes > sweeping, sweeping > restock"""
    preferences = [
        Preference(DISHES, SWEEPING, 1.0),
        Preference(SWEEPING, RESTOCK, 1.0),
    ]
    rankings = PowerRanker(CHORES, preferences, num_residents=2).run()

    assert rankings[DISHES] > rankings[SWEEPING] > rankings[RESTOCK]
    assert rankings[DISHES] == pytest.approx(0.46, abs=0.01)
    assert rankings[SWEEPING] == pytest.approx(0.30, abs=0.01)
    assert rankings[RESTOCK] == pytest.approx(0.24, abs=0.01)


def test_cycle_degrades_to_uniform():
    """dishes > sweeping > restock > dishes"""
    preferences = [
        Preference(DISHES, SWEEPING, 1.0),
        Preference(SWEEPING, RESTOCK, 1.0),
        Preference(DISHES, RESTOCK, 0.0),
    ]
    rankings = PowerRanker(CHORES, preferences, num_residents=2).run()

    for chore in CHORES:
        assert rankings[chore] == pytest.approx(1 / 3, abs=1e-6)


def test_symmetric_preferences_rank_equally():
    """dishes and restock both beat sweeping"""
    preferences = [
        Preference(DISHES, SWEEPING, 1.0),
        Preference(SWEEPING, RESTOCK, 0.0),
    ]
    rankings = PowerRanker(CHORES, preferences, num_residents=2).run()

    assert rankings[DISHES] == pytest.approx(rankings[RESTOCK], rel=1e-9)
    assert rankings[DISHES] > rankings[SWEEPING]


def test_neutral_preference_changes_nothing():
    preferences = [Preference(DISHES, SWEEPING, 0.5)]
    rankings = PowerRanker(CHORES, preferences, num_residents=2).run()

    for chore in CHORES:
        assert rankings[chore] == pytest.approx(1 / 3, abs=1e-6)


def test_preferences_on_unknown_items_are_ignored():
    preferences = [Preference(DISHES, 99, 1.0)]
    rankings = PowerRanker(CHORES, preferences, num_residents=2).run()

    assert rankings == {DISHES: 1 / 3, SWEEPING: 1 / 3, RESTOCK: 1 / 3}


def test_damping_keeps_every_item_positive():
    """Even a unanimous preference leaves the loser some value"""
    preferences = [Preference(DISHES, SWEEPING, 1.0)]
    rankings = PowerRanker([DISHES, SWEEPING], preferences, num_residents=1).run(damping=0.99)

    assert rankings[DISHES] > rankings[SWEEPING] > 0
    assert sum(rankings.values()) == pytest.approx(1.0)
