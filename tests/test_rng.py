import pytest

from lattice.dungeon.rng import DIVISOR, MODULUS, SeededRandom, lcg_next


def test_lcg_recurrence_constants():
    value, state = lcg_next(1)
    assert state == (1 * 1103515245 + 12345) % 2**31
    assert value == state / (2**31 - 1)
    assert MODULUS == 2**31 and DIVISOR == 2**31 - 1


def test_same_seed_same_stream():
    a = SeededRandom(987654)
    b = SeededRandom(987654)
    assert [a.random() for _ in range(50)] == [b.random() for _ in range(50)]


def test_different_seeds_diverge():
    a = SeededRandom(1)
    b = SeededRandom(2)
    assert [a.random() for _ in range(5)] != [b.random() for _ in range(5)]


def test_values_stay_in_unit_interval():
    rng = SeededRandom(31337)
    for _ in range(2000):
        v = rng.random()
        assert 0.0 <= v <= 1.0


def test_below_clamps_top_of_range():
    rng = SeededRandom(5)
    rng.random = lambda: 1.0  # the single state that maps to exactly 1.0
    assert rng.below(5) == 4


def test_below_range_and_rejects_empty():
    rng = SeededRandom(77)
    seen = {rng.below(3) for _ in range(300)}
    assert seen == {0, 1, 2}
    with pytest.raises(ValueError):
        rng.below(0)


def test_large_seed_wraps_into_state_space():
    assert SeededRandom(2**31 + 10).state == 10
