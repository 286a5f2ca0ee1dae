import pytest

from initracker.core.engine.hp import apply_hp_input
from initracker.core.engine.state import HitPoints


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("-15", 0),
        ("=5", 5),
        ("-3", 7),
        ("+4", 10),
        ("=99", 10),
        ("=-2", 0),
        (" -2.5 ", 8),
        ("-0.5", 10),
    ],
)
def test_hp_input_is_clamped(raw, expected):
    hp = HitPoints(current=10, max=10, temp=0)
    assert apply_hp_input(hp, raw).current == expected


@pytest.mark.parametrize("raw", ["abc", "", "   ", "=", "=abc", "--3", "1e999"])
def test_unparseable_hp_input_is_noop(raw):
    hp = HitPoints(current=6, max=10, temp=2)
    assert apply_hp_input(hp, raw) == hp


def test_hp_input_keeps_temp_and_max():
    hp = HitPoints(current=6, max=10, temp=3)
    out = apply_hp_input(hp, "-2")
    assert (out.current, out.max, out.temp) == (4, 10, 3)
    assert hp.current == 6
