from initracker.core.engine.conditions import (
    expire_boundary,
    expire_round_conditions,
    remove_conditions_by_source,
)
from initracker.core.engine.state import (
    Combatant,
    CombatState,
    Concentration,
    Condition,
    EndOfNextTurn,
    Rounds,
    StartOfNextTurn,
)
from initracker.core.engine.turn import advance_turn


def _combat(*combatants, current_index=0, round_=1):
    return CombatState(
        name="Test",
        combatants=list(combatants),
        order=[c.id for c in combatants],
        current_index=current_index,
        round=round_,
    )


def _ids(combatant):
    return [c.id for c in combatant.conditions]


def test_start_of_next_turn_expires_only_on_matching_start():
    a = Combatant(
        id="a",
        name="A",
        conditions=[
            Condition(id="c1", name="Blessed", duration=StartOfNextTurn(anchor_id="a")),
        ],
    )

    updated, expired = expire_boundary([a], "start", "b")
    assert expired == []
    assert _ids(updated[0]) == ["c1"]

    updated, expired = expire_boundary([a], "end", "a")
    assert expired == []

    updated, expired = expire_boundary([a], "start", "a")
    assert expired == ["c1"]
    assert updated[0].conditions == []


def test_end_of_next_turn_decrements_before_expiring():
    a = Combatant(
        id="a",
        name="A",
        conditions=[
            Condition(
                id="c1",
                name="Dodging",
                duration=EndOfNextTurn(anchor_id="a", remaining_turns=2),
            ),
        ],
    )

    updated, expired = expire_boundary([a], "end", "a")
    assert expired == []
    assert updated[0].conditions[0].duration.remaining_turns == 1

    updated, expired = expire_boundary(updated, "end", "a")
    assert expired == ["c1"]
    # the input list is left alone
    assert a.conditions[0].duration.remaining_turns == 2


def test_rounds_ignore_anchors_and_count_down():
    a = Combatant(
        id="a",
        name="A",
        conditions=[
            Condition(id="r1", name="Slowed", duration=Rounds(remaining_rounds=1)),
            Condition(id="r2", name="Hasted", duration=Rounds(remaining_rounds=3)),
        ],
    )
    updated, expired = expire_round_conditions([a])
    assert expired == ["r1"]
    assert _ids(updated[0]) == ["r2"]
    assert updated[0].conditions[0].duration.remaining_rounds == 2


def test_remove_conditions_by_source_only_drops_matching_concentration():
    a = Combatant(
        id="a",
        name="A",
        conditions=[
            Condition(id="k1", name="Held", duration=Concentration(source_id="wiz")),
            Condition(id="k2", name="Blessed", duration=Concentration(source_id="cleric")),
            Condition(
                id="t1",
                name="Frightened",
                source_id="wiz",
                duration=Rounds(remaining_rounds=2),
            ),
        ],
    )
    b = Combatant(
        id="b",
        name="B",
        conditions=[Condition(id="k3", name="Held", duration=Concentration(source_id="wiz"))],
    )

    out = remove_conditions_by_source([a, b], "wiz")
    assert _ids(out[0]) == ["k2", "t1"]
    assert _ids(out[1]) == []


def test_end_of_next_turn_on_other_combatant_expires_when_anchor_ends_turn():
    a = Combatant(id="a", name="A")
    b = Combatant(
        id="b",
        name="B",
        conditions=[
            Condition(id="x", name="Marked", duration=EndOfNextTurn(anchor_id="a")),
        ],
    )

    state, expired = advance_turn(_combat(a, b, current_index=0))
    assert expired == ["x"]
    assert state.get("b").conditions == []

    # same condition, but b is the one ending its turn: no match
    state = _combat(a, b, current_index=1)
    state, expired = advance_turn(state)
    assert expired == []
    assert _ids(state.get("b")) == ["x"]


def test_start_of_next_turn_expires_on_the_call_that_makes_anchor_current():
    a = Combatant(id="a", name="A")
    b = Combatant(id="b", name="B")
    c = Combatant(
        id="c",
        name="C",
        conditions=[
            Condition(id="s", name="Guided", duration=StartOfNextTurn(anchor_id="c")),
        ],
    )
    state = _combat(a, b, c)

    state, expired = advance_turn(state)  # a -> b
    assert expired == []
    state, expired = advance_turn(state)  # b -> c
    assert expired == ["s"]


def test_rounds_condition_survives_n_minus_one_wraps():
    a = Combatant(
        id="a",
        name="A",
        conditions=[Condition(id="r", name="Poisoned", duration=Rounds(remaining_rounds=3))],
    )
    b = Combatant(id="b", name="B")
    state = _combat(a, b)

    wraps = 0
    while True:
        state, expired = advance_turn(state)
        if state.current_index == 0:
            wraps += 1
        if expired:
            break
    assert expired == ["r"]
    assert wraps == 3
    assert state.round == 4


def test_expiry_order_is_end_then_round_then_start():
    a = Combatant(
        id="a",
        name="A",
        conditions=[
            Condition(id="start", name="S", duration=StartOfNextTurn(anchor_id="a")),
            Condition(id="round", name="R", duration=Rounds(remaining_rounds=1)),
        ],
    )
    b = Combatant(
        id="b",
        name="B",
        conditions=[Condition(id="end", name="E", duration=EndOfNextTurn(anchor_id="b"))],
    )

    state, expired = advance_turn(_combat(a, b, current_index=1))
    assert expired == ["end", "round", "start"]
    assert state.round == 2
    assert state.current_index == 0
