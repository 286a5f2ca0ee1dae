import pytest

from initracker.core.adapters.templates import Encounter, EncounterEntry, Monster
from initracker.core.engine.state import (
    Combatant,
    CombatState,
    Concentration,
    Condition,
    StartOfNextTurn,
)
from initracker.core.persistence.state_codec import (
    AppSettings,
    BundleError,
    ExportData,
    bundle_from_dict,
    bundle_from_json,
    bundle_to_json,
    combat_state_from_dict,
    combat_state_to_dict,
)


def _state():
    return CombatState(
        id="combat-1",
        name="Crypt",
        combatants=[
            Combatant(
                id="a",
                name="Aria",
                kind="pc",
                dex=16,
                is_concentrating=True,
                conditions=[
                    Condition(
                        id="c1",
                        name="Guided",
                        duration=StartOfNextTurn(anchor_id="b", remaining_turns=2),
                    )
                ],
            ),
            Combatant(
                id="b",
                name="Ghoul",
                kind="monster",
                monster_id="ghoul",
                conditions=[
                    Condition(id="c2", name="Held", duration=Concentration(source_id="a"))
                ],
            ),
        ],
        order=["b", "a"],
        current_index=1,
        round=4,
    )


def test_snapshot_uses_camel_case_keys():
    d = combat_state_to_dict(_state())
    assert d["currentIndex"] == 1
    a = d["combatants"][0]
    assert a["isConcentrating"] is True
    assert a["conditions"][0]["duration"] == {
        "type": "startOfNextTurn",
        "anchorId": "b",
        "remainingTurns": 2,
    }
    assert d["combatants"][1]["monsterId"] == "ghoul"


def test_snapshot_round_trip_and_unknown_keys():
    original = _state()
    d = combat_state_to_dict(original)
    d["combatants"][0]["showDetails"] = True
    d["legacyFlag"] = "x"

    restored = combat_state_from_dict(d)
    assert restored == original
    assert restored.order == ["b", "a"]
    assert restored.round == 4


def test_export_import_reproduces_roster_order_and_round():
    data = ExportData(
        monsters=[Monster(id="ghoul", name="Ghoul")],
        encounters=[
            Encounter(id="e", name="Crypt", combatants=[EncounterEntry(name="Ghoul", monster_id="ghoul")])
        ],
        combat_states=[_state()],
        settings=[AppSettings(last_encounter_id="e")],
    )

    restored = bundle_from_json(bundle_to_json(data))

    state = restored.combat_states[0]
    assert [c.name for c in state.combatants] == ["Aria", "Ghoul"]
    assert state.order == ["b", "a"]
    assert state.round == 4
    assert restored.settings[0].last_encounter_id == "e"
    assert restored.monsters[0].id == "ghoul"


def test_bundle_errors():
    with pytest.raises(BundleError, match="invalid JSON"):
        bundle_from_json("{not json")
    with pytest.raises(BundleError, match="expected an object"):
        bundle_from_dict([1, 2])
    with pytest.raises(BundleError, match="invalid data"):
        bundle_from_dict({"combatStates": [{"name": "x", "round": 0}]})


@pytest.mark.parametrize(
    "update",
    [
        {"currentIndex": 5},
        {"order": ["b", "ghost"]},
        {"order": ["b"]},
    ],
)
def test_bundle_rejects_combat_with_broken_order(update):
    state = {**combat_state_to_dict(_state()), **update}
    with pytest.raises(BundleError, match="combat combat-1"):
        bundle_from_dict({"combatStates": [state]})


def test_bundle_rejects_hp_above_max():
    state = combat_state_to_dict(_state())
    state["combatants"][0]["hp"] = {"current": 30, "max": 10, "temp": 0}
    with pytest.raises(BundleError, match="outside"):
        bundle_from_dict({"combatStates": [state]})
