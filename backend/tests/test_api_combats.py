def _apply(client, combat_id, command):
    r = client.post(f"/combats/{combat_id}/commands:apply", json={"command": command})
    assert r.status_code == 200, r.text
    return r.json()


def test_combat_commands_and_undo(client):
    r = client.post("/combats", json={"name": "Road"})
    assert r.status_code == 200, r.text
    combat_id = r.json()["combat_id"]
    assert r.json()["state"]["combatants"] == []

    _apply(client, combat_id, {"type": "AddCombatant", "combatant_id": "a", "name": "Aria", "kind": "pc"})
    body = _apply(client, combat_id, {"type": "AddCombatant", "combatant_id": "b", "name": "Bandit"})
    assert body["state"]["order"] == ["a", "b"]
    assert body["current_id"] == "a"
    assert body["on_deck_id"] == "b"
    assert body["undo_depth"] == 2

    body = _apply(client, combat_id, {"type": "AdvanceTurn"})
    assert body["events"][0]["type"] == "TurnAdvanced"
    assert body["state"]["currentIndex"] == 1

    body = _apply(client, combat_id, {"type": "ApplyHp", "combatant_id": "zzz", "value": "-3"})
    assert body["events"][0]["type"] == "CommandRejected"
    assert body["undo_depth"] == 3

    r = client.post(f"/combats/{combat_id}/undo")
    assert r.status_code == 200
    assert r.json()["state"]["currentIndex"] == 0
    assert r.json()["undo_depth"] == 2

    client.post(f"/combats/{combat_id}/undo")
    client.post(f"/combats/{combat_id}/undo")
    assert client.post(f"/combats/{combat_id}/undo").status_code == 409

    persisted = client.get(f"/combats/{combat_id}").json()
    assert persisted["state"]["combatants"] == []


def test_invalid_command_and_unknown_combat(client):
    combat_id = client.post("/combats", json={"name": "X"}).json()["combat_id"]

    r = client.post(f"/combats/{combat_id}/commands:apply", json={"command": {"type": "Fireball"}})
    assert r.status_code == 422

    r = client.post("/combats/missing/commands:apply", json={"command": {"type": "AdvanceTurn"}})
    assert r.status_code == 404


def test_combat_from_encounter_with_lair(client):
    client.post(
        "/monsters",
        json={
            "id": "dragon",
            "name": "Red Dragon",
            "defense": {"hp": 178},
            "lairActions": [{"name": "Magma"}],
        },
    )
    client.post(
        "/encounters",
        json={
            "id": "enc",
            "name": "Volcano",
            "combatants": [{"name": "Dragon", "monsterId": "dragon", "quantity": 2}],
        },
    )

    r = client.post("/combats/from-encounter", json={"encounter_id": "enc"})
    assert r.status_code == 200, r.text
    state = r.json()["state"]
    assert [c["name"] for c in state["combatants"]] == ["Dragon 1", "Dragon 2", "Red Dragon Lair"]
    assert state["encounterId"] == "enc"
    lair_id = state["combatants"][2]["id"]
    assert state["order"][0] == lair_id

    exported = client.get("/data:export").json()
    assert exported["settings"][0]["lastEncounterId"] == "enc"

    combat_id = r.json()["combat_id"]
    dragons = [c["id"] for c in state["combatants"][:2]]
    _apply(client, combat_id, {"type": "RemoveCombatant", "combatant_id": dragons[0]})
    body = _apply(client, combat_id, {"type": "RemoveCombatant", "combatant_id": dragons[1]})
    assert [e["payload"]["reason"] for e in body["events"]] == ["removed", "lair_of_last_monster"]
    assert body["state"]["order"] == []

    assert client.post("/combats/from-encounter", json={"encounter_id": "nope"}).status_code == 404


def test_add_monster_from_library_and_list(client):
    client.post("/monsters", json={"id": "ogre", "name": "Ogre", "defense": {"hp": 59}})
    combat_id = client.post("/combats", json={"name": "Cave"}).json()["combat_id"]

    r = client.post(f"/combats/{combat_id}/monsters", json={"monster_id": "ogre", "count": 2})
    assert r.status_code == 200, r.text
    assert [c["hp"]["max"] for c in r.json()["state"]["combatants"]] == [59, 59]

    assert client.post(
        f"/combats/{combat_id}/monsters", json={"monster_id": "nope"}
    ).status_code == 404

    summaries = client.get("/combats").json()
    assert summaries[0]["combatant_count"] == 2

    assert client.delete(f"/combats/{combat_id}").status_code == 204
    assert client.get(f"/combats/{combat_id}").status_code == 404


def test_commands_accept_camel_case_keys_and_cap_quick_add(client):
    combat_id = client.post("/combats", json={"name": "Keys"}).json()["combat_id"]

    body = _apply(
        client,
        combat_id,
        {"type": "AddCombatant", "combatantId": "a", "name": "Aria", "hpMax": 14},
    )
    assert body["state"]["combatants"][0]["hp"]["max"] == 14

    body = _apply(client, combat_id, {"type": "MoveCombatant", "combatantId": "a", "toIndex": 0})
    assert body["events"][0]["type"] == "OrderChanged"

    r = client.post(
        f"/combats/{combat_id}/commands:apply",
        json={"command": {"type": "AddMonster", "monster": {"name": "Rat"}, "count": 51}},
    )
    assert r.status_code == 422
