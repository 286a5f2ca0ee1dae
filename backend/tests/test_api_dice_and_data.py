def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_dice_roll(client):
    # the client fixture's rng always rolls 10
    r = client.post("/dice:roll", json={"expression": "1d20+2", "label": "Attack"})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["total"] == 12
    assert body["rolls"] == [10]
    assert body["summary"] == "Attack 1d20+2 = 12 (1d20[10] +2)"

    assert client.post("/dice:roll", json={"expression": "2d"}).status_code == 422


def test_export_then_import_restores_everything(client):
    client.post("/monsters", json={"id": "ghoul", "name": "Ghoul"})
    combat_id = client.post("/combats", json={"name": "Crypt"}).json()["combat_id"]
    client.post(
        f"/combats/{combat_id}/commands:apply",
        json={"command": {"type": "AddCombatant", "combatant_id": "a", "name": "Aria"}},
    )
    exported = client.get("/data:export").json()

    client.delete("/monsters/ghoul")
    client.delete(f"/combats/{combat_id}")

    r = client.post("/data:import", json=exported)
    assert r.status_code == 200, r.text
    assert r.json() == {"monsters": 1, "encounters": 0, "combat_states": 1}

    state = client.get(f"/combats/{combat_id}").json()["state"]
    assert state["order"] == ["a"]
    assert state["round"] == 1
    assert client.get("/monsters/ghoul").status_code == 200


def test_bad_import_leaves_data_alone(client):
    client.post("/monsters", json={"id": "ghoul", "name": "Ghoul"})

    r = client.post("/data:import", json={"monsters": [{"name": 5, "cr": "high"}]})
    assert r.status_code == 422
    r = client.post("/data:import", json=[1, 2, 3])
    assert r.status_code == 422

    assert [m["id"] for m in client.get("/monsters").json()] == ["ghoul"]


def _combat_with_two(**overrides):
    state = {
        "id": "imported",
        "name": "Imported",
        "combatants": [{"id": "a", "name": "A"}, {"id": "b", "name": "B"}],
        "order": ["a", "b"],
        "currentIndex": 0,
        "round": 1,
    }
    state.update(overrides)
    return state


def test_import_rejects_combat_with_inconsistent_turn_state(client):
    r = client.post("/data:import", json={"combatStates": [_combat_with_two(currentIndex=5)]})
    assert r.status_code == 422
    r = client.post("/data:import", json={"combatStates": [_combat_with_two(order=["a", "ghost"])]})
    assert r.status_code == 422
    assert client.get("/combats/imported").status_code == 404

    r = client.post("/data:import", json={"combatStates": [_combat_with_two()]})
    assert r.status_code == 200, r.text
    r = client.post(
        "/combats/imported/commands:apply",
        json={"command": {"type": "SetTempHp", "combatantId": "a", "temp": 3}},
    )
    assert r.status_code == 200, r.text
    assert r.json()["state"]["combatants"][0]["hp"]["temp"] == 3


def test_huge_dice_count_is_rejected(client):
    r = client.post("/dice:roll", json={"expression": "1000000000d6"})
    assert r.status_code == 422
