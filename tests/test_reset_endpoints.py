import pytest
from fastapi.testclient import TestClient

from synth_metrics.app import create_app
from synth_metrics.config_loader import ConfigSource


@pytest.fixture
def env():
    return {"TICK_INTERVAL_S": "3600"}


@pytest.fixture
def app(env):
    return create_app(ConfigSource(env))


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.mark.parametrize("target", ["/reset/INT_SIZE", "/reset/INT_SIZE/11/ok", "/reset/ONT_SIZE/11", "/reset", "/reset/INT_SIZE/abc", "/reset/INT_SIZE/0", "/reset/INT_SIZE/1000000000", "/reset/INT_MOD/1e308", "/reset/INT_TAIL/10000000000", "/reset/INT_LIMIT/1" + "0" * 400])
def test_rejected_resets_are_400_and_change_nothing(app, client, env, target):
    before = {name: b.values for name, b in app.state.registry.lookup_type("int").registers.items()}
    r = client.get(target)
    assert r.status_code == 400
    assert env == {"TICK_INTERVAL_S": "3600"}
    after = {name: b.values for name, b in app.state.registry.lookup_type("int").registers.items()}
    assert after == before


def test_reset_int_size(app, client, env):
    r = client.get("/reset/INT_SIZE/11")
    assert r.status_code == 200
    lines = r.text.splitlines()
    assert lines == [f"Reset INT_SIZE=11: int_{a}" for a in ("up", "down", "random")]
    assert env["INT_SIZE"] == "11"
    for buff in app.state.registry.lookup_type("int").registers.values():
        assert len(buff) == 11
    assert len(app.state.registry.lookup("float", "up")) == 10


def test_reset_int_limit(app, client, env):
    assert client.get("/reset/INT_LIMIT/22").status_code == 200
    assert env["INT_LIMIT"] == "22"
    values = [int(v) for v in app.state.registry.lookup("int", "down").values]
    assert max(values) == 22 and min(values) >= 0


@pytest.mark.parametrize("name,sep", [("FLOAT_TAIL", None), ("EXP_TAIL", "e")])
def test_reset_tail_precision(app, client, name, sep):
    assert client.get(f"/reset/{name}/8").status_code == 200
    numeric_type = name.split("_")[0].lower()
    last = app.state.registry.lookup(numeric_type, "up").values[-1]
    digits = last.split(sep)[0] if sep else last
    assert len(digits) - digits.index(".") - 1 == 8


def test_reset_exp_mod(app, client, env):
    assert client.get("/reset/EXP_MOD/111.11").status_code == 200
    assert env["EXP_MOD"] == "111.11"
    last = float(app.state.registry.lookup("exp", "up").values[-1])
    assert 111.11 <= last <= 10 * 111.11 * 1.01


def test_admin_reset_json(app, client):
    r = client.post("/admin/reset", json={"name": "FLOAT_SIZE", "value": "3"})
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "accepted"
    assert body["buffers"] == ["float_up", "float_down", "float_random"]
    assert len(app.state.registry.lookup("float", "down")) == 3

    bad = client.post("/admin/reset", json={"name": "FLOAT_WIDTH", "value": "3"})
    assert bad.status_code == 400
