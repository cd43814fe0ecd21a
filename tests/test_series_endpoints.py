import pytest
from fastapi.testclient import TestClient

from synth_metrics.app import create_app
from synth_metrics.config_loader import ConfigSource


@pytest.fixture
def app():
    return create_app(ConfigSource({"TICK_INTERVAL_S": "3600"}))


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.mark.parametrize(
    "target,expect",
    [
        ("/rand/all", "ExpMetric: "),
        ("/series/exp/up", "Metric_exp_up: "),
        ("/series/exp/down", "Metric_exp_down: "),
        ("/series/int/up", "Metric_int_up: "),
        ("/series/int/down", "Metric_int_down: "),
        ("/series/float/random", "Metric_float_random: "),
    ],
)
def test_data_endpoints(client, target, expect):
    r = client.get(target)
    assert r.status_code == 200
    assert r.text.startswith(expect)
    assert r.text.endswith("\n")
    assert r.headers["content-type"].startswith("text/plain")


@pytest.mark.parametrize(
    "target",
    ["/series/ex/up", "/series/bogus/up", "/series/exp/u", "/series/exp/", "/series/exp", "/series", "/series/exp/up/for/ever"],
)
def test_bad_series_paths_are_400(client, target):
    r = client.get(target)
    assert r.status_code == 400
    assert r.text.strip()


def test_series_is_stable_then_moves_after_tick(app, client):
    first = client.get("/series/exp/up").text
    assert client.get("/series/exp/up").text == first
    buff = app.state.registry.lookup("exp", "up")
    assert first == f"Metric_exp_up: {buff.values[0]}\n"
    app.state.registry.tick()
    assert client.get("/series/exp/up").text == f"Metric_exp_up: {buff.values[1]}\n"


def test_metrics_page_lists_every_pair(app, client):
    r = client.get("/metrics")
    assert r.status_code == 200
    lines = r.text.splitlines()
    assert len(lines) == 9
    names = [line.split(":")[0] for line in lines]
    assert names[:3] == ["Metric_exp_up", "Metric_exp_down", "Metric_exp_random"]
    assert "Metric_int_random" in names
    assert f"Metric_int_down: {app.state.registry.lookup('int', 'down').current()}" in lines


def test_rand_all_one_line_per_type(app, client):
    lines = client.get("/rand/all").text.splitlines()
    assert [line.split(":")[0] for line in lines] == ["ExpMetric", "FloatMetric", "IntMetric"]
    for line, mt in zip(lines, app.state.registry):
        assert line.split(": ")[1] == mt.random_values()[0]
        float(line.split(": ")[1])


def test_fixture_endpoints(client):
    assert client.get("/ep/kv").text == "HelloWorld: 69"
    assert client.get("/ep/json").json() == {"HelloWorld": "69"}
