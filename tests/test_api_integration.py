"""
Tests for the simulation API endpoints.
"""

from concurrent.futures import Executor, Future
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from py_mazer.api import main
from py_mazer.api.main import app
from py_mazer.core.simulation import InlineExecutor


class StalledExecutor(Executor):
    """Accepts work and never finishes it."""

    def submit(self, fn, /, *args, **kwargs):
        return Future()


@pytest.fixture(autouse=True)
def clear_simulations():
    main.simulations.clear()
    yield
    main.simulations.clear()


@pytest.fixture
def client():
    with patch("py_mazer.api.main._executor", InlineExecutor()):
        yield TestClient(app)


@pytest.fixture
def stalled_client():
    with patch("py_mazer.api.main._executor", StalledExecutor()):
        yield TestClient(app)


def _create(client, **body):
    response = client.post("/simulations", json={"seed": "api", **body})
    assert response.status_code == 201
    return response.json()


class TestServiceEndpoints:
    """Test root and health endpoints."""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_debug_flag_from_settings(self):
        assert app.debug == main.settings.debug

    def test_health(self, client):
        _create(client)
        response = client.get("/health")
        assert response.json() == {"status": "healthy", "simulations": 1}


class TestSimulationLifecycle:
    """Test creating, stepping and removing simulations."""

    def test_create_default_circle(self, client):
        data = _create(client)

        assert data["state"] == "idle"
        assert data["seed"] == "api"
        assert data["num_points"] == 75
        assert data["debug_text"] == "numPoints:75"
        assert data["parameters"]["r1"] == 100.0
        assert data["id"] in main.simulations

    def test_create_rectangle_with_parameters(self, client):
        data = _create(
            client, shape="rectangle", width=200, height=100, num_points=30,
            parameters={"r1": 40, "n_min": 4},
        )
        assert data["num_points"] == 30
        assert data["parameters"]["r1"] == 40.0
        assert data["parameters"]["n_min"] == 4

    def test_create_rejects_invalid_parameters(self, client):
        response = client.post("/simulations", json={"parameters": {"k_min": 80}})
        assert response.status_code == 422

    def test_create_rejects_empty_curve(self, client):
        response = client.post("/simulations", json={"num_points": 0})
        assert response.status_code == 422

    def test_simulation_limit(self, client):
        with patch.object(main.settings, "max_simulations", 1):
            _create(client)
            response = client.post("/simulations", json={})
        assert response.status_code == 429

    def test_list(self, client):
        first = _create(client)
        second = _create(client)
        ids = {item["id"] for item in client.get("/simulations").json()}
        assert ids == {first["id"], second["id"]}

    def test_get_unknown(self, client):
        assert client.get("/simulations/missing").status_code == 404
        assert client.get("/simulations/missing/curve").status_code == 404
        assert client.post("/simulations/missing/steps", json={}).status_code == 404

    def test_steps_dispatched(self, client):
        simulation_id = _create(client)["id"]
        response = client.post(f"/simulations/{simulation_id}/steps", json={"steps": 3})

        assert response.status_code == 202
        data = response.json()
        assert data["state"] == "idle"
        assert data["steps_completed"] == 3
        assert data["batches_completed"] == 1

    def test_steps_wait(self, client):
        simulation_id = _create(client)["id"]
        response = client.post(
            f"/simulations/{simulation_id}/steps", json={"steps": 2, "wait": True},
        )
        assert response.status_code == 200
        assert response.json()["steps_completed"] == 2

    def test_steps_bounds(self, client):
        simulation_id = _create(client)["id"]
        assert client.post(f"/simulations/{simulation_id}/steps", json={"steps": 0}).status_code == 422
        assert client.post(f"/simulations/{simulation_id}/steps", json={"steps": 10**6}).status_code == 422

    def test_same_seed_same_curve(self, client):
        first = _create(client)["id"]
        second = _create(client)["id"]
        for simulation_id in (first, second):
            client.post(f"/simulations/{simulation_id}/steps", json={"steps": 4})

        a = client.get(f"/simulations/{first}/curve").json()["points"]
        b = client.get(f"/simulations/{second}/curve").json()["points"]
        assert a == b

    def test_curve(self, client):
        simulation_id = _create(client, num_points=40)["id"]
        data = client.get(f"/simulations/{simulation_id}/curve").json()

        assert len(data["points"]) == 40
        assert data["discs"] is None
        assert data["stats"]["num_points"] == 40
        assert data["stats"]["area"] > 0
        assert data["stats"]["is_simple"]

    def test_curve_with_discs(self, client):
        simulation_id = _create(client, num_points=12, parameters={"r1": 30})["id"]
        data = client.get(f"/simulations/{simulation_id}/curve", params={"discs": True}).json()

        assert len(data["discs"]) == 12
        assert all(disc["radius"] == 30.0 for disc in data["discs"])

    def test_update_parameters(self, client):
        simulation_id = _create(client)["id"]
        response = client.put(
            f"/simulations/{simulation_id}/parameters", json={"fairing_amplitude": 0.2},
        )
        assert response.status_code == 200
        assert response.json()["parameters"]["fairing_amplitude"] == 0.2
        assert response.json()["num_points"] == 75

    def test_update_parameters_invalid(self, client):
        simulation_id = _create(client)["id"]
        response = client.put(f"/simulations/{simulation_id}/parameters", json={"r1": -5})
        assert response.status_code == 422

    def test_reset(self, client):
        simulation_id = _create(client)["id"]
        client.post(f"/simulations/{simulation_id}/steps", json={"steps": 2})
        response = client.post(
            f"/simulations/{simulation_id}/reset",
            json={"shape": "rectangle", "width": 100, "height": 100, "num_points": 20, "seed": "again"},
        )

        data = response.json()
        assert response.status_code == 200
        assert data["num_points"] == 20
        assert data["seed"] == "again"
        assert data["steps_completed"] == 0

    def test_delete(self, client):
        simulation_id = _create(client)["id"]
        assert client.delete(f"/simulations/{simulation_id}").status_code == 204
        assert client.get(f"/simulations/{simulation_id}").status_code == 404
        assert client.delete(f"/simulations/{simulation_id}").status_code == 404


class TestBatchInFlight:
    """Test behaviour while a batch is still running."""

    def test_second_request_conflicts(self, stalled_client):
        simulation_id = _create(stalled_client)["id"]

        first = stalled_client.post(f"/simulations/{simulation_id}/steps", json={"steps": 1})
        assert first.status_code == 202
        assert first.json()["state"] == "stepping"

        second = stalled_client.post(f"/simulations/{simulation_id}/steps", json={"steps": 1})
        assert second.status_code == 409

        data = stalled_client.get(f"/simulations/{simulation_id}").json()
        assert data["dropped_requests"] == 1
        assert data["steps_completed"] == 0

    def test_mutations_conflict(self, stalled_client):
        simulation_id = _create(stalled_client)["id"]
        stalled_client.post(f"/simulations/{simulation_id}/steps", json={"steps": 1})

        parameters = stalled_client.put(
            f"/simulations/{simulation_id}/parameters", json={"r1": 50},
        )
        reset = stalled_client.post(f"/simulations/{simulation_id}/reset", json={})

        assert parameters.status_code == 409
        assert reset.status_code == 409

    def test_curve_readable_while_stepping(self, stalled_client):
        simulation_id = _create(stalled_client, num_points=10)["id"]
        stalled_client.post(f"/simulations/{simulation_id}/steps", json={"steps": 1})

        response = stalled_client.get(f"/simulations/{simulation_id}/curve")
        assert response.status_code == 200
        assert len(response.json()["points"]) == 10
