"""
Tests for the HTTP API
"""
import time
from unittest.mock import patch

import pytest
import yaml

from conftest import StubAdapter
from nexuslib.candidates import Mechanism


def wait_for_scan(client, timeout=10):
    deadline = time.time() + timeout
    while time.time() < deadline:
        data = client.get("/api/scan/status").get_json()["data"]
        if not data["running"] and data["job"] and data["job"]["status"] not in ("scheduled", "running"):
            return data["job"]
        time.sleep(0.05)
    raise AssertionError("scan did not finish")


@pytest.fixture
def game_id(client):
    response = client.post("/api/games", json={"title": "My Game", "executable_path": "/games/my.exe"})
    return response.get_json()["data"]["id"]


class TestGamesEndpoints:
    """Tests for catalog entries"""

    def test_list_empty(self, client):
        """Test an empty library"""
        response = client.get("/api/games")
        assert response.status_code == 200
        assert response.get_json() == {"code": "SUCCESS", "success": True, "data": []}

    def test_add_manual(self, client):
        """Test adding a user-created entry"""
        response = client.post("/api/games", json={"title": "My Game"})
        assert response.status_code == 201
        data = response.get_json()["data"]
        assert data["canonical_key"] == "manual_mygame"
        assert data["is_manual"]
        assert data["status"] == "MISSING"

    def test_add_duplicate_manual(self, client, game_id):
        """Test a second manual entry with the same title is rejected"""
        response = client.post("/api/games", json={"title": "My Game"})
        assert response.status_code == 400
        assert response.get_json()["code"] == "VALIDATION_ERROR"

    def test_add_requires_title(self, client):
        """Test a missing title is rejected"""
        assert client.post("/api/games", json={}).status_code == 400
        assert client.post("/api/games", data="nope").status_code == 400

    def test_update_user_fields(self, client, game_id):
        """Test favorite, play time and last played can be edited"""
        response = client.patch(f"/api/games/{game_id}", json={
            "favorite": True,
            "total_play_time": "3600",
            "last_played": "2026-10-01T20:00:00Z",
            "custom_description": "Mine",
        })
        assert response.status_code == 200
        data = response.get_json()["data"]
        assert data["favorite"] is True
        assert data["total_play_time"] == 3600
        assert data["last_played"].startswith("2026-10-01T20:00:00")
        assert data["description"] == "Mine"

        favorites = client.get("/api/games?favorites=true").get_json()["data"]
        assert [g["id"] for g in favorites] == [game_id]

    def test_update_rejects_scan_fields(self, client, game_id):
        """Test scan-owned fields cannot be edited"""
        response = client.patch(f"/api/games/{game_id}", json={"title": "Other"})
        assert response.status_code == 400

    def test_update_bad_date(self, client, game_id):
        """Test an unparseable date is rejected"""
        response = client.patch(f"/api/games/{game_id}", json={"last_played": "yesterday"})
        assert response.status_code == 400

    def test_update_missing(self, client):
        """Test editing an absent entry is a 404"""
        response = client.patch("/api/games/999", json={"favorite": True})
        assert response.status_code == 404
        assert response.get_json()["code"] == "NOT_FOUND"

    def test_delete(self, client, game_id):
        """Test deleting an entry"""
        assert client.delete(f"/api/games/{game_id}").status_code == 200
        assert client.delete(f"/api/games/{game_id}").status_code == 404


class TestIgnoreEndpoints:
    """Tests for the ignore list"""

    def test_ignore_and_restore(self, client, game_id):
        """Test an ignored entry is hidden until restored"""
        response = client.post(f"/api/games/{game_id}/ignore")
        assert response.status_code == 201
        ignored_id = response.get_json()["data"]["id"]

        assert client.get("/api/games").get_json()["data"] == []
        hidden = client.get("/api/games?include_ignored=1").get_json()["data"]
        assert hidden[0]["ignored"] is True
        assert [i["title"] for i in client.get("/api/ignored").get_json()["data"]] == ["My Game"]

        assert client.delete(f"/api/ignored/{ignored_id}").status_code == 200
        assert client.get("/api/games").get_json()["data"][0]["ignored"] is False
        assert client.delete(f"/api/ignored/{ignored_id}").status_code == 404

    def test_ignore_missing(self, client):
        """Test ignoring an absent entry is a 404"""
        assert client.post("/api/games/999/ignore").status_code == 404


class TestScanEndpoints:
    """Tests for scan control"""

    def test_scan_job(self, client, scanner, make_candidate):
        """Test a background scan runs to completion"""
        scanner.adapters = {
            Mechanism.STEAM: StubAdapter(Mechanism.STEAM, [make_candidate("Hades", Mechanism.STEAM, app_id="1145360")]),
        }

        response = client.post("/api/scan")
        assert response.status_code == 202
        job_id = response.get_json()["data"]["job_id"]

        job = wait_for_scan(client)
        assert job["id"] == job_id
        assert job["status"] == "completed"
        assert job["result"]["counts"]["created"] == 1
        assert [g["title"] for g in client.get("/api/games").get_json()["data"]] == ["Hades"]

    def test_scan_conflict(self, client):
        """Test a second scan request is refused while one runs"""
        with patch("nexuslib.routes.scan.start_scan_job", return_value=(False, "library_scan_1234abcd")):
            response = client.post("/api/scan")
        assert response.status_code == 409
        body = response.get_json()
        assert body["code"] == "CONFLICT"
        assert body["details"]["job_id"] == "library_scan_1234abcd"

    def test_status_idle(self, client):
        """Test status with no scan ever run"""
        data = client.get("/api/scan/status").get_json()["data"]
        assert data == {"running": False, "job": None}

    def test_cancel_idle(self, client):
        """Test cancelling with nothing running is a 404"""
        assert client.post("/api/scan/cancel").status_code == 404

    def test_scan_single_source(self, client, scanner, make_candidate):
        """Test a single-source scan returns enriched candidates"""
        scanner.adapters = {
            Mechanism.EPIC: StubAdapter(Mechanism.EPIC, [make_candidate("Fortnite", Mechanism.EPIC, app_id="Fortnite")]),
        }
        response = client.post("/api/scan/epic")
        assert response.status_code == 200
        games = response.get_json()["data"]["games"]
        assert games[0]["canonical_key"] == "epic_fortnite"
        assert games[0]["developer"] == "Epic Games"
        assert client.get("/api/games").get_json()["data"] == []

    def test_scan_unknown_source(self, client):
        """Test an unknown source is rejected"""
        assert client.post("/api/scan/gog").status_code == 400


class TestSystemEndpoints:
    """Tests for settings and metrics"""

    def test_metrics(self, client):
        """Test Prometheus exposition"""
        response = client.get("/api/metrics")
        assert response.status_code == 200
        assert b"nexus_scans_total" in response.data

    def test_settings_masks_secrets(self, client, config_file):
        """Test credentials are masked"""
        config_file.write_text(yaml.dump({"apis": {"igdb": {"client_id": "abcd1234", "client_secret": "supersecretvalue"}}}))

        data = client.get("/api/settings").get_json()["data"]

        assert data["apis"]["igdb"]["client_secret"] == "su***ue"
        assert data["apis"]["igdb"]["client_id"] == "abcd1234"

    def test_update_priority(self, client, config_file, scanner):
        """Test the priority order is saved, unlisted sources appended, and used by the next scan"""
        response = client.post("/api/settings/priority", json={"priority": ["epic", "steam"]})
        assert response.status_code == 200
        assert response.get_json()["data"]["priority"] == ["epic", "steam", "riot", "battlenet", "ea", "standalone"]

        saved = yaml.safe_load(config_file.read_text())
        assert saved["scan"]["priority"][:2] == ["epic", "steam"]
        assert scanner.scan_settings["priority"][:2] == ["epic", "steam"]

    def test_update_priority_invalid(self, client, config_file):
        """Test unknown sources and non-lists are rejected"""
        assert client.post("/api/settings/priority", json={"priority": ["gog"]}).status_code == 400
        assert client.post("/api/settings/priority", json={"priority": "steam"}).status_code == 400
