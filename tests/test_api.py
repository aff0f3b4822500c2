"""Tests for the planet generation API."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from py_planetgen.api import main
from py_planetgen.api.main import app


class TestPlanetAPI:
    """Generate planets through the API and read them back."""

    def setup_method(self):
        """Set up test client with an empty store."""
        main.store.clear()
        self.client = TestClient(app)

    def generate(self, **body):
        body.setdefault("tile_count", 200)
        body.setdefault("plate_count", 5)
        response = self.client.post("/planets/generate", json=body)
        assert response.status_code == 200
        job = self.client.get(f"/jobs/{response.json()['job_id']}").json()
        assert job["status"] == "completed"
        return job["planet_id"]

    def test_root_and_health(self):
        assert self.client.get("/").json()["status"] == "running"
        health = self.client.get("/health").json()
        assert health == {"status": "healthy", "stored_planets": 0}

    def test_generate_and_fetch(self):
        planet_id = self.generate(seed="api-test")
        summary = self.client.get(f"/planets/{planet_id}").json()
        assert summary["seed"] == "api-test"
        assert summary["tile_count"] == 200
        assert summary["plate_count"] == 5
        assert summary["total_area"] > 0

        listing = self.client.get("/planets").json()
        assert [p["id"] for p in listing] == [planet_id]

    def test_generated_seed_is_recorded(self):
        planet_id = self.generate()
        assert self.client.get(f"/planets/{planet_id}").json()["seed"]

    def test_same_seed_same_tiles(self):
        first = self.generate(seed="twin")
        second = self.generate(seed="twin")
        a = self.client.get(f"/planets/{first}/export?include_polygons=false").json()
        b = self.client.get(f"/planets/{second}/export?include_polygons=false").json()
        assert a["id"] != b["id"]
        assert a["tiles"] == b["tiles"]

    def test_tile_detail(self):
        planet_id = self.generate()
        tile = self.client.get(f"/planets/{planet_id}/tiles/0").json()
        assert tile["id"] == 0
        assert tile["lat"] == pytest.approx(90.0)
        assert len(tile["neighbors"]) >= 3
        assert len(tile["polygon"]) == len(tile["neighbors"])
        assert tile["color"].startswith("#")

    def test_plates(self):
        planet_id = self.generate()
        plates = self.client.get(f"/planets/{planet_id}/plates").json()
        assert len(plates) == 5
        assert sum(plate["tile_count"] for plate in plates) == 200

    def test_statistics(self):
        planet_id = self.generate()
        stats = self.client.get(f"/planets/{planet_id}/statistics").json()
        assert stats["total_tiles"] == 200
        assert stats["land_tiles"] + stats["water_tiles"] == 200
        assert sum(entry["tile_count"] for entry in stats["terrain_distribution"]) == 200
        low, high = stats["elevation_range"]
        assert -1.0 <= low <= high <= 1.0

    def test_export(self):
        planet_id = self.generate()
        data = self.client.get(f"/planets/{planet_id}/export").json()
        assert len(data["tiles"]) == 200
        assert "polygon" in data["tiles"][0]
        assert set(data["adjacency"]) == {str(i) for i in range(200)}

    def test_unknown_ids(self):
        assert self.client.get("/jobs/missing").status_code == 404
        assert self.client.get("/planets/missing").status_code == 404
        planet_id = self.generate()
        assert self.client.get(f"/planets/{planet_id}/tiles/999").status_code == 404

    @pytest.mark.parametrize("body", [
        {"tile_count": 2},
        {"jitter": 2.0},
        {"algorithm": 5},
        {"tile_count": 10, "plate_count": 20},
        {"tile_count": 10_000_000},
    ])
    def test_invalid_requests(self, body):
        response = self.client.post("/planets/generate", json=body)
        assert response.status_code == 422
        assert self.client.get("/planets").json() == []

    def test_failed_generation_marks_job(self):
        with patch.object(main, "generate_planet", side_effect=RuntimeError("boom")):
            response = self.client.post("/planets/generate", json={"tile_count": 50, "plate_count": 2})
        job = self.client.get(f"/jobs/{response.json()['job_id']}").json()
        assert job["status"] == "failed"
        assert job["error_message"] == "boom"
        assert self.client.get("/planets").json() == []
