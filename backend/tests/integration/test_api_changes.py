"""
Integration tests for change tracking and search metrics endpoints.
"""
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from httpx import AsyncClient


def change_payload(**overrides) -> dict:
    data = {
        "repo_id": "acme",
        "file": "app/about/page.tsx",
        "description": "Rewrite meta description for the about page",
        "commit_sha": "abc12345",
        "affected_pages": ["/about"],
    }
    data.update(overrides)
    return data


class TestChanges:
    """Tests for /api/v1/changes."""

    @pytest.mark.asyncio
    async def test_create_infers_type(self, async_client: AsyncClient):
        response = await async_client.post("/api/v1/changes", json=change_payload())

        assert response.status_code == 201
        data = response.json()
        assert data["type"] == "meta-description"
        assert data["expected_impact"] == "Meta description optimization"
        assert data["affected_pages"] == ["/about"]
        assert data["measured_impact"] is None
        assert data["measured_at"] is None

    @pytest.mark.asyncio
    async def test_create_with_explicit_type(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/v1/changes",
            json=change_payload(type="blog-published", description="Launch post", expected_impact="More traffic"),
        )

        assert response.json()["type"] == "blog-published"
        assert response.json()["expected_impact"] == "More traffic"

    @pytest.mark.asyncio
    async def test_unknown_type_is_rejected(self, async_client: AsyncClient):
        response = await async_client.post("/api/v1/changes", json=change_payload(type="rewrite"))

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_list_and_get(self, async_client: AsyncClient):
        older = datetime.now(timezone.utc) - timedelta(days=2)
        first = (await async_client.post("/api/v1/changes", json=change_payload(timestamp=older.isoformat()))).json()
        second = (await async_client.post("/api/v1/changes", json=change_payload(description="Add sitemap"))).json()
        await async_client.post("/api/v1/changes", json=change_payload(repo_id="other"))

        listed = (await async_client.get("/api/v1/changes", params={"repo_id": "acme"})).json()
        fetched = await async_client.get(f"/api/v1/changes/{first['id']}")

        assert [c["id"] for c in listed] == [second["id"], first["id"]]
        assert fetched.status_code == 200
        assert fetched.json()["description"] == "Rewrite meta description for the about page"

    @pytest.mark.asyncio
    async def test_list_limit_bounds(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/changes", params={"limit": 0})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_get_not_found(self, async_client: AsyncClient):
        response = await async_client.get(f"/api/v1/changes/{uuid4()}")

        assert response.status_code == 404


class TestMeasureImpact:
    """Tests for POST /api/v1/changes/{change_id}/measure."""

    @pytest.mark.asyncio
    async def test_not_found(self, async_client: AsyncClient):
        response = await async_client.post(f"/api/v1/changes/{uuid4()}/measure")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_too_early(self, async_client: AsyncClient):
        change = (await async_client.post("/api/v1/changes", json=change_payload())).json()

        response = await async_client.post(f"/api/v1/changes/{change['id']}/measure")

        assert response.status_code == 200
        assert response.json()["measured"] is False
        assert response.json()["impact"] is None

    @pytest.mark.asyncio
    async def test_measure_once(self, async_client: AsyncClient):
        changed_at = (datetime.now(timezone.utc) - timedelta(days=30)).replace(hour=12, minute=0)
        change = (
            await async_client.post(
                "/api/v1/changes",
                json=change_payload(affected_pages=[], timestamp=changed_at.isoformat()),
            )
        ).json()
        day = changed_at.date()
        for offset in range(1, 8):
            await async_client.post(
                "/api/v1/metrics",
                json={"repo_id": "acme", "date": (day - timedelta(days=offset)).isoformat(), "clicks": 10},
            )
            await async_client.post(
                "/api/v1/metrics",
                json={"repo_id": "acme", "date": (day + timedelta(days=offset)).isoformat(), "clicks": 25},
            )

        response = await async_client.post(f"/api/v1/changes/{change['id']}/measure")

        assert response.status_code == 200
        data = response.json()
        assert data["measured"] is True
        assert data["impact"]["clicks_before"] == 10
        assert data["impact"]["clicks_after"] == 25
        assert data["impact_percentage"] == 150.0

        stored = (await async_client.get(f"/api/v1/changes/{change['id']}")).json()
        assert stored["measured_impact"]["clicks_after"] == 25
        assert stored["measured_at"] is not None

        again = await async_client.post(f"/api/v1/changes/{change['id']}/measure")
        assert again.status_code == 409


class TestMetrics:
    """Tests for /api/v1/metrics."""

    @pytest.mark.asyncio
    async def test_record_and_upsert(self, async_client: AsyncClient):
        payload = {
            "repo_id": "acme",
            "date": "2026-09-01",
            "clicks": 12,
            "impressions": 300,
            "ctr": 0.04,
            "position": 8.2,
            "pages": [{"page": "https://acme.dev/about", "clicks": 4}],
        }

        first = await async_client.post("/api/v1/metrics", json=payload)
        second = await async_client.post("/api/v1/metrics", json={**payload, "clicks": 20})

        assert first.status_code == 201
        assert second.json()["id"] == first.json()["id"]
        assert second.json()["clicks"] == 20
        assert first.json()["pages"][0]["page"] == "https://acme.dev/about"

    @pytest.mark.asyncio
    async def test_negative_clicks_rejected(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/v1/metrics", json={"repo_id": "acme", "date": "2026-09-01", "clicks": -1}
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_list_range(self, async_client: AsyncClient):
        for day, clicks in [("2026-09-01", 1), ("2026-09-02", 2), ("2026-09-05", 5)]:
            await async_client.post("/api/v1/metrics", json={"repo_id": "acme", "date": day, "clicks": clicks})

        response = await async_client.get(
            "/api/v1/metrics", params={"repo_id": "acme", "start": "2026-09-01", "end": "2026-09-03"}
        )

        assert response.status_code == 200
        assert [row["clicks"] for row in response.json()] == [1, 2]

    @pytest.mark.asyncio
    async def test_list_requires_range(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/metrics", params={"repo_id": "acme"})

        assert response.status_code == 422
