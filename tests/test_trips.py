"""Tests for public roadtrip endpoints and premium gating."""

from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.trips import trips
from app.schemas.trips import TripUpdate
from app.schemas.users import Role
from app.services.trip_service import TripService, gate_premium_content, slugify

ROADTRIPS = "/api/v1/roadtrips"

LONG_TEXT = "x" * 300

PREMIUM_CONTENT = {
    "is_premium": True,
    "is_published": True,
    "itinerary": [
        {"day": 1, "title": "Lyon", "description": LONG_TEXT, "overnight": "Lyon"},
        {"day": 2, "title": "Annecy", "description": "Lake day", "overnight": "Annecy"},
    ],
    "points_of_interest": [
        {"name": "Fourviere", "description": LONG_TEXT},
        {"name": "Old town", "description": "Short"},
        {"name": "Lake", "description": "Blue"},
    ],
}


def test_slugify():
    slug = slugify("Côte d'Azur & Provence!")

    base, _, stamp = slug.rpartition("-")
    assert base == "cote-d-azur-provence"
    assert stamp.isdigit()


def test_slugify_without_ascii_letters():
    assert slugify("!!!").isdigit()


class TestPremiumGating:
    """Tests for truncating premium trips."""

    def trip(self, **overrides) -> dict:
        return {**PREMIUM_CONTENT, **overrides}

    def test_anonymous_gets_preview(self):
        gated = gate_premium_content(self.trip(), None)

        assert [step["title"] for step in gated["itinerary"]] == ["Lyon", "Annecy"]
        assert gated["itinerary"][0]["description"] == "x" * 100 + "..."
        assert gated["itinerary"][0]["overnight"] == "Lyon"
        assert gated["itinerary"][1]["description"] == "Lake day..."
        assert len(gated["points_of_interest"]) == 2
        assert gated["points_of_interest"][0]["description"] == "x" * 80 + "..."
        assert gated["premium_notice"] is not None

    def test_regular_user_gets_preview(self):
        assert "premium_notice" in gate_premium_content(self.trip(), Role.USER)

    @pytest.mark.parametrize("role", [Role.PREMIUM, Role.ADMIN, "premium"])
    def test_premium_roles_get_everything(self, role):
        trip = self.trip()

        assert gate_premium_content(trip, role) is trip

    def test_free_trip_untouched(self):
        trip = self.trip(is_premium=False)

        assert gate_premium_content(trip, None) is trip

    def test_source_not_mutated(self):
        trip = self.trip()

        gate_premium_content(trip, None)

        assert trip["itinerary"][0]["description"] == LONG_TEXT
        assert len(trip["points_of_interest"]) == 3


@pytest.mark.asyncio
class TestTripService:
    """Tests for trip persistence."""

    async def test_create_defaults(self, make_trip):
        trip = await make_trip(title="Loire castles")

        assert trip["slug"].startswith("loire-castles-")
        assert trip["views"] == 0
        assert trip["duration"] == 7
        assert trip["budget_currency"] == "EUR"
        assert trip["image"].startswith("/placeholder.svg")
        assert trip["is_published"] is False

    async def test_update_title_changes_slug(self, make_trip, db_session: AsyncSession):
        trip = await make_trip(title="Old title")

        updated = await TripService.update_trip(
            db_session, trip["id"], TripUpdate(title="New title", budget={"amount": 900})
        )

        assert updated["slug"].startswith("new-title-")
        assert updated["budget_amount"] == 900
        assert updated["description"] == trip["description"]

    async def test_update_missing_trip(self, db_session: AsyncSession):
        assert await TripService.update_trip(db_session, uuid4(), TripUpdate(title="x")) is None


@pytest.mark.asyncio
class TestTripEndpoints:
    """Tests for /roadtrips."""

    async def test_list_only_published(self, client: AsyncClient, make_trip):
        await make_trip(title="Published one", is_published=True, country="France")
        await make_trip(title="Draft", is_published=False)

        response = await client.get(ROADTRIPS)

        assert response.status_code == 200
        data = response.json()
        assert [t["title"] for t in data["trips"]] == ["Published one"]
        assert data["pagination"] == {
            "current_page": 1,
            "total_pages": 1,
            "total_items": 1,
            "has_next": False,
            "has_prev": False,
        }

    async def test_list_filters(self, client: AsyncClient, make_trip):
        await make_trip(title="Alps", is_published=True, country="France")
        await make_trip(title="Highlands", is_published=True, country="Scotland", is_premium=True)

        by_country = await client.get(ROADTRIPS, params={"country": "fran"})
        premium_only = await client.get(ROADTRIPS, params={"is_premium": "true"})

        assert [t["title"] for t in by_country.json()["trips"]] == ["Alps"]
        assert [t["title"] for t in premium_only.json()["trips"]] == ["Highlands"]

    async def test_country_filter_is_literal(self, client: AsyncClient, make_trip):
        await make_trip(title="Alps", is_published=True, country="France")

        response = await client.get(ROADTRIPS, params={"country": "_"})

        assert response.json()["trips"] == []

    async def test_list_pagination(self, client: AsyncClient, make_trip):
        for n in range(3):
            await make_trip(title=f"Trip {n}", is_published=True)

        response = await client.get(ROADTRIPS, params={"page": 2, "limit": 2})

        data = response.json()
        assert len(data["trips"]) == 1
        assert data["pagination"]["total_pages"] == 2
        assert data["pagination"]["has_prev"] is True
        assert data["pagination"]["has_next"] is False

    async def test_popular(self, client: AsyncClient, make_trip, db_session: AsyncSession):
        quiet = await make_trip(title="Quiet", is_published=True)
        busy = await make_trip(title="Busy", is_published=True)
        await db_session.execute(update(trips).where(trips.c.id == busy["id"]).values(views=50))
        await db_session.execute(update(trips).where(trips.c.id == quiet["id"]).values(views=5))
        await db_session.commit()

        response = await client.get(f"{ROADTRIPS}/popular", params={"limit": 1})

        assert [t["title"] for t in response.json()] == ["Busy"]

    async def test_get_missing_trip(self, client: AsyncClient):
        response = await client.get(f"{ROADTRIPS}/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["message"] == "Roadtrip not found"

    async def test_premium_trip_gated_for_anonymous(self, client: AsyncClient, make_trip):
        trip = await make_trip(title="Alpine passes", **PREMIUM_CONTENT)

        response = await client.get(f"{ROADTRIPS}/{trip['id']}")

        data = response.json()
        assert len(data["points_of_interest"]) == 2
        assert data["itinerary"][0]["description"].endswith("...")
        assert data["premium_notice"]["missing_features"]

    async def test_invalid_token_treated_as_anonymous(self, client: AsyncClient, make_trip):
        trip = await make_trip(title="Alpine passes", **PREMIUM_CONTENT)

        response = await client.get(
            f"{ROADTRIPS}/{trip['id']}",
            headers={"Authorization": "Bearer garbage"},
        )

        assert response.status_code == 200
        assert response.json()["premium_notice"] is not None

    async def test_premium_trip_complete_for_premium_user(
        self, client: AsyncClient, make_trip, premium_headers
    ):
        trip = await make_trip(title="Alpine passes", **PREMIUM_CONTENT)

        response = await client.get(f"{ROADTRIPS}/{trip['id']}", headers=premium_headers)

        data = response.json()
        assert len(data["points_of_interest"]) == 3
        assert data["itinerary"][0]["description"] == LONG_TEXT
        assert data["premium_notice"] is None

    async def test_increment_views(self, client: AsyncClient, make_trip):
        trip = await make_trip(title="Counted")

        await client.post(f"{ROADTRIPS}/{trip['id']}/views")
        response = await client.post(f"{ROADTRIPS}/{trip['id']}/views")

        assert response.status_code == 200
        assert response.json() == {"views": 2}

    async def test_increment_views_missing_trip(self, client: AsyncClient):
        response = await client.post(f"{ROADTRIPS}/{uuid4()}/views")

        assert response.status_code == 404
