"""Unit tests for the client roster and access routes."""

from __future__ import annotations

from fastapi.testclient import TestClient

from fitteam.adapters.store import MemoryDocumentStore
from fitteam.core.access.types import Identity, ModuleKey
from tests.fixtures.api import auth_headers
from tests.fixtures.stores import add_team_member


class TestClientRoutes:
    """Tests for /clients and /trainees/{id}/access."""

    def test_roster_and_summary(
        self,
        client: TestClient,
        store: MemoryDocumentStore,
        trainee: Identity,
        trainer: Identity,
    ) -> None:
        """The roster lists clients; the summary counts only active ones."""
        add_team_member(
            store, trainee.uid, trainer, modules=(ModuleKey.WORKOUTS, ModuleKey.WEARABLES)
        )
        add_team_member(store, "trainee-2", trainer, active=False, modules=(ModuleKey.WORKOUTS,))

        body = client.get("/api/v1/clients", headers=auth_headers(trainer)).json()

        assert sorted(c["trainee_id"] for c in body["clients"]) == [trainee.uid, "trainee-2"]
        assert body["summary"] == {
            "active_clients": 1,
            "workout_clients": 1,
            "recovery_clients": 0,
            "nutrition_clients": 0,
            "wellbeing_clients": 0,
            "progress_clients": 0,
            "wearables_clients": 1,
        }

    def test_empty_roster(self, client: TestClient, outsider: Identity) -> None:
        """A professional with no clients gets an empty roster."""
        body = client.get("/api/v1/clients", headers=auth_headers(outsider)).json()
        assert body["clients"] == []
        assert body["summary"]["active_clients"] == 0

    def test_module_access(
        self,
        client: TestClient,
        store: MemoryDocumentStore,
        trainee: Identity,
        trainer: Identity,
        outsider: Identity,
    ) -> None:
        """The access view mirrors the grant, and is empty for strangers."""
        add_team_member(store, trainee.uid, trainer, modules=(ModuleKey.PROGRESS,))

        granted = client.get(
            f"/api/v1/trainees/{trainee.uid}/access", headers=auth_headers(trainer)
        ).json()
        stranger = client.get(
            f"/api/v1/trainees/{trainee.uid}/access", headers=auth_headers(outsider)
        ).json()

        assert [m for m, on in granted["modules"].items() if on] == ["progress"]
        assert not any(stranger["modules"].values())
