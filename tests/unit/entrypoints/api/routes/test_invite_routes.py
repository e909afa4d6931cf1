"""Unit tests for professional invite routes."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from fitteam.adapters.store import MemoryDocumentStore
from fitteam.core.access.policy import invite_path
from fitteam.core.access.types import Identity, Invite, ProfessionalRole
from tests.fixtures.api import auth_headers


def create_invite(
    client: TestClient,
    trainee: Identity,
    role: str = "trainer",
    target_email: str | None = None,
) -> str:
    body: dict[str, str] = {"role": role}
    if target_email:
        body["target_email"] = target_email
    response = client.post(
        f"/api/v1/trainees/{trainee.uid}/invites", json=body, headers=auth_headers(trainee)
    )
    assert response.status_code == 201
    code: str = response.json()["code"]
    return code


def accept(client: TestClient, professional: Identity, trainee_id: str, code: str):
    return client.post(
        "/api/v1/invites/accept",
        json={"trainee_id": trainee_id, "code": code},
        headers=auth_headers(professional),
    )


class TestAcceptRoute:
    """Tests for POST /invites/accept."""

    def test_accept(self, client: TestClient, trainee: Identity, trainer: Identity) -> None:
        """The professional joins with every module off."""
        code = create_invite(client, trainee)

        response = accept(client, trainer, trainee.uid, code)

        assert response.status_code == 200
        body = response.json()
        assert body["trainee_id"] == trainee.uid
        assert body["invite"]["status"] == "accepted"
        assert body["invite"]["accepted_by_uid"] == trainer.uid
        assert body["grant"]["active"] is True
        assert not any(body["grant"]["modules"].values())

    def test_second_acceptor_conflicts(
        self,
        client: TestClient,
        trainee: Identity,
        trainer: Identity,
        outsider: Identity,
    ) -> None:
        """Invites are single use."""
        code = create_invite(client, trainee)
        assert accept(client, trainer, trainee.uid, code).status_code == 200

        response = accept(client, outsider, trainee.uid, code)

        assert response.status_code == 409
        assert response.json()["detail"] == "Invite is no longer active."

    def test_unknown_code(self, client: TestClient, trainee: Identity, trainer: Identity) -> None:
        """Unknown codes are 404."""
        assert accept(client, trainer, trainee.uid, "ZZZZZZZZ").status_code == 404

    def test_malformed_code(self, client: TestClient, trainee: Identity, trainer: Identity) -> None:
        """Malformed codes are 422."""
        assert accept(client, trainer, trainee.uid, "ab").status_code == 422

    def test_role_mismatch(
        self, client: TestClient, trainee: Identity, nutritionist: Identity
    ) -> None:
        """Wrong role is 403 with an explanation."""
        code = create_invite(client, trainee, "trainer")

        response = accept(client, nutritionist, trainee.uid, code)

        assert response.status_code == 403
        assert "role" in response.json()["detail"]

    def test_email_mismatch(
        self, client: TestClient, trainee: Identity, trainer: Identity
    ) -> None:
        """Targeted invites reject other emails."""
        code = create_invite(client, trainee, target_email="someone@example.com")

        response = accept(client, trainer, trainee.uid, code)

        assert response.status_code == 403
        assert "email" in response.json()["detail"]

    def test_expired(
        self,
        client: TestClient,
        store: MemoryDocumentStore,
        trainee: Identity,
        trainer: Identity,
    ) -> None:
        """Expired invites are 410."""
        created = datetime.now(UTC) - timedelta(days=8)
        invite = Invite(
            code="OLDCODE1",
            trainee_id=trainee.uid,
            role=ProfessionalRole.TRAINER,
            created_by=trainee.uid,
            created_at=created,
            expires_at=created + timedelta(days=7),
        )
        store.documents[invite_path(trainee.uid, invite.code)] = invite.to_document()

        response = accept(client, trainer, trainee.uid, invite.code)

        assert response.status_code == 410

    def test_without_profile(self, client: TestClient, trainee: Identity) -> None:
        """Accepting needs a profile to know the caller's role."""
        code = create_invite(client, trainee)
        stranger = Identity(uid="nobody-1", email="nobody@example.com")

        response = accept(client, stranger, trainee.uid, code)

        assert response.status_code == 404

    @pytest.mark.parametrize("body", [{}, {"trainee_id": "trainee-1"}, {"code": "ABCDEFGH"}])
    def test_missing_fields(self, client: TestClient, trainer: Identity, body: dict) -> None:
        """Both trainee id and code are required."""
        response = client.post(
            "/api/v1/invites/accept", json=body, headers=auth_headers(trainer)
        )
        assert response.status_code == 422


class TestIncomingRoute:
    """Tests for GET /invites/incoming."""

    def test_lists_targeted_invites(
        self, client: TestClient, trainee: Identity, trainer: Identity
    ) -> None:
        """Pending invites for the caller's email are listed."""
        code = create_invite(client, trainee, target_email=trainer.email.upper())

        body = client.get("/api/v1/invites/incoming", headers=auth_headers(trainer)).json()

        assert body["total"] == 1
        assert body["invites"][0]["code"] == code
        assert body["invites"][0]["trainee_id"] == trainee.uid

    def test_accepted_invite_disappears(
        self, client: TestClient, trainee: Identity, trainer: Identity
    ) -> None:
        """Accepting drops the invite from the incoming list."""
        code = create_invite(client, trainee, target_email=trainer.email)
        headers = auth_headers(trainer)
        assert client.get("/api/v1/invites/incoming", headers=headers).json()["total"] == 1

        accept(client, trainer, trainee.uid, code)

        assert client.get("/api/v1/invites/incoming", headers=headers).json()["total"] == 0
