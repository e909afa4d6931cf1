"""Domain object fixtures for testing."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from fitteam.core.access.types import Account, AccountRole, Identity

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


class FakeClock:
    """Settable clock returning timezone-aware UTC datetimes."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        """Move time forward by a timedelta."""
        self.now += timedelta(**kwargs)


def account_for(identity: Identity, role: AccountRole) -> Account:
    """Account matching an identity."""
    return Account(
        uid=identity.uid,
        email=identity.email,
        role=role,
        display_name=identity.display_name,
    )


@pytest.fixture
def clock() -> FakeClock:
    """Return a clock fixed at NOW."""
    return FakeClock()


@pytest.fixture
def trainee() -> Identity:
    """Return the trainee identity."""
    return Identity(uid="trainee-1", email="tara@example.com", display_name="Tara")


@pytest.fixture
def trainer() -> Identity:
    """Return a trainer identity."""
    return Identity(uid="trainer-1", email="coach@example.com", display_name="Cole")


@pytest.fixture
def nutritionist() -> Identity:
    """Return a nutritionist identity."""
    return Identity(uid="nutri-1", email="food@example.com", display_name="Nia")


@pytest.fixture
def outsider() -> Identity:
    """Return a trainer with no relation to the trainee."""
    return Identity(uid="trainer-2", email="other@example.com", display_name="Otto")


@pytest.fixture
def trainer_account(trainer: Identity) -> Account:
    """Return the trainer's account."""
    return account_for(trainer, AccountRole.TRAINER)


@pytest.fixture
def nutritionist_account(nutritionist: Identity) -> Account:
    """Return the nutritionist's account."""
    return account_for(nutritionist, AccountRole.NUTRITIONIST)


@pytest.fixture
def outsider_account(outsider: Identity) -> Account:
    """Return the unrelated trainer's account."""
    return account_for(outsider, AccountRole.TRAINER)
