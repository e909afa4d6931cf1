"""Unit tests for the professional client roster."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from fitteam.adapters.store import MemoryDocumentStore
from fitteam.core import query_keys
from fitteam.core.access.types import (
    ClientGrant,
    Identity,
    ModuleKey,
    ModulePermissions,
    ProfessionalRole,
)
from fitteam.core.exceptions import PermissionDeniedError
from fitteam.core.roster import RosterService
from fitteam.core.roster.service import summarize
from tests.fixtures.stores import ScopedStoreFactory, add_team_member


def client(trainee_id: str, active: bool, *modules: ModuleKey) -> ClientGrant:
    return ClientGrant(
        trainee_id=trainee_id,
        active=active,
        role=ProfessionalRole.TRAINER,
        modules=ModulePermissions.only(*modules),
    )


class TestSummarize:
    """Tests for summarize."""

    def test_empty(self) -> None:
        """Every module is counted, even with no clients."""
        summary = summarize([])
        assert summary.active_clients == 0
        assert all(summary.count(module) == 0 for module in ModuleKey)

    def test_inactive_counts_for_nothing(self) -> None:
        """Paused grants are excluded from every count."""
        summary = summarize(
            [
                client("t1", True, ModuleKey.WORKOUTS, ModuleKey.NUTRITION),
                client("t2", True, ModuleKey.WORKOUTS),
                client("t3", False, ModuleKey.WORKOUTS, ModuleKey.WELLBEING),
            ]
        )
        assert summary.active_clients == 2
        assert summary.count(ModuleKey.WORKOUTS) == 2
        assert summary.count(ModuleKey.NUTRITION) == 1
        assert summary.count(ModuleKey.WELLBEING) == 0


class TestRosterService:
    """Tests for RosterService.list_clients."""

    async def test_lists_clients_across_trainees(
        self,
        store: MemoryDocumentStore,
        scoped: ScopedStoreFactory,
        trainee: Identity,
        trainer: Identity,
        outsider: Identity,
    ) -> None:
        """Clients are found through grants, with the trainee id from the path."""
        add_team_member(store, trainee.uid, trainer, modules=(ModuleKey.WORKOUTS,))
        add_team_member(store, "trainee-2", trainer, active=False)
        add_team_member(store, "trainee-3", outsider, modules=tuple(ModuleKey))

        roster = await RosterService(scoped(trainer)).list_clients(trainer.uid)

        assert sorted(c.trainee_id for c in roster.clients) == [trainee.uid, "trainee-2"]
        assert roster.summary.active_clients == 1
        assert roster.summary.count(ModuleKey.WORKOUTS) == 1

    async def test_limit(
        self,
        store: MemoryDocumentStore,
        scoped: ScopedStoreFactory,
        trainer: Identity,
    ) -> None:
        """The roster is capped."""
        for index in range(5):
            add_team_member(store, f"trainee-{index}", trainer)

        roster = await RosterService(scoped(trainer), limit=3).list_clients(trainer.uid)

        assert len(roster.clients) == 3

    async def test_cannot_list_someone_elses_clients(
        self,
        scoped: ScopedStoreFactory,
        trainer: Identity,
        outsider: Identity,
    ) -> None:
        """Querying another professional's grants is denied as a whole."""
        with pytest.raises(PermissionDeniedError):
            await RosterService(scoped(outsider)).list_clients(trainer.uid)

    async def test_cached(
        self,
        store: MemoryDocumentStore,
        scoped: ScopedStoreFactory,
        trainee: Identity,
        trainer: Identity,
        mock_cache: MagicMock,
    ) -> None:
        """The computed roster is cached per professional."""
        add_team_member(store, trainee.uid, trainer)

        roster = await RosterService(scoped(trainer), cache=mock_cache).list_clients(trainer.uid)

        mock_cache.set.assert_called_once_with(query_keys.pro_clients(trainer.uid), roster)

    async def test_cached_roster_still_checks_caller(
        self,
        scoped: ScopedStoreFactory,
        trainer: Identity,
        outsider: Identity,
        mock_cache: MagicMock,
    ) -> None:
        """Another professional cannot read a roster out of the cache."""
        mock_cache.get.return_value = "cached"

        with pytest.raises(PermissionDeniedError):
            await RosterService(scoped(outsider), cache=mock_cache).list_clients(trainer.uid)
        mock_cache.get.assert_not_called()
