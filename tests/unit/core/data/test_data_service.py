"""Unit tests for TraineeDataService."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from fitteam.adapters.store import MemoryDocumentStore
from fitteam.core import query_keys
from fitteam.core.access.types import Identity, ModuleKey
from fitteam.core.data import TraineeDataService
from fitteam.core.exceptions import PermissionDeniedError, ValidationError
from tests.fixtures.domain_objects import NOW, FakeClock
from tests.fixtures.stores import ScopedStoreFactory, add_team_member

WORKOUT = {"name": "Squats", "sets": 5}


@pytest.fixture
def seeded(store: MemoryDocumentStore, trainee: Identity) -> MemoryDocumentStore:
    """Return the store with one entry in two modules."""
    store.documents[f"trainees/{trainee.uid}/workouts/w1"] = dict(WORKOUT)
    store.documents[f"trainees/{trainee.uid}/nutritionDays/2026-03-01"] = {"kcal": 2100}
    return store


class TestListEntries:
    """Tests for TraineeDataService.list_entries."""

    async def test_owner_reads(
        self,
        seeded: MemoryDocumentStore,
        scoped: ScopedStoreFactory,
        trainee: Identity,
    ) -> None:
        """The trainee reads their own entries with ids."""
        view = await TraineeDataService(scoped(trainee), trainee).list_entries(
            trainee.uid, "workouts"
        )
        assert view.restricted is False
        assert view.module is ModuleKey.WORKOUTS
        assert view.entries == [{"id": "w1", **WORKOUT}]

    async def test_granted_professional_reads(
        self,
        seeded: MemoryDocumentStore,
        scoped: ScopedStoreFactory,
        trainee: Identity,
        trainer: Identity,
    ) -> None:
        """A professional with the module on sees the entries."""
        add_team_member(seeded, trainee.uid, trainer, modules=(ModuleKey.WORKOUTS,))
        view = await TraineeDataService(scoped(trainer), trainer).list_entries(
            trainee.uid, "workouts"
        )
        assert view.entries == [{"id": "w1", **WORKOUT}]

    async def test_module_off_is_restricted(
        self,
        seeded: MemoryDocumentStore,
        scoped: ScopedStoreFactory,
        trainee: Identity,
        trainer: Identity,
    ) -> None:
        """Modules not shared come back restricted and empty."""
        add_team_member(seeded, trainee.uid, trainer, modules=(ModuleKey.WORKOUTS,))
        view = await TraineeDataService(scoped(trainer), trainer).list_entries(
            trainee.uid, "nutritionDays"
        )
        assert view.restricted is True
        assert view.entries == []

    async def test_non_member_is_restricted(
        self,
        seeded: MemoryDocumentStore,
        scoped: ScopedStoreFactory,
        trainee: Identity,
        outsider: Identity,
    ) -> None:
        """Strangers get the same restricted view."""
        view = await TraineeDataService(scoped(outsider), outsider).list_entries(
            trainee.uid, "workouts"
        )
        assert view.restricted is True

    async def test_gate_race_is_restricted(
        self,
        seeded: MemoryDocumentStore,
        scoped: ScopedStoreFactory,
        trainee: Identity,
        outsider: Identity,
    ) -> None:
        """If the store denies after the gate allowed, the view is restricted."""
        gate = MagicMock()
        gate.can_access = AsyncMock(return_value=True)
        service = TraineeDataService(scoped(outsider), outsider, gate=gate)

        view = await service.list_entries(trainee.uid, "workouts")

        assert view.restricted is True

    async def test_unknown_collection(self, scoped: ScopedStoreFactory, trainee: Identity) -> None:
        """Only module collections are exposed."""
        with pytest.raises(ValidationError):
            await TraineeDataService(scoped(trainee), trainee).list_entries(
                trainee.uid, "invites"
            )

    async def test_owner_view_cached(
        self,
        seeded: MemoryDocumentStore,
        scoped: ScopedStoreFactory,
        trainee: Identity,
        mock_cache: MagicMock,
    ) -> None:
        """Owner reads are cached per module."""
        service = TraineeDataService(scoped(trainee), trainee, cache=mock_cache)

        await service.list_entries(trainee.uid, "workouts")

        mock_cache.set.assert_called_once_with(
            query_keys.module_entries(trainee.uid, ModuleKey.WORKOUTS),
            [{"id": "w1", **WORKOUT}],
        )

    async def test_professional_view_not_cached(
        self,
        seeded: MemoryDocumentStore,
        scoped: ScopedStoreFactory,
        trainee: Identity,
        trainer: Identity,
        mock_cache: MagicMock,
    ) -> None:
        """Entries seen through a grant are never cached."""
        add_team_member(seeded, trainee.uid, trainer, modules=(ModuleKey.WORKOUTS,))
        service = TraineeDataService(scoped(trainer), trainer, cache=mock_cache)

        await service.list_entries(trainee.uid, "workouts")

        keys = [c.args[0] for c in mock_cache.set.call_args_list]
        assert query_keys.module_entries(trainee.uid, ModuleKey.WORKOUTS) not in keys


class TestEntryWrites:
    """Tests for single-entry operations."""

    async def test_owner_put_and_get(
        self,
        store: MemoryDocumentStore,
        scoped: ScopedStoreFactory,
        clock: FakeClock,
        trainee: Identity,
    ) -> None:
        """The trainee writes entries; ids in the body are ignored."""
        service = TraineeDataService(scoped(trainee), trainee, clock=clock)

        saved = await service.put_entry(
            trainee.uid, "recovery", "r1", {"id": "other", "sleepHours": 7.5}
        )

        assert saved == {"id": "r1", "sleepHours": 7.5, "updatedAt": NOW}
        assert await service.get_entry(trainee.uid, "recovery", "r1") == saved
        assert "id" not in store.documents[f"trainees/{trainee.uid}/recovery/r1"]

    async def test_get_missing(self, scoped: ScopedStoreFactory, trainee: Identity) -> None:
        """Absent entries are None."""
        service = TraineeDataService(scoped(trainee), trainee)
        assert await service.get_entry(trainee.uid, "workouts", "nope") is None

    async def test_professional_cannot_write(
        self,
        store: MemoryDocumentStore,
        scoped: ScopedStoreFactory,
        trainee: Identity,
        trainer: Identity,
    ) -> None:
        """Grants never allow writes."""
        add_team_member(store, trainee.uid, trainer, modules=tuple(ModuleKey))
        service = TraineeDataService(scoped(trainer), trainer)

        with pytest.raises(PermissionDeniedError):
            await service.put_entry(trainee.uid, "workouts", "w2", WORKOUT)
        with pytest.raises(PermissionDeniedError):
            await service.delete_entry(trainee.uid, "workouts", "w1")

    async def test_professional_get_without_module(
        self,
        seeded: MemoryDocumentStore,
        scoped: ScopedStoreFactory,
        trainee: Identity,
        trainer: Identity,
    ) -> None:
        """Single reads of an unshared module are denied."""
        add_team_member(seeded, trainee.uid, trainer, modules=(ModuleKey.NUTRITION,))
        service = TraineeDataService(scoped(trainer), trainer)

        with pytest.raises(PermissionDeniedError):
            await service.get_entry(trainee.uid, "workouts", "w1")

    async def test_delete_invalidates(
        self,
        seeded: MemoryDocumentStore,
        scoped: ScopedStoreFactory,
        trainee: Identity,
        mock_cache: MagicMock,
    ) -> None:
        """Deleting drops the cached module view."""
        service = TraineeDataService(scoped(trainee), trainee, cache=mock_cache)

        await service.delete_entry(trainee.uid, "workouts", "w1")

        assert f"trainees/{trainee.uid}/workouts/w1" not in seeded.documents
        mock_cache.invalidate.assert_called_once_with(
            query_keys.module_entries(trainee.uid, ModuleKey.WORKOUTS)
        )
