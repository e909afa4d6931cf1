"""Trainee module data."""

from fitteam.core.data.service import ModuleView, TraineeDataService

__all__ = ["ModuleView", "TraineeDataService"]
