"""Grant management."""

from fitteam.core.grants.service import GrantService

__all__ = ["GrantService"]
