"""Account profiles."""

from fitteam.core.accounts.service import AccountService

__all__ = ["AccountService"]
