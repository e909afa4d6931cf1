"""Client roster."""

from fitteam.core.roster.service import ROSTER_LIMIT, RosterService, summarize

__all__ = ["ROSTER_LIMIT", "RosterService", "summarize"]
