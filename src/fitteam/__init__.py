"""fitteam - care-team access control for trainee fitness data."""

__version__ = "0.1.0"
