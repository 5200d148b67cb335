"""Navigation decisions, the code challenge, the reset guard and the countdown monitor."""
from .challenge import ChallengeFlow, ChallengeResult
from .engine import (
    AccessDecisionEngine,
    Active,
    Allow,
    Expired,
    Redirect,
    challenge_url,
    destination_for,
    site_from_challenge_url,
)
from .guard import ResetGuard, wipe_all
from .monitor import CountdownMonitor, CountdownView, countdown_view, format_remaining

__all__ = [
    "AccessDecisionEngine",
    "Active",
    "Allow",
    "ChallengeFlow",
    "ChallengeResult",
    "CountdownMonitor",
    "CountdownView",
    "Expired",
    "Redirect",
    "ResetGuard",
    "challenge_url",
    "countdown_view",
    "destination_for",
    "format_remaining",
    "site_from_challenge_url",
    "wipe_all",
]
