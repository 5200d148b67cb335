# src/buddyblock/config/const.py
from __future__ import annotations

# Fixed protocol values (changed by developers in code only)
TOTP_PERIOD_SECONDS: int = 30
TOTP_DIGITS: int = 6
TOTP_WINDOW_STEPS: int = 1
TOTP_ALGORITHM: str = "SHA1"
SECRET_BYTES: int = 20

GRANT_DURATION_MS: int = 30 * 60 * 1000

GUARD_MAX_ATTEMPTS: int = 3
GUARD_LOCKOUT_MS: int = 30 * 1000
RESET_CONFIRM_WINDOW_MS: int = 60 * 1000

MONITOR_TICK_SECONDS: float = 1.0
MONITOR_REVALIDATE_SECONDS: float = 5.0
MONITOR_EXPIRED_DELAY_SECONDS: float = 0.5
MONITOR_WARNING_MS: int = 5 * 60 * 1000

# Store namespaces and keys
SYNC_NAMESPACE: str = "sync"
LOCAL_NAMESPACE: str = "local"

KEY_ENROLLED: str = "enrolled"
KEY_SECRET: str = "secret"
KEY_BLOCKED_DOMAINS: str = "blockedDomains"
KEY_ENROLLED_AT: str = "enrolledAt"
KEY_GRANTS: str = "grants"

DEFAULT_ISSUER: str = "BuddyBlock"
DEFAULT_LABEL: str = "AccountabilityPartner"
DEFAULT_CHALLENGE_SURFACE: str = "buddyblock://blocked"
DEFAULT_SETUP_SURFACE: str = "buddyblock://setup"
