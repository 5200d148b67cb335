"""BuddyBlock: TOTP-gated blocking of distracting sites."""

__version__ = "0.3.0"
