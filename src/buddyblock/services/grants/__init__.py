from .store import GrantStore

__all__ = ["GrantStore"]
