from .domains import is_governed, normalize_domain, normalize_hostname
from .repository import PolicyConfig, PolicyRepository

__all__ = [
    "PolicyConfig",
    "PolicyRepository",
    "is_governed",
    "normalize_domain",
    "normalize_hostname",
]
