"""
Vault Provider Backends

Available backends for secrets storage.
"""

from .onepassword import OnePasswordProvider

# Registry of available backends
BACKENDS = {
    "onepassword": OnePasswordProvider,
    "1password": OnePasswordProvider,  # Alias
}

__all__ = ["BACKENDS", "OnePasswordProvider"]
