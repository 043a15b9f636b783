"""
Secrets lookup errors.

Lookup failures are configuration/input errors and are never retried.
Provider errors (authentication, transport, rate limits) are not wrapped
and reach the caller as the SDK raised them.
"""

from typing import Optional


class SecretsError(Exception):
    """Base class for errors raised by the secrets module."""


class CredentialError(SecretsError):
    """The service account token is missing or cannot be read."""


class LookupFailedError(SecretsError):
    """Something requested by name does not exist."""

    kind = "entry"

    def __init__(self, name: Optional[str]):
        self.name = name
        super().__init__(f"{self.kind} not found: {name!r}")


class VaultNotFoundError(LookupFailedError):
    kind = "vault"


class ItemNotFoundError(LookupFailedError):
    kind = "item"


class SectionNotFoundError(LookupFailedError):
    kind = "section"


class FieldNotFoundError(LookupFailedError):
    kind = "field"


class RotationSpecNotFoundError(LookupFailedError):
    kind = "rotation specs"
