"""
Secrets Module

Looks up and stores secrets in a 1Password vault.

Usage:
    from ci_modules.secrets import secrets_manager

    # Field anywhere in the item
    handle = await secrets_manager.find_secret(token, "prod", "db-creds", "password")

    # Field inside one section
    handle = await secrets_manager.find_secret(
        token, "prod", "db-creds", "password", section="staging"
    )

    # Rotation specs as JSON
    handle = await secrets_manager.find_secret_rotation_specs(
        token, "prod", "db-creds", "rotation"
    )

    # Create or update a field
    await secrets_manager.put_secret(token, "prod", "db-creds", "password", "s3cret")

Configuration:
    Backends are configured in /data/config/secrets_backends.json:

    {
        "backends": {
            "default": {
                "adapter": "onepassword",
                "service_account_env": "OP_SERVICE_ACCOUNT_TOKEN"
            }
        },
        "default_backend": "default"
    }
"""

from .errors import (
    CredentialError,
    FieldNotFoundError,
    ItemNotFoundError,
    LookupFailedError,
    RotationSpecNotFoundError,
    SecretsError,
    SectionNotFoundError,
    VaultNotFoundError,
)
from .interface import (
    Item,
    ItemField,
    ItemOverview,
    ItemSection,
    RotationSpec,
    SecretHandle,
    VaultOverview,
    VaultProvider,
)
from .manager import SecretsManager, secrets_manager

__all__ = [
    "secrets_manager",
    "SecretsManager",
    "VaultProvider",
    "SecretHandle",
    "VaultOverview",
    "ItemOverview",
    "Item",
    "ItemSection",
    "ItemField",
    "RotationSpec",
    "SecretsError",
    "CredentialError",
    "LookupFailedError",
    "VaultNotFoundError",
    "ItemNotFoundError",
    "SectionNotFoundError",
    "FieldNotFoundError",
    "RotationSpecNotFoundError",
]
