"""
Secrets Manager

Entry points the orchestration platform calls: find a secret, find the
rotation specs of a secret, put a secret.

Usage:
    from ci_modules.secrets import secrets_manager

    handle = await secrets_manager.find_secret(
        token, vault_name="prod", item_name="db-creds", field_name="password"
    )

    specs = await secrets_manager.find_secret_rotation_specs(
        token, vault_name="prod", item_name="db-creds", section_name="rotation"
    )

Every call builds and authenticates its own provider, and drops it when
the call returns.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Optional, Type, Union

from ..config import DEFAULT_TOKEN_ENV, load_config
from .backends import BACKENDS
from .errors import CredentialError, ItemNotFoundError
from .interface import ItemField, ItemOverview, SecretHandle, SecretSink, VaultProvider
from .resolver import (
    extract_rotation_spec,
    find_field_value,
    find_item,
    find_section_id,
    find_vault,
)

logger = logging.getLogger(__name__)

ROTATION_SPECS_NAME = "rotationSpecs"

Credential = Union[SecretHandle, str, None]


class SecretsManager:
    """
    Resolves and stores secrets through a configured vault backend.

    Args:
        config_path: Backend config file (default: config.SECRETS_CONFIG)
        backends: Adapter registry (default: BACKENDS)
        secret_sink: Wraps found values into handles (default: SecretHandle)
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        backends: Optional[Dict[str, Type[VaultProvider]]] = None,
        secret_sink: SecretSink = SecretHandle
    ):
        self._config_path = config_path
        self._adapters = backends if backends is not None else BACKENDS
        self._secret_sink = secret_sink
        self._config: Dict = {}
        self._default_backend: str = "default"
        self._loaded = False

    def _load_config(self) -> None:
        """Load backend configuration once."""
        if self._loaded:
            return

        self._config = load_config(self._config_path)
        self._default_backend = self._config.get("default_backend", "default")
        self._loaded = True

    def _backend_config(self, name: Optional[str]) -> Dict:
        self._load_config()
        name = name or self._default_backend

        backend_config = self._config.get("backends", {}).get(name)
        if not backend_config:
            raise KeyError(f"Unknown secrets backend: {name}")
        return backend_config

    def _read_token(self, service_account: Credential, backend_config: Dict) -> str:
        """Turn the supplied credential into a plaintext token."""
        if isinstance(service_account, SecretHandle):
            token = service_account.plaintext()
        elif isinstance(service_account, str):
            token = service_account
        elif service_account is None:
            env_name = backend_config.get("service_account_env", DEFAULT_TOKEN_ENV)
            token = os.getenv(env_name)
            if not token:
                raise CredentialError(f"Environment variable {env_name} not set")
        else:
            raise CredentialError(
                f"Unsupported credential type: {type(service_account).__name__}"
            )

        if not token or not token.strip():
            raise CredentialError("Service account token is empty")
        return token

    def provider(
        self,
        service_account: Credential = None,
        backend: Optional[str] = None
    ) -> VaultProvider:
        """
        Build an unauthenticated provider for one operation.

        Use it as `async with manager.provider(token) as provider:`.
        """
        backend_config = self._backend_config(backend)

        adapter_type = backend_config.get("adapter", "onepassword")
        if adapter_type not in self._adapters:
            raise ValueError(f"Unknown backend adapter type: {adapter_type}")

        token = self._read_token(service_account, backend_config)
        return self._adapters[adapter_type](backend_config, token)

    async def find_secret(
        self,
        service_account: Credential,
        vault_name: str,
        item_name: str,
        field_name: str,
        section: Optional[str] = None,
        backend: Optional[str] = None
    ) -> SecretHandle:
        """
        Find the value of a field in an item.

        Args:
            service_account: Token, handle, or None to read the configured env var
            vault_name: Name of the vault to search
            item_name: Name of the item to find
            field_name: Name of the field to find
            section: Limit the search to this section of the item
            backend: Backend name (default: default_backend from config)

        Returns:
            Handle named after the field wrapping its value
        """
        async with self.provider(service_account, backend) as provider:
            vault = await find_vault(provider, vault_name)
            overview = await find_item(provider, vault.id, item_name)
            item = await provider.get_item(vault.id, overview.id)

        section_id = find_section_id(item, section)
        value = find_field_value(item, section_id, field_name)
        return self._secret_sink(field_name, value)

    async def find_secret_rotation_specs(
        self,
        service_account: Credential,
        vault_name: str,
        item_name: str,
        section_name: str,
        backend: Optional[str] = None
    ) -> SecretHandle:
        """
        Find the rotation specs stored in a section of an item.

        Args:
            service_account: Token, handle, or None to read the configured env var
            vault_name: Name of the vault to search
            item_name: Name of the item to find
            section_name: Section holding expires-on, created-on and rotationFunction
            backend: Backend name (default: default_backend from config)

        Returns:
            Handle named "rotationSpecs" wrapping the specs as JSON
        """
        async with self.provider(service_account, backend) as provider:
            vault = await find_vault(provider, vault_name)
            overview = await find_item(provider, vault.id, item_name)
            item = await provider.get_item(vault.id, overview.id)

        spec = extract_rotation_spec(item, section_name)
        return self._secret_sink(ROTATION_SPECS_NAME, spec.to_json())

    async def put_secret(
        self,
        service_account: Credential,
        vault_name: str,
        item_name: str,
        field_name: str,
        value: str,
        backend: Optional[str] = None
    ) -> ItemOverview:
        """
        Set the value of an item-level field, creating the item if needed.

        Args:
            service_account: Token, handle, or None to read the configured env var
            vault_name: Name of the vault to write to
            item_name: Name of the item to create or update
            field_name: Name of the field to set
            value: Value to set
            backend: Backend name (default: default_backend from config)

        Returns:
            Overview of the item as stored
        """
        async with self.provider(service_account, backend) as provider:
            vault = await find_vault(provider, vault_name)

            try:
                overview = await find_item(provider, vault.id, item_name)
            except ItemNotFoundError:
                field = ItemField(
                    id=_field_id(field_name),
                    title=field_name,
                    value=value,
                    concealed=True
                )
                item = await provider.create_item(vault.id, item_name, [field])
                action = "Created"
            else:
                item = await provider.get_item(vault.id, overview.id)
                _set_field(item.fields, field_name, value)
                item = await provider.put_item(item)
                action = "Updated"

        logger.info(
            f"{action} item {item.title!r} ({item.id}) in vault {vault.id}, "
            f"fields: {[f.title for f in item.fields]}"
        )
        return item.overview()


def _field_id(field_name: str, taken=()) -> str:
    """Derive a field ID from its title, suffixed until unused in the item."""
    base = field_name.lower().replace(" ", "_")
    field_id = base
    n = 2
    while field_id in taken:
        field_id = f"{base}_{n}"
        n += 1
    return field_id


def _set_field(fields, field_name: str, value: str) -> None:
    """Update the first item-level field with that title, or append one."""
    for field in fields:
        if field.section_id is None and field.title == field_name:
            field.value = value
            return

    fields.append(ItemField(
        id=_field_id(field_name, {f.id for f in fields}),
        title=field_name,
        value=value,
        concealed=True
    ))


# Shared instance reading the default config file
secrets_manager = SecretsManager()
