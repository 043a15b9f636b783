"""
1Password Vault Provider

Implements VaultProvider for 1Password using the official SDK.
"""

import logging
from typing import AsyncIterator, List

from onepassword.client import Client
from onepassword.types import ItemCategory, ItemCreateParams, ItemFieldType
from onepassword.types import ItemField as SDKItemField

from ...config import INTEGRATION_NAME, INTEGRATION_VERSION
from ..interface import (
    Item,
    ItemField,
    ItemOverview,
    ItemSection,
    VaultOverview,
    VaultProvider,
)

logger = logging.getLogger(__name__)


def _to_item(sdk_item) -> Item:
    """Map an SDK item onto the provider-neutral record."""
    return Item(
        id=sdk_item.id,
        title=sdk_item.title,
        vault_id=sdk_item.vault_id,
        sections=[ItemSection(id=s.id, title=s.title) for s in sdk_item.sections or []],
        fields=[
            ItemField(
                id=f.id,
                title=f.title,
                value=f.value,
                section_id=f.section_id,
                concealed=f.field_type == ItemFieldType.CONCEALED,
            )
            for f in sdk_item.fields or []
        ],
    )


def _to_sdk_field(field: ItemField) -> SDKItemField:
    return SDKItemField(
        id=field.id,
        title=field.title,
        section_id=field.section_id,
        field_type=ItemFieldType.CONCEALED if field.concealed else ItemFieldType.TEXT,
        value=field.value,
    )


class OnePasswordProvider(VaultProvider):
    """
    1Password vault provider.

    Config:
        integration_name: Name reported to 1Password (default: "CI Modules")
        integration_version: Version reported to 1Password
    """

    backend_type = "onepassword"

    def __init__(self, config: dict, token: str):
        super().__init__(config, token)
        self.integration_name = config.get("integration_name", INTEGRATION_NAME)
        self.integration_version = config.get("integration_version", INTEGRATION_VERSION)
        self._client = None

    async def connect(self) -> None:
        """Authenticate a fresh 1Password client."""
        self._client = await Client.authenticate(
            auth=self.token,
            integration_name=self.integration_name,
            integration_version=self.integration_version
        )
        logger.info("Connected to 1Password")

    async def disconnect(self) -> None:
        """Disconnect from 1Password."""
        self._client = None

    def _require_client(self) -> Client:
        if self._client is None:
            raise ConnectionError("Not connected to 1Password")
        return self._client

    async def list_vaults(self) -> AsyncIterator[VaultOverview]:
        """Yield the vaults the service account can see."""
        vaults = await self._require_client().vaults.list()
        for v in vaults:
            yield VaultOverview(id=v.id, title=v.title)

    async def list_items(self, vault_id: str) -> AsyncIterator[ItemOverview]:
        """Yield the items of one vault."""
        items = await self._require_client().items.list(vault_id)
        for i in items:
            yield ItemOverview(id=i.id, title=i.title, vault_id=i.vault_id)

    async def get_item(self, vault_id: str, item_id: str) -> Item:
        sdk_item = await self._require_client().items.get(vault_id, item_id)
        return _to_item(sdk_item)

    async def create_item(
        self,
        vault_id: str,
        title: str,
        fields: List[ItemField]
    ) -> Item:
        """Create an API credential item holding the given fields."""
        params = ItemCreateParams(
            title=title,
            category=ItemCategory.APICREDENTIALS,
            vault_id=vault_id,
            fields=[_to_sdk_field(f) for f in fields]
        )
        created = await self._require_client().items.create(params)
        return _to_item(created)

    async def put_item(self, item: Item) -> Item:
        """
        Write field values back to 1Password.

        The stored item is reloaded first so attributes this layer does not
        model (category, notes, websites, version) are sent back untouched.
        """
        ids = [f.id for f in item.fields]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ValueError(f"Duplicate field IDs in item {item.id}: {duplicates}")

        client = self._require_client()
        stored = await client.items.get(item.vault_id, item.id)

        existing = {f.id: f for f in stored.fields or []}
        sdk_fields = []
        for field in item.fields:
            sdk_field = existing.get(field.id)
            if sdk_field is None:
                sdk_fields.append(_to_sdk_field(field))
                continue
            sdk_field.value = field.value
            sdk_fields.append(sdk_field)

        stored.fields = sdk_fields
        updated = await client.items.put(stored)
        return _to_item(updated)
