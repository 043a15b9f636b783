"""Shared fixtures: an in-memory vault provider."""

from __future__ import annotations

import itertools
from typing import Dict, List

import pytest

from ci_modules.secrets import SecretsManager
from ci_modules.secrets.interface import (
    Item,
    ItemField,
    ItemSection,
    VaultOverview,
    VaultProvider,
)


class FakeProvider(VaultProvider):
    """
    VaultProvider over in-memory data.

    Vaults and items are served in pages to mimic a paginated listing.
    """

    backend_type = "fake"
    page_size = 2

    # Replaced per test through the `fake_store` fixture
    store: Dict = {}
    instances: List["FakeProvider"] = []

    def __init__(self, config: dict, token: str):
        super().__init__(config, token)
        self.connected = False
        self.closed = False
        self.pages_served = 0
        FakeProvider.instances.append(self)

    async def connect(self) -> None:
        if self.token == "bad-token":
            raise PermissionError("invalid service account token")
        self.connected = True

    async def disconnect(self) -> None:
        self.connected = False
        self.closed = True

    def _pages(self, entries):
        it = iter(entries)
        while True:
            page = list(itertools.islice(it, self.page_size))
            if not page:
                return
            self.pages_served += 1
            yield page

    async def list_vaults(self):
        assert self.connected
        for page in self._pages(self.store["vaults"]):
            for vault in page:
                yield vault

    async def list_items(self, vault_id: str):
        assert self.connected
        items = [i for i in self.store["items"].values() if i.vault_id == vault_id]
        for page in self._pages(items):
            for item in page:
                yield item.overview()

    async def get_item(self, vault_id: str, item_id: str) -> Item:
        assert self.connected
        return self.store["items"][item_id]

    async def create_item(self, vault_id: str, title: str, fields: List[ItemField]) -> Item:
        assert self.connected
        item_id = f"item-{len(self.store['items']) + 1}"
        item = Item(id=item_id, title=title, vault_id=vault_id, fields=list(fields))
        self.store["items"][item_id] = item
        self.store.setdefault("created", []).append(item)
        return item

    async def put_item(self, item: Item) -> Item:
        assert self.connected
        self.store["items"][item.id] = item
        self.store.setdefault("put", []).append(item)
        return item


def make_item(item_id, title, vault_id="v-prod", sections=(), fields=()) -> Item:
    return Item(
        id=item_id,
        title=title,
        vault_id=vault_id,
        sections=[ItemSection(id=s_id, title=s_title) for s_id, s_title in sections],
        fields=list(fields),
    )


@pytest.fixture
def fake_store():
    """Vaults 'dev', 'staging', 'prod' (prod lands on the second page)."""
    store = {
        "vaults": [
            VaultOverview(id="v-dev", title="dev"),
            VaultOverview(id="v-staging", title="staging"),
            VaultOverview(id="v-prod", title="prod"),
        ],
        "items": {},
    }
    FakeProvider.store = store
    FakeProvider.instances = []
    yield store
    FakeProvider.store = {}
    FakeProvider.instances = []


@pytest.fixture
def manager(fake_store, tmp_path) -> SecretsManager:
    """SecretsManager wired to FakeProvider through a config file."""
    config = tmp_path / "secrets_backends.json"
    config.write_text(
        '{"backends": {"default": {"adapter": "fake", '
        '"service_account_env": "TEST_OP_TOKEN"}}, "default_backend": "default"}'
    )
    return SecretsManager(config_path=config, backends={"fake": FakeProvider})


@pytest.fixture
def provider(fake_store) -> FakeProvider:
    provider = FakeProvider({}, "token")
    provider.connected = True
    return provider


