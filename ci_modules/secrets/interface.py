"""
Secrets Provider Interface

Defines the abstract interface for vault providers and the read-only
records they hand back. Everything the resolvers look at is one of
these dataclasses, so resolution never touches SDK types directly.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, List, Optional


@dataclass(frozen=True)
class VaultOverview:
    """A vault visible to the authenticated credential."""
    id: str
    title: str


@dataclass(frozen=True)
class ItemOverview:
    """An item as listed inside a vault (no fields loaded)."""
    id: str
    title: str
    vault_id: str


@dataclass
class ItemSection:
    """A named grouping of fields within an item."""
    id: str
    title: str


@dataclass
class ItemField:
    """A titled value. section_id is None for item-level fields."""
    id: str
    title: str
    value: str
    section_id: Optional[str] = None
    concealed: bool = False


@dataclass
class Item:
    """A fully loaded item."""
    id: str
    title: str
    vault_id: str
    sections: List[ItemSection] = field(default_factory=list)
    fields: List[ItemField] = field(default_factory=list)

    def overview(self) -> ItemOverview:
        return ItemOverview(id=self.id, title=self.title, vault_id=self.vault_id)


@dataclass
class RotationSpec:
    """
    What is needed to rotate a key, as stored in the vault item.

    Date fields come back from 1Password as unsupported values, so the
    timestamps are kept as the strings entered in the vault. Parsing
    them is up to whoever consumes the spec.
    """
    expires_on: str = ""
    created_on: str = ""
    rotation_function: str = ""

    def is_complete(self) -> bool:
        return bool(self.expires_on and self.created_on and self.rotation_function)

    def to_json(self) -> str:
        """Serialize with the key names existing consumers read."""
        return json.dumps(
            {
                "ExpiresOn": self.expires_on,
                "CreatedOn": self.created_on,
                "RotationFunction": self.rotation_function,
            },
            separators=(",", ":")
        )


class SecretHandle:
    """
    Opaque reference to a secret value.

    The value never shows up in repr/str, so handles are safe to log.
    Call plaintext() at the point the value is actually needed.
    """

    __slots__ = ("name", "_value")

    def __init__(self, name: str, value: str):
        self.name = name
        self._value = value

    def plaintext(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"SecretHandle(name={self.name!r})"

    __str__ = __repr__

    def __eq__(self, other) -> bool:
        if not isinstance(other, SecretHandle):
            return NotImplemented
        return self.name == other.name and self._value == other._value

    def __hash__(self) -> int:
        return hash((self.name, self._value))


# Accepts (name, plaintext) and returns the handle passed downstream
SecretSink = Callable[[str, str], SecretHandle]


class VaultProvider(ABC):
    """
    Abstract base class for vault providers.

    Implementations wrap a specific secrets service (1Password, ...).
    One instance is built per operation and used as an async context
    manager, so every call authenticates on its own and nothing is
    shared between invocations.
    """

    backend_type: str = "base"

    def __init__(self, config: dict, token: str):
        """
        Initialize the provider.

        Args:
            config: Backend-specific configuration dict
            token: Service account token used to authenticate
        """
        self.config = config
        self.token = token

    async def __aenter__(self) -> "VaultProvider":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()

    @abstractmethod
    async def connect(self) -> None:
        """
        Authenticate against the secrets service.

        Raises:
            Whatever the service raises for a bad or expired credential
        """

    @abstractmethod
    async def disconnect(self) -> None:
        """Drop the authenticated client."""

    @abstractmethod
    def list_vaults(self) -> AsyncIterator[VaultOverview]:
        """Yield every vault visible to the credential."""

    @abstractmethod
    def list_items(self, vault_id: str) -> AsyncIterator[ItemOverview]:
        """Yield every item in a vault."""

    @abstractmethod
    async def get_item(self, vault_id: str, item_id: str) -> Item:
        """Load an item with its sections and fields."""

    @abstractmethod
    async def create_item(
        self,
        vault_id: str,
        title: str,
        fields: List[ItemField]
    ) -> Item:
        """Create a new item and return it as stored."""

    @abstractmethod
    async def put_item(self, item: Item) -> Item:
        """Replace an existing item and return it as stored."""
