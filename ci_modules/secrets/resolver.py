"""
Name resolution over vault provider data.

Vault -> item -> section -> field, plus extraction of rotation specs
from a named section. All title matching is exact and case sensitive,
and the first match in provider iteration order wins.
"""

import logging
from typing import Optional

from .errors import (
    FieldNotFoundError,
    ItemNotFoundError,
    RotationSpecNotFoundError,
    SectionNotFoundError,
    VaultNotFoundError,
)
from .interface import (
    Item,
    ItemField,
    ItemOverview,
    RotationSpec,
    VaultOverview,
    VaultProvider,
)

logger = logging.getLogger(__name__)

EXPIRES_ON = "expires-on"
CREATED_ON = "created-on"
ROTATION_FUNCTION = "rotationFunction"


async def find_vault(provider: VaultProvider, vault_name: str) -> VaultOverview:
    """
    Find a vault by title.

    Raises:
        VaultNotFoundError: No vault visible to the credential has that title
    """
    async for vault in provider.list_vaults():
        if vault.title == vault_name:
            logger.debug(f"Resolved vault {vault_name!r} -> {vault.id}")
            return vault

    raise VaultNotFoundError(vault_name)


async def find_item(
    provider: VaultProvider,
    vault_id: str,
    item_name: str
) -> ItemOverview:
    """
    Find an item by title inside one vault.

    Raises:
        ItemNotFoundError: The vault holds no item with that title
    """
    async for item in provider.list_items(vault_id):
        if item.title == item_name:
            logger.debug(f"Resolved item {item_name!r} -> {item.id}")
            return item

    raise ItemNotFoundError(item_name)


def find_section_id(item: Item, section_name: Optional[str]) -> Optional[str]:
    """
    Find the ID of a section by title.

    Returns None when no section is requested (None or ""), which means
    lookups on the item are not scoped to any section.

    Raises:
        SectionNotFoundError: A section was requested and none matches
    """
    if not section_name:
        return None

    for section in item.sections:
        if section.title == section_name:
            return section.id

    raise SectionNotFoundError(section_name)


def _in_section(field: ItemField, section_id: Optional[str]) -> bool:
    if section_id is None:
        return True
    return field.section_id == section_id


def find_field_value(item: Item, section_id: Optional[str], field_name: str) -> str:
    """
    Return the value of the first field titled field_name.

    With a section_id only fields belonging to that section are
    considered; item-level fields are skipped.

    Raises:
        FieldNotFoundError: No candidate field has that title
    """
    for field in item.fields:
        if _in_section(field, section_id) and field.title == field_name:
            return field.value

    raise FieldNotFoundError(field_name)


def extract_rotation_spec(item: Item, section_name: Optional[str]) -> RotationSpec:
    """
    Collect the rotation specs stored in a section of the item.

    The section is mandatory: rotation specs always live in a named
    section (usually "rotation"), so an empty name fails like any other
    unknown section.

    Raises:
        SectionNotFoundError: The section is empty or unknown
        RotationSpecNotFoundError: One of the three fields is missing or empty
    """
    if not section_name:
        raise SectionNotFoundError(section_name)

    section_id = find_section_id(item, section_name)
    spec = RotationSpec()

    for field in item.fields:
        if _in_section(field, section_id):
            if field.title == EXPIRES_ON:
                spec.expires_on = field.value
            elif field.title == CREATED_ON:
                spec.created_on = field.value
            elif field.title == ROTATION_FUNCTION:
                spec.rotation_function = field.value

        if spec.is_complete():
            break

    if not spec.is_complete():
        raise RotationSpecNotFoundError(section_name)

    return spec
