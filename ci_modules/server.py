"""
CI Modules MCP Server

Exposes the CI modules to the orchestration platform:
- Secrets: find a secret, find rotation specs, put a secret (1Password)
- Replicated: create, remove and expose CMX clusters
"""

import json
import os

from fastmcp import FastMCP

from .config import REPLICATED_TOKEN_ENV, SERVER_HOST, SERVER_PORT
from .replicated import (
    ReplicatedCommandError,
    ReplicatedContainer,
    cluster_create as _cluster_create,
    cluster_expose_port as _cluster_expose_port,
    cluster_remove as _cluster_remove,
)
from .secrets import SecretsError, secrets_manager

mcp = FastMCP("CI Modules")


def _replicated(api_origin: str, id_origin: str, registry_origin: str) -> ReplicatedContainer:
    token = os.getenv(REPLICATED_TOKEN_ENV)
    if not token:
        raise ReplicatedCommandError(f"{REPLICATED_TOKEN_ENV} not set")
    return ReplicatedContainer(token, api_origin, id_origin, registry_origin)


# =============================================================================
# HEALTH
# =============================================================================
@mcp.tool()
def ping() -> str:
    """Health check. Returns pong if the CI modules server is running."""
    return "pong from CI Modules 🔧"


# =============================================================================
# SECRETS
# =============================================================================
@mcp.tool()
async def find_secret(
    vault_name: str,
    item_name: str,
    field_name: str,
    section: str = ""
) -> str:
    """
    Get the value of a field from a 1Password item.

    Args:
        vault_name: Name of the vault to search
        item_name: Name of the item to find
        field_name: Name of the field to find
        section: Limit to a specific section of the item (optional)

    Returns:
        The secret value, or error message if lookup fails
    """
    try:
        handle = await secrets_manager.find_secret(
            None, vault_name, item_name, field_name, section=section or None
        )
    except SecretsError as e:
        return f"❌ {e}"
    return handle.plaintext()


@mcp.tool()
async def find_secret_rotation_specs(
    vault_name: str,
    item_name: str,
    section_name: str
) -> str:
    """
    Get the rotation specs of a 1Password item as JSON.

    Args:
        vault_name: Name of the vault to search
        item_name: Name of the item to find
        section_name: Section where the rotation specs are stored (usually "rotation")

    Returns:
        JSON with ExpiresOn, CreatedOn and RotationFunction, or error message
    """
    try:
        handle = await secrets_manager.find_secret_rotation_specs(
            None, vault_name, item_name, section_name
        )
    except SecretsError as e:
        return f"❌ {e}"
    return handle.plaintext()


@mcp.tool()
async def put_secret(
    vault_name: str,
    item_name: str,
    field_name: str,
    value: str
) -> str:
    """
    Set the value of a field, creating the item if it does not exist.

    Args:
        vault_name: Name of the vault to write to
        item_name: Name of the item
        field_name: Name of the field to set
        value: Value to set

    Returns:
        Success message with item ID, or error message
    """
    try:
        overview = await secrets_manager.put_secret(
            None, vault_name, item_name, field_name, value
        )
    except SecretsError as e:
        return f"❌ {e}"
    return f"✅ Saved '{field_name}' in item '{overview.title}' (ID: {overview.id})"


# =============================================================================
# REPLICATED CMX
# =============================================================================
@mcp.tool()
def cluster_create(
    name: str = "",
    wait: str = "15m",
    ttl: str = "20m",
    distribution: str = "k3s",
    version: str = "1.31.0",
    nodes: int = 1,
    api_origin: str = "",
    id_origin: str = "",
    registry_origin: str = ""
) -> str:
    """
    Create a new CMX cluster.

    Returns:
        JSON with cluster_id, status and kubeconfig, or error message
    """
    try:
        container = _replicated(api_origin, id_origin, registry_origin)
        cluster = _cluster_create(
            container,
            name=name,
            wait=wait,
            ttl=ttl,
            distribution=distribution,
            version=version,
            nodes=nodes
        )
    except ReplicatedCommandError as e:
        return f"❌ {e}"
    return json.dumps({
        "cluster_id": cluster.cluster_id,
        "status": cluster.status,
        "kubeconfig": cluster.kubeconfig,
    })


@mcp.tool()
def cluster_remove(
    cluster_id: str,
    api_origin: str = "",
    id_origin: str = "",
    registry_origin: str = ""
) -> str:
    """Remove a CMX cluster."""
    try:
        container = _replicated(api_origin, id_origin, registry_origin)
        return _cluster_remove(container, cluster_id)
    except ReplicatedCommandError as e:
        return f"❌ {e}"


@mcp.tool()
def cluster_expose_port(
    cluster_id: str,
    node_port: int,
    api_origin: str = "",
    id_origin: str = "",
    registry_origin: str = ""
) -> str:
    """Expose a port on a CMX cluster, returning the hostname of the exposed port."""
    try:
        container = _replicated(api_origin, id_origin, registry_origin)
        return _cluster_expose_port(container, cluster_id, node_port)
    except ReplicatedCommandError as e:
        return f"❌ {e}"


if __name__ == "__main__":
    mcp.run(transport="http", host=SERVER_HOST, port=SERVER_PORT)
