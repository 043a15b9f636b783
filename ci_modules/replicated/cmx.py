"""
Compatibility Matrix (CMX) cluster commands.

Example:
    container = ReplicatedContainer(token)
    cluster = cluster_create(container, name="my-cluster", wait="10m", ttl="20m")
    hostname = cluster_expose_port(container, cluster.cluster_id, node_port=80)
    cluster_remove(container, cluster.cluster_id)
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .container import ReplicatedCommandError, ReplicatedContainer

logger = logging.getLogger(__name__)


@dataclass
class Cluster:
    """A CMX cluster."""
    cluster_id: str
    status: str
    kubeconfig: str


def _decode(output: str, command: str) -> Dict[str, Any]:
    try:
        return json.loads(output)
    except json.JSONDecodeError as e:
        raise ReplicatedCommandError(
            f"Invalid JSON from replicated {command}: {e}", output=output
        ) from e


def cluster_create(
    container: ReplicatedContainer,
    name: Optional[str] = None,
    wait: Optional[str] = "15m",
    ttl: Optional[str] = "20m",
    distribution: str = "k3s",
    version: str = "1.31.0",
    nodes: int = 1
) -> Cluster:
    """
    Create a new CMX cluster and fetch its kubeconfig.

    Args:
        container: Replicated CLI container
        name: Name of the cluster (optional)
        wait: How long to wait for the cluster to be ready
        ttl: TTL of the cluster
        distribution: Distribution to use
        version: Version of the distribution to use
        nodes: Number of nodes to create (0 leaves it to the CLI)
    """
    cmd = [
        "cluster",
        "create",
        "--distribution", distribution,
        "--version", version,
        "--output", "json",
    ]
    if name:
        cmd += ["--name", name]
    if wait:
        cmd += ["--wait", wait]
    if ttl:
        cmd += ["--ttl", ttl]
    if nodes:
        cmd += ["--nodes", str(nodes)]

    response = _decode(container.exec(cmd), "cluster create")
    cluster_id = response.get("id", "")
    status = response.get("status", "")
    logger.info(f"Created cluster {cluster_id} ({status})")

    kubeconfig = container.exec(["cluster", "kubeconfig", "--stdout", cluster_id])

    return Cluster(cluster_id=cluster_id, status=status, kubeconfig=kubeconfig)


def cluster_remove(container: ReplicatedContainer, cluster_id: str) -> str:
    """Remove a CMX cluster. Returns the CLI output."""
    output = container.exec(["cluster", "rm", cluster_id])
    logger.info(f"Removed cluster {cluster_id}")
    return output


def cluster_expose_port(
    container: ReplicatedContainer,
    cluster_id: str,
    node_port: int
) -> str:
    """Expose a node port over https. Returns the hostname of the exposed port."""
    output = container.exec([
        "cluster",
        "port",
        "expose",
        cluster_id,
        "--port", str(node_port),
        "--protocol", "https",
        "--output", "json",
    ])
    return _decode(output, "cluster port expose").get("hostname", "")
