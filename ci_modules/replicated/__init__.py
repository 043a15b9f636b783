"""
Replicated Module

Runs the Replicated vendor CLI in its container to manage CMX clusters.
"""

from .cmx import Cluster, cluster_create, cluster_expose_port, cluster_remove
from .container import ReplicatedCommandError, ReplicatedContainer

__all__ = [
    "ReplicatedContainer",
    "ReplicatedCommandError",
    "Cluster",
    "cluster_create",
    "cluster_remove",
    "cluster_expose_port",
]
