"""
Shared configuration for the CI modules.

Import from here to avoid duplication across the secrets module,
the Replicated wrapper and the MCP server.
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

# Base paths
CONFIG_DIR = Path(os.getenv("CI_MODULES_CONFIG_DIR", "/data/config"))
SECRETS_CONFIG = CONFIG_DIR / "secrets_backends.json"

# 1Password
DEFAULT_TOKEN_ENV = "OP_SERVICE_ACCOUNT_TOKEN"
INTEGRATION_NAME = "CI Modules"
INTEGRATION_VERSION = "v0.1.0"

# Default configuration if no config file exists
DEFAULT_CONFIG = {
    "backends": {
        "default": {
            "adapter": "onepassword",
            "service_account_env": DEFAULT_TOKEN_ENV,
            "integration_name": INTEGRATION_NAME,
            "integration_version": INTEGRATION_VERSION,
        }
    },
    "default_backend": "default"
}

# Replicated vendor CLI
REPLICATED_IMAGE = "replicated/vendor-cli:latest"
REPLICATED_PLATFORM = "linux/amd64"
REPLICATED_ENTRYPOINT = "/replicated"
REPLICATED_TOKEN_ENV = "REPLICATED_API_TOKEN"
REPLICATED_API_ORIGIN_ENV = "REPLICATED_API_ORIGIN"
REPLICATED_ID_ORIGIN_ENV = "REPLICATED_ID_ORIGIN"
REPLICATED_REGISTRY_ORIGIN_ENV = "REPLICATED_REGISTRY_ORIGIN"
REPLICATED_TIMEOUT = int(os.getenv("REPLICATED_TIMEOUT", "1800"))

# MCP server
SERVER_HOST = os.getenv("CI_MODULES_HOST", "0.0.0.0")
SERVER_PORT = int(os.getenv("CI_MODULES_PORT", "8000"))


def load_config(path: Optional[Path] = None) -> Dict:
    """
    Load secrets backend configuration.

    Falls back to DEFAULT_CONFIG when the file is missing or unreadable.

    Args:
        path: Config file (default: SECRETS_CONFIG)

    Returns:
        Config dict with "backends" and "default_backend" keys
    """
    path = path or SECRETS_CONFIG

    if not path.exists():
        logger.info("Using default secrets configuration")
        return DEFAULT_CONFIG

    try:
        config = json.loads(path.read_text())
        logger.info(f"Loaded secrets config from {path}")
        return config
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to load secrets config: {e}")
        return DEFAULT_CONFIG
