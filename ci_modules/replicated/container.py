"""
Replicated vendor CLI container.

Runs the replicated CLI from the vendor image through `docker run`.
The API token and origins are handed to docker by name only (`-e NAME`)
and resolved from the subprocess environment, so they never appear in
the argument vector.
"""

import logging
from typing import Dict, List, Optional

from ..config import (
    REPLICATED_API_ORIGIN_ENV,
    REPLICATED_ENTRYPOINT,
    REPLICATED_ID_ORIGIN_ENV,
    REPLICATED_IMAGE,
    REPLICATED_PLATFORM,
    REPLICATED_REGISTRY_ORIGIN_ENV,
    REPLICATED_TIMEOUT,
    REPLICATED_TOKEN_ENV,
)
from ..secrets.interface import SecretHandle
from ..shell import run_command

logger = logging.getLogger(__name__)


class ReplicatedCommandError(Exception):
    """A replicated CLI call failed or returned output that could not be read."""

    def __init__(self, message: str, output: str = "", returncode: Optional[int] = None):
        self.output = output
        self.returncode = returncode
        super().__init__(message)


class ReplicatedContainer:
    """
    Base container with the replicated CLI installed at /replicated.

    Args:
        token: Replicated API token
        api_origin: Override for REPLICATED_API_ORIGIN
        id_origin: Override for REPLICATED_ID_ORIGIN
        registry_origin: Override for REPLICATED_REGISTRY_ORIGIN
        image: Vendor CLI image
        platform: Image platform
        timeout: Per-command timeout in seconds
    """

    def __init__(
        self,
        token,
        api_origin: Optional[str] = None,
        id_origin: Optional[str] = None,
        registry_origin: Optional[str] = None,
        image: str = REPLICATED_IMAGE,
        platform: str = REPLICATED_PLATFORM,
        timeout: int = REPLICATED_TIMEOUT
    ):
        self._token = token.plaintext() if isinstance(token, SecretHandle) else token
        self.image = image
        self.platform = platform
        self.timeout = timeout

        self.env: Dict[str, str] = {REPLICATED_TOKEN_ENV: self._token}
        if api_origin:
            self.env[REPLICATED_API_ORIGIN_ENV] = api_origin
        if id_origin:
            self.env[REPLICATED_ID_ORIGIN_ENV] = id_origin
        if registry_origin:
            self.env[REPLICATED_REGISTRY_ORIGIN_ENV] = registry_origin

    def command(self, args: List[str]) -> List[str]:
        """Build the docker argument vector running `replicated <args>`."""
        cmd = [
            "docker", "run", "--rm",
            "--platform", self.platform,
            "--entrypoint", REPLICATED_ENTRYPOINT,
        ]
        for name in self.env:
            cmd += ["-e", name]
        cmd.append(self.image)
        return cmd + list(args)

    def exec(self, args: List[str]) -> str:
        """
        Run a replicated CLI command.

        Returns:
            Captured stdout

        Raises:
            ReplicatedCommandError: docker or the CLI exited non-zero
        """
        returncode, stdout, stderr = run_command(
            self.command(args),
            env=self.env,
            timeout=self.timeout
        )
        if returncode != 0:
            logger.warning(f"replicated {' '.join(args[:2])} failed: {stderr}")
            raise ReplicatedCommandError(
                f"replicated {' '.join(args[:2])} failed: {stderr}",
                output=stdout,
                returncode=returncode
            )
        return stdout
