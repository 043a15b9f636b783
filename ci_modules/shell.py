"""
Shared command execution for the CI modules.

Commands are always run from an argument vector, never through a shell,
so values such as cluster names cannot be interpreted by /bin/sh.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


def run_command(
    args: List[str],
    env: Optional[Dict[str, str]] = None,
    timeout: int = 30,
    cwd: Optional[Path] = None
) -> Tuple[Optional[int], str, str]:
    """
    Execute a command and capture its output.

    Args:
        args: Argument vector, program first
        env: Extra environment variables layered over os.environ
        timeout: Timeout in seconds (default: 30)
        cwd: Working directory (default: current)

    Returns:
        Tuple of (returncode, stdout, stderr). returncode is None when the
        command timed out or the program was not found.
    """
    run_env = None
    if env:
        run_env = {**os.environ, **env}

    logger.debug(f"Running: {args[0]} {' '.join(args[1:4])} ...")

    try:
        result = subprocess.run(
            args,
            capture_output=True,
            text=True,
            timeout=timeout,
            cwd=str(cwd) if cwd else None,
            env=run_env
        )
    except subprocess.TimeoutExpired:
        return None, "", f"Command timed out after {timeout}s"
    except FileNotFoundError:
        return None, "", f"{args[0]} not found"

    if result.returncode != 0:
        stderr = result.stderr.strip()
        return result.returncode, result.stdout, f"{stderr}\n[exit code: {result.returncode}]".strip()

    return 0, result.stdout, result.stderr
