"""
Locate and run the esbuild executable.

esbuild is a Node package; it is taken from the repository's node_modules
when installed there, otherwise from PATH.
"""

import os
import shutil
import subprocess
from pathlib import Path

from .errors import EsbuildNotFoundError


def find_esbuild(root: Path) -> Path:
    """
    Locate the esbuild executable.

    Args:
        root: Repository root (searched for node_modules/.bin/esbuild)

    Returns:
        Path to the executable

    Raises:
        EsbuildNotFoundError: If esbuild is neither installed locally nor on PATH
    """
    name = "esbuild.cmd" if os.name == "nt" else "esbuild"
    local = Path(root) / "node_modules" / ".bin" / name
    if local.exists():
        return local

    found = shutil.which("esbuild")
    if found:
        return Path(found)

    raise EsbuildNotFoundError(
        "esbuild not found in node_modules/.bin or on PATH\n"
        "Install with: npm install --save-dev esbuild"
    )


def run_esbuild(args: list[str], root: Path, input: bytes | None = None) -> subprocess.CompletedProcess:
    """Run esbuild with args from root, capturing stdout and stderr as bytes."""
    cmd = [str(find_esbuild(root)), *args]
    return subprocess.run(cmd, cwd=root, input=input, capture_output=True)
