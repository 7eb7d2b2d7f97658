"""
Down-level and minify JavaScript sources with esbuild.

libheif's emscripten output uses syntax such as optional chaining, which
older Node releases cannot parse. Sources are rewritten for a fixed
language target before they are written to disk.
"""

from pathlib import Path

from .errors import TransformError
from .esbuild import run_esbuild

JS_SUFFIXES = (".js",)


def is_javascript(path: Path | str) -> bool:
    """True when path names a JavaScript asset that should be transformed."""
    return Path(path).suffix in JS_SUFFIXES


def transform_source(source: bytes | str, target: str, root: Path | str = ".") -> bytes:
    """
    Transform a JavaScript source to the given target and minify it.

    Args:
        source: JavaScript source text
        target: esbuild language target (e.g. "es2019")
        root: Directory esbuild is looked up from and run in

    Returns:
        The transformed source as UTF-8 bytes

    Raises:
        TransformError: If esbuild rejects the source
    """
    if isinstance(source, str):
        source = source.encode("utf-8")

    result = run_esbuild(
        ["--minify", f"--target={target}", "--loader=js", "--log-level=error"],
        Path(root),
        input=source,
    )
    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", errors="replace")
        raise TransformError(f"esbuild transform to {target} failed (exit code {result.returncode})", stderr)

    return result.stdout
