"""
Fetch libheif (emscripten build) and bundle it for Node and the browser.

This script automates the whole process:
1. Downloads the versioned libheif release tarball from GitHub
2. Streams it through the tar decoder (no temporary archive on disk)
3. Extracts only libheif/ and libheif-wasm/ into the project root
4. Down-levels and minifies every extracted .js file to es2019
5. Bundles scripts/bundle.js as a global script (libheif-bundle.js)
6. Bundles scripts/bundle.js as an ES module (libheif-bundle.mjs)

Usage:
    python -m libheif_tools
    fetch-libheif

Requirements:
    - Python 3.10+
    - zstandard module: pip install zstandard
    - esbuild: npm install --save-dev esbuild
"""

import argparse
import sys
from dataclasses import dataclass, field
from pathlib import Path

from .archive import iter_entries
from .bundle import BuildConfig, build_bundle
from .fetch import get_stream
from .materialize import clean_output_dirs, materialize_entries
from .transform import transform_source

# ============================================================================
# Configuration
# ============================================================================

VERSION = "v1.19.8"

BASE_URL = "https://github.com/catdad-experiments/libheif-emscripten/releases/download"
TARBALL_URL = f"{BASE_URL}/{VERSION}/libheif.tar.gz"

# Files marking the project root; extracted files and bundles are written
# under the nearest directory (from the working directory up) holding one
ROOT_MARKERS = ("package.json", "pyproject.toml")

# Top-level archive directories that are extracted
ALLOWED_DIRS = ("libheif", "libheif-wasm")

# libheif uses optional chaining, which older Node releases cannot parse
TARGET = "es2019"

ENTRY_POINT = Path("scripts") / "bundle.js"
GLOBAL_BUNDLE = Path("libheif-wasm") / "libheif-bundle.js"
MODULE_BUNDLE = Path("libheif-wasm") / "libheif-bundle.mjs"

GLOBAL_NAME = "libheif"
PLATFORM = "neutral"
EXTERNAL = ("fs", "path", "require")
POLYFILLS = {"fs": "empty", "path": "empty"}
LOADERS = {".wasm": "binary"}

# Lets one bundle work both as a Node CJS module and a browser <script>
GLOBAL_FOOTER = """
libheif = libheif.default;
if (typeof exports === 'object' && typeof module === 'object') {
  module.exports = libheif;
}"""

# Skips the emscripten ENVIRONMENT_IS_NODE detection; the wasm binary is
# embedded, so the environment does not matter
MODULE_BANNER = "var process, __dirname;"


# ============================================================================
# Utility Functions
# ============================================================================


def print_section(title: str) -> None:
    """Print a formatted section header."""
    print("\n" + "=" * 70)
    print(title)
    print("=" * 70)


def find_root(start: Path | None = None) -> Path:
    """
    Find the project root: the nearest directory at or above start
    (default: the working directory) holding one of ROOT_MARKERS.

    Falls back to start itself when no marker is found.
    """
    start = Path(start if start is not None else Path.cwd()).resolve()
    for directory in (start, *start.parents):
        if any((directory / marker).is_file() for marker in ROOT_MARKERS):
            return directory
    return start


@dataclass
class PipelineResult:
    """Outcome of one pipeline run."""

    version: str
    written: list[Path] = field(default_factory=list)
    bundles: list[Path] = field(default_factory=list)
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def base_build_config(root: Path) -> BuildConfig:
    """Options shared by the global and module bundles."""
    return BuildConfig(
        entry_point=root / ENTRY_POINT,
        outfile=root / GLOBAL_BUNDLE,
        minify=True,
        target=TARGET,
        platform=PLATFORM,
        external=EXTERNAL,
        loader=dict(LOADERS),
        polyfills=dict(POLYFILLS),
    )


def global_build_config(root: Path) -> BuildConfig:
    """IIFE bundle exposing the libheif global (and module.exports under Node)."""
    return base_build_config(root).with_overrides(
        outfile=root / GLOBAL_BUNDLE,
        format="iife",
        global_name=GLOBAL_NAME,
        footer=GLOBAL_FOOTER,
    )


def module_build_config(root: Path) -> BuildConfig:
    """ES module bundle with the environment globals predefined."""
    return base_build_config(root).with_overrides(
        outfile=root / MODULE_BUNDLE,
        format="esm",
        banner=MODULE_BANNER,
    )


# ============================================================================
# Download, stream-extract and transform
# ============================================================================


def extract_release(url: str, root: Path) -> list[Path]:
    """Download the tarball and write the allowlisted files under root."""
    print_section("STEP 1: DOWNLOAD AND EXTRACT LIBHEIF")

    response = get_stream(url)

    clean_output_dirs(root, ALLOWED_DIRS)

    with response:
        written = materialize_entries(
            iter_entries(response),
            root,
            ALLOWED_DIRS,
            transform=lambda data: transform_source(data, TARGET, root),
        )

    print(f"\n✓ Extracted {len(written)} files")
    return written


# ============================================================================
# Bundle
# ============================================================================


def build_bundles(root: Path) -> list[Path]:
    """Build the global and module bundles from the extracted entry point."""
    print_section("STEP 2: BUNDLE GLOBAL SCRIPT")
    global_bundle = build_bundle(global_build_config(root), root)

    print_section("STEP 3: BUNDLE ES MODULE")
    module_bundle = build_bundle(module_build_config(root), root)

    return [global_bundle, module_bundle]


# ============================================================================
# Main
# ============================================================================


def run(root: Path | None = None, url: str = TARBALL_URL) -> PipelineResult:
    """
    Run the whole pipeline, stopping at the first error.

    Files extracted before a failure are left in place. Any exception ends
    up in the result so the caller can report it with the version.

    Args:
        root: Output root (default: find_root())
        url: Tarball to fetch
    """
    result = PipelineResult(version=VERSION)
    root = find_root() if root is None else Path(root)

    print("=" * 70)
    print("libheif Fetch Pipeline")
    print("=" * 70)
    print(f"Version:  {VERSION}")
    print(f"URL:      {url}")
    print(f"Root:     {root}")
    print("=" * 70)

    try:
        result.written = extract_release(url, root)
        result.bundles = build_bundles(root)
    except Exception as e:
        result.error = e

    return result


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description=f"Fetch libheif {VERSION} and build the libheif-wasm bundles",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Downloads:
  {TARBALL_URL}

Writes:
  {', '.join(d + '/' for d in ALLOWED_DIRS)}
  {GLOBAL_BUNDLE.as_posix()}
  {MODULE_BUNDLE.as_posix()}
        """,
    )
    parser.parse_args(argv)

    result = run()

    if not result.ok:
        print(f"\n✗ failed to fetch libheif {result.version}\n{result.error}", file=sys.stderr)
        return 1

    print(f"\n✓ fetched libheif {result.version}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
