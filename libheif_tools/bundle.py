"""
Bundle the extracted libheif entry point with esbuild.

A BuildConfig captures every option of one esbuild run. The global (IIFE)
and module (ESM) bundles are derived from one base configuration with
with_overrides(), so neither build can leak options into the other.

Node built-ins the browser cannot provide (fs, path) are replaced by
stand-in modules: each polyfill kind maps to a small source file written
next to the build and wired in through esbuild's --alias.
"""

import dataclasses
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .errors import BundleError
from .esbuild import run_esbuild

POLYFILL_SOURCES = {
    "empty": "module.exports = {};\n",
}


@dataclass(frozen=True)
class BuildConfig:
    """Options for a single esbuild bundle."""

    entry_point: Path
    outfile: Path
    format: str = "esm"
    minify: bool = True
    target: str = "es2019"
    platform: str = "neutral"
    external: tuple[str, ...] = ()
    loader: Mapping[str, str] = field(default_factory=dict)
    banner: str = ""
    footer: str = ""
    global_name: str | None = None
    polyfills: Mapping[str, str] = field(default_factory=dict)

    def with_overrides(self, **changes) -> "BuildConfig":
        """Return a copy of this configuration with the given fields replaced."""
        return dataclasses.replace(self, **changes)

    def to_esbuild_args(self, aliases: Mapping[str, str] | None = None) -> list[str]:
        """
        Translate the configuration into esbuild command-line flags.

        Args:
            aliases: Module name -> replacement path for polyfilled modules

        Returns:
            Argument list (without the esbuild executable)
        """
        aliases = aliases or {}
        args = [
            str(self.entry_point),
            "--bundle",
            f"--outfile={self.outfile}",
            f"--format={self.format}",
            f"--target={self.target}",
            f"--platform={self.platform}",
            "--log-level=warning",
        ]
        if self.minify:
            args.append("--minify")
        if self.global_name:
            args.append(f"--global-name={self.global_name}")
        # A polyfilled module is resolved to its stand-in, not left external
        for module in self.external:
            if module not in aliases:
                args.append(f"--external:{module}")
        for module, replacement in aliases.items():
            args.append(f"--alias:{module}={replacement}")
        for ext, loader in self.loader.items():
            args.append(f"--loader:{ext}={loader}")
        if self.banner:
            args.append(f"--banner:js={self.banner}")
        if self.footer:
            args.append(f"--footer:js={self.footer}")
        return args


def write_polyfills(polyfills: Mapping[str, str], directory: Path, root: Path) -> dict[str, str]:
    """
    Write one stand-in module per polyfilled module name.

    Args:
        polyfills: Module name -> polyfill kind (e.g. {"fs": "empty"})
        directory: Where the stand-ins are written (inside root)
        root: esbuild working directory; aliases are relative to it

    Returns:
        Module name -> "./relative/path" alias for esbuild
    """
    aliases = {}
    for module, kind in polyfills.items():
        if kind not in POLYFILL_SOURCES:
            raise BundleError(f"Unknown polyfill kind for {module!r}: {kind!r}")
        stand_in = Path(directory) / f"{module}.js"
        stand_in.write_text(POLYFILL_SOURCES[kind], encoding="utf-8")
        aliases[module] = "./" + stand_in.relative_to(root).as_posix()
    return aliases


def build_bundle(config: BuildConfig, root: Path) -> Path:
    """
    Run one esbuild bundle.

    Args:
        config: Build configuration
        root: Repository root; esbuild runs from here

    Returns:
        Path of the written bundle

    Raises:
        BundleError: If the entry point is missing or esbuild fails
    """
    root = Path(root).resolve()
    outfile = Path(config.outfile)

    if not Path(config.entry_point).is_file():
        raise BundleError(f"unresolved entry point: {config.entry_point}", outfile=str(outfile))

    print(f"Bundling: {config.entry_point}")
    print(f"Format:   {config.format}")
    print(f"Output:   {outfile}")

    outfile.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.TemporaryDirectory(prefix=".polyfills-", dir=root) as tmpdir:
        aliases = write_polyfills(config.polyfills, Path(tmpdir), root)
        result = run_esbuild(config.to_esbuild_args(aliases), root)

    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", errors="replace")
        raise BundleError(
            f"esbuild failed to build {outfile.name} (exit code {result.returncode})",
            stderr,
            str(outfile),
        )

    print(f"✓ Wrote {outfile.name} ({outfile.stat().st_size / 1024:.1f} KB)")
    return outfile
