"""
Tools for fetching and repackaging the libheif emscripten build.

This package provides:
- Streaming download and extraction of the libheif release tarball
- Down-levelling of the extracted JavaScript with esbuild
- Global (IIFE) and ES module bundles of the wasm build

Main modules:
- fetch_libheif: Complete pipeline and command-line entry point
- fetch: HTTP retrieval of the release tarball
- archive: Streaming tar/gzip/xz/zstd decoding
- materialize: Allowlisted extraction to disk
- transform: esbuild source transform
- bundle: esbuild bundle configurations and builds
"""

from .fetch_libheif import main as fetch_libheif_main

__all__ = ["fetch_libheif_main"]
