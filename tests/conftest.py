"""
Shared fixtures: tarballs built in memory.
"""

import bz2
import gzip
import http.client
import io
import lzma
import tarfile

import pytest
import zstandard as zstd


def build_tarball(members: list[tuple], compression: str = "gz") -> bytes:
    """
    Build a tarball.

    Args:
        members: (name, data) pairs; data None makes a directory,
            a ("symlink", target) tuple makes a symlink
        compression: "", "gz", "bz2", "xz" or "zst"
    """
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w", format=tarfile.PAX_FORMAT) as tar:
        for name, data in members:
            info = tarfile.TarInfo(name)
            if data is None:
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                tar.addfile(info)
            elif isinstance(data, tuple):
                info.type = tarfile.SYMTYPE
                info.linkname = data[1]
                tar.addfile(info)
            else:
                info.size = len(data)
                info.mode = 0o644
                tar.addfile(info, io.BytesIO(data))
    raw = buf.getvalue()

    if compression == "gz":
        return gzip.compress(raw)
    if compression == "bz2":
        return bz2.compress(raw)
    if compression == "xz":
        return lzma.compress(raw)
    if compression == "zst":
        return zstd.ZstdCompressor().compress(raw)
    return raw


@pytest.fixture
def make_tarball():
    return build_tarball


@pytest.fixture
def release_tarball():
    """Tarball laid out like a libheif release."""
    return build_tarball(
        [
            ("libheif", None),
            ("libheif/a.js", b"const a = x?.y ?? 1;\n"),
            ("libheif-wasm", None),
            ("libheif-wasm/lib.js", b"export const lib = () => 42;\n"),
            ("libheif-wasm/libheif.wasm", b"\x00asm\x01\x00\x00\x00"),
            ("other", None),
            ("other/skip.txt", b"not extracted\n"),
        ]
    )


class CutOffStream:
    """HTTP body that breaks off after limit bytes, like a dropped connection."""

    def __init__(self, data: bytes, limit: int):
        self._buf = io.BytesIO(data[:limit])
        self._missing = len(data) - limit

    def read(self, size: int = -1) -> bytes:
        chunk = self._buf.read(size)
        if not chunk and size != 0:
            raise http.client.IncompleteRead(b"", self._missing)
        return chunk

    def close(self) -> None:
        self._buf.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


@pytest.fixture
def cut_off_stream():
    """Factory for streams that raise IncompleteRead halfway through."""

    def make(data: bytes, limit: int | None = None) -> CutOffStream:
        return CutOffStream(data, len(data) // 2 if limit is None else limit)

    return make
