"""
Decode a (possibly compressed) tar stream into archive entries.

Entries are produced lazily, in archive order, straight off the source
stream. Compression is detected from the leading bytes:

- zstd frames are decoded with the zstandard streaming decompressor
- gzip, bzip2, xz and plain tar are left to tarfile's "r|*" pipe mode

The source is never seeked and never buffered whole, so each entry's content
has to be consumed before the next entry can be decoded. iter_entries()
drains anything the caller leaves unread.
"""

import http.client
import lzma
import tarfile
import zlib
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, BinaryIO

import zstandard as zstd

from .errors import ArchiveError

ZSTD_MAGIC = b"\x28\xb5\x2f\xfd"
DRAIN_CHUNK_SIZE = 64 * 1024

# Raised by tarfile and the decompressors on malformed or truncated input.
# bz2 and gzip report corrupt data as OSError; a cut-off HTTP body raises
# http.client.IncompleteRead.
DECODE_ERRORS = (
    tarfile.TarError,
    EOFError,
    zlib.error,
    lzma.LZMAError,
    zstd.ZstdError,
    OSError,
    http.client.HTTPException,
)


@dataclass
class ArchiveEntry:
    """One record of the archive: a file, directory, link or other member."""

    name: str
    type: str
    size: int = 0
    _fileobj: BinaryIO | None = field(default=None, repr=False)
    _consumed: bool = field(default=False, repr=False)

    @property
    def consumed(self) -> bool:
        """True once the content has been read or drained to the end."""
        return self._consumed or self._fileobj is None

    def read(self) -> bytes:
        """Buffer and return the remaining content."""
        if self.consumed:
            self._consumed = True
            return b""
        try:
            data = self._fileobj.read()
        except DECODE_ERRORS as e:
            raise ArchiveError(f"Failed to read {self.name}: {e}") from e
        self._consumed = True
        return data

    def drain(self) -> int:
        """Discard the remaining content. Returns the number of bytes skipped."""
        if self.consumed:
            self._consumed = True
            return 0
        skipped = 0
        try:
            for chunk in iter(lambda: self._fileobj.read(DRAIN_CHUNK_SIZE), b""):
                skipped += len(chunk)
        except DECODE_ERRORS as e:
            raise ArchiveError(f"Failed to read {self.name}: {e}") from e
        self._consumed = True
        return skipped


class _PeekableStream:
    """
    Forward-only reader over a source stream.

    read(size) only comes back short at end of stream, which tarfile's
    compression detection relies on, and peek() pushes bytes back.
    """

    def __init__(self, source: Any):
        self._source = source
        self._pushback = b""

    def peek(self, size: int) -> bytes:
        data = self.read(size)
        self._pushback = data + self._pushback
        return data

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            data = self._pushback + self._source.read()
            self._pushback = b""
            return data
        data, self._pushback = self._pushback[:size], self._pushback[size:]
        while len(data) < size:
            chunk = self._source.read(size - len(data))
            if not chunk:
                break
            data += chunk
        return data


def entry_type(member: tarfile.TarInfo) -> str:
    """Map a tar member to its entry type name."""
    if member.isreg():
        return "file"
    if member.isdir():
        return "directory"
    if member.issym():
        return "symlink"
    if member.islnk():
        return "link"
    return "other"


def _iter_tar(fileobj: Any, mode: str) -> Iterator[ArchiveEntry]:
    try:
        tar = tarfile.open(fileobj=fileobj, mode=mode)
    except DECODE_ERRORS as e:
        raise ArchiveError(f"Failed to open archive stream: {e}") from e

    with tar:
        while True:
            try:
                member = tar.next()
            except DECODE_ERRORS as e:
                raise ArchiveError(f"Failed to decode archive header: {e}") from e
            if member is None:
                break

            if member.isreg():
                entry = ArchiveEntry(member.name, "file", member.size, tar.extractfile(member))
            else:
                entry = ArchiveEntry(member.name, entry_type(member))

            yield entry

            # The next header sits right after this entry's data
            if not entry.consumed:
                entry.drain()
            # Pipe mode appends every header to tar.members; keep it flat
            tar.members.clear()


def iter_entries(stream: Any) -> Iterator[ArchiveEntry]:
    """
    Iterate over the entries of a tar stream, decompressing as needed.

    Args:
        stream: Object with a read(size) method (HTTP response, open file, BytesIO)

    Yields:
        ArchiveEntry objects in archive order. Each must be read or drained
        before advancing; whatever is left is drained automatically.

    Raises:
        ArchiveError: On malformed headers, corrupt compression or truncation
    """
    source = _PeekableStream(stream)

    if source.peek(len(ZSTD_MAGIC)) == ZSTD_MAGIC:
        dctx = zstd.ZstdDecompressor()
        with dctx.stream_reader(source, read_across_frames=True, closefd=False) as reader:
            yield from _iter_tar(reader, "r|")
    else:
        yield from _iter_tar(source, "r|*")
