"""Buffered line splitter for byte streams that arrive in arbitrary chunks."""
from __future__ import annotations

from typing import List


class LineSplitter:
    """Yields complete, non-blank lines; a partial trailing line is carried over.

    Splitting happens on bytes before decoding, so a multi-byte character cut
    across two chunks is reassembled intact.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding
        self._buffer = b""

    @property
    def pending(self) -> bytes:
        return self._buffer

    def feed(self, chunk: bytes) -> List[str]:
        if not chunk:
            return []
        self._buffer += chunk
        *complete, self._buffer = self._buffer.split(b"\n")
        return self._decode(complete)

    def flush(self) -> List[str]:
        """Return whatever is left once the stream has closed."""
        remainder, self._buffer = self._buffer, b""
        return self._decode([remainder])

    def _decode(self, raw_lines: List[bytes]) -> List[str]:
        lines = []
        for raw in raw_lines:
            line = raw.decode(self.encoding, errors="replace").strip()
            if line:
                lines.append(line)
        return lines
