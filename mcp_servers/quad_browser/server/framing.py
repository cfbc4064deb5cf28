"""Newline-delimited message framing for the stdio transport."""

from __future__ import annotations

import codecs


class LineBuffer:
    """Accumulates streamed input and yields complete lines.

    The trailing segment after the last newline is kept as pending state until
    its newline arrives. Byte chunks go through an incremental UTF-8 decoder, so
    a multibyte character split across two reads is held back until complete.
    """

    def __init__(self) -> None:
        self.pending = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def feed(self, chunk: str | bytes) -> list[str]:
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        parts = (self.pending + chunk).split("\n")
        self.pending = parts.pop()
        lines = []
        for part in parts:
            line = part.rstrip("\r")
            if line.strip():
                lines.append(line)
        return lines

    def flush(self) -> list[str]:
        """Return the pending segment as a final line (used at EOF)."""
        tail = self._decoder.decode(b"", final=True)
        self._decoder.reset()
        rest, self.pending = (self.pending + tail).rstrip("\r"), ""
        return [rest] if rest.strip() else []
