"""
Incremental decoder for OpenAI-style chat-completion SSE streams.

Chunks arrive with no respect for line or frame boundaries, so bytes are
buffered until a newline shows up. Each complete ``data: {...}`` line yields
the text at ``choices[0].delta.content``.

States:
    AWAITING_LINE  buffer holds no complete line, waiting for more bytes
    HAVE_LINE      at least one newline is buffered and being drained
    DONE           ``data: [DONE]`` was seen; everything after is ignored
"""

from __future__ import annotations

import codecs
import json
import logging
from typing import Any, Iterable, Iterator, List, Optional, Union

from ..enums import DecoderState
from ..errors import FrameParseError, TransportError

log = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


def extract_delta(parsed: Any) -> Optional[str]:
    """Return ``choices[0].delta.content`` when present and non-empty."""
    try:
        content = parsed["choices"][0]["delta"]["content"]
    except (KeyError, IndexError, TypeError):
        return None
    if isinstance(content, str) and content:
        return content
    return None


def parse_payload(payload: str) -> Any:
    try:
        return json.loads(payload)
    except ValueError as e:
        raise FrameParseError(f"unparseable frame: {e}", payload=payload[:200]) from e


class SSEFrameDecoder:
    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")()
        self.buffer = ""
        self.accumulated = ""
        self.state = DecoderState.AWAITING_LINE
        self.frames_skipped = 0

    @property
    def done(self) -> bool:
        return self.state is DecoderState.DONE

    def feed(self, chunk: Union[bytes, str]) -> List[str]:
        """Consume one chunk; return the fragments it completed, in order."""
        if self.done:
            return []

        if isinstance(chunk, bytes):
            try:
                chunk = self._decoder.decode(chunk)
            except UnicodeDecodeError as e:
                raise TransportError("stream is not valid UTF-8") from e
        self.buffer += chunk

        fragments: List[str] = []
        while "\n" in self.buffer:
            self.state = DecoderState.HAVE_LINE
            line, self.buffer = self.buffer.split("\n", 1)
            fragment = self._handle_line(line)
            if self.done:
                self.buffer = ""
                return fragments
            if fragment:
                self.accumulated += fragment
                fragments.append(fragment)

        self.state = DecoderState.AWAITING_LINE
        return fragments

    def _handle_line(self, line: str) -> Optional[str]:
        if line.endswith("\r"):
            line = line[:-1]
        if not line.strip() or line.startswith(":"):
            return None
        if not line.startswith(DATA_PREFIX):
            return None

        payload = line[len(DATA_PREFIX):].strip()
        if payload == DONE_SENTINEL:
            self.state = DecoderState.DONE
            return None

        try:
            parsed = parse_payload(payload)
        except FrameParseError as e:
            self.frames_skipped += 1
            log.warning(f"SSE_PARSE_ERROR | skipped={self.frames_skipped} | error={e.message}")
            return None
        return extract_delta(parsed)

    def finish(self) -> None:
        """End of data: a trailing partial line is dropped, never merged."""
        if self.buffer:
            log.debug(f"SSE_PARTIAL_DISCARDED | size={len(self.buffer)}")
        self.buffer = ""
        self.state = DecoderState.DONE

    def iter_fragments(self, chunks: Iterable[Union[bytes, str]]) -> Iterator[str]:
        for chunk in chunks:
            yield from self.feed(chunk)
            if self.done:
                return
        self.finish()
