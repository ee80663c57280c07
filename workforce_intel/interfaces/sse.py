"""
interfaces/sse.py
──────────────────────────────────────────────────────────────────────────────
Server-sent event framing for analysis streams.

Wire format: one frame per event, ``data: <JSON>\\n\\n``.  No ``event:`` or
``id:`` fields are used; the event type lives inside the JSON payload.

encode_event()  — server side, StreamEvent → frame text
iter_frames()   — client side, raw byte/str chunks → JSON payload strings
"""
from __future__ import annotations

import codecs
import json
import logging
from collections.abc import Iterable, Iterator

from workforce_intel.domain.models import StreamEvent

logger = logging.getLogger(__name__)

MIMETYPE = "text/event-stream"
_DATA_PREFIX = "data:"


def encode_event(event: StreamEvent) -> str:
    """Render one StreamEvent as an SSE frame."""
    return f"data: {json.dumps(event.to_dict(), ensure_ascii=False)}\n\n"


def iter_frames(chunks: Iterable[bytes | str]) -> Iterator[str]:
    """Reassemble SSE frames from arbitrarily split network chunks.

    Yields the ``data`` payload of every complete frame (multi-line data
    fields are joined with newlines).  Frames without a data field are
    skipped; an unterminated trailing frame is discarded.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    buffer = ""
    for chunk in chunks:
        if not chunk:
            continue
        text = decoder.decode(chunk) if isinstance(chunk, bytes) else chunk
        buffer = (buffer + text).replace("\r\n", "\n")
        *complete, buffer = buffer.split("\n\n")
        for frame in complete:
            payload = _frame_data(frame)
            if payload is not None:
                yield payload

    if buffer.strip():
        logger.debug("Discarding unterminated SSE frame: %.120s", buffer)


def _frame_data(frame: str) -> str | None:
    lines = [
        line[len(_DATA_PREFIX):].removeprefix(" ")
        for line in frame.split("\n")
        if line.startswith(_DATA_PREFIX)
    ]
    return "\n".join(lines) if lines else None
