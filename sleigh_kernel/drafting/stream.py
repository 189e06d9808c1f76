"""
Draft Stream — events flowing out of the drafting service and their SSE framing.

Wire format (one `data:` line per frame, blank-line separated):
  data: {"content": "..."}       content delta
  data: {"ping": 1734200000000}  keep-alive, no semantic content
  data: {"error": "..."}         upstream failure, ends the stream
  data: [DONE]                   end marker

Decoding also accepts OpenAI `chat.completion.chunk` payloads so the same
reader works against a raw upstream stream.
"""

import json
import time
from enum import Enum
from typing import Optional

from pydantic import BaseModel

DONE_MARKER = "[DONE]"


class StreamEventKind(str, Enum):
    DELTA = "delta"
    KEEPALIVE = "keepalive"
    ERROR = "error"
    DONE = "done"


class StreamEvent(BaseModel):
    kind: StreamEventKind
    text: str = ""

    @classmethod
    def delta(cls, text: str) -> "StreamEvent":
        return cls(kind=StreamEventKind.DELTA, text=text)

    @classmethod
    def keepalive(cls) -> "StreamEvent":
        return cls(kind=StreamEventKind.KEEPALIVE)

    @classmethod
    def error(cls, message: str) -> "StreamEvent":
        return cls(kind=StreamEventKind.ERROR, text=message)

    @classmethod
    def done(cls) -> "StreamEvent":
        return cls(kind=StreamEventKind.DONE)

    @property
    def is_terminal(self) -> bool:
        return self.kind in (StreamEventKind.ERROR, StreamEventKind.DONE)


def encode_event(event: StreamEvent) -> str:
    """Frame a single event for a text/event-stream response."""
    if event.kind == StreamEventKind.DONE:
        payload = DONE_MARKER
    elif event.kind == StreamEventKind.KEEPALIVE:
        payload = json.dumps({"ping": int(time.time() * 1000)})
    elif event.kind == StreamEventKind.ERROR:
        payload = json.dumps({"error": event.text or "Unknown error"})
    else:
        payload = json.dumps({"content": event.text})
    return f"data: {payload}\n\n"


def _chunk_content(payload: dict) -> str:
    """Pull delta text out of an OpenAI-style streaming chunk."""
    chunks = []
    for choice in payload.get("choices") or []:
        delta = (choice or {}).get("delta") or (choice or {}).get("message") or {}
        content = delta.get("content")
        if isinstance(content, str):
            chunks.append(content)
    return "".join(chunks)


def decode_frame(line: str) -> Optional[StreamEvent]:
    """
    Decode one line of an SSE stream.
    Returns None for blank lines, comments and payloads without content.
    """
    line = line.strip()
    if not line.startswith("data:"):
        return None

    data = line[len("data:"):].strip()
    if data == DONE_MARKER:
        return StreamEvent.done()

    try:
        payload = json.loads(data)
    except ValueError:
        return StreamEvent.delta(data) if data else None

    if not isinstance(payload, dict):
        return None
    if "error" in payload:
        return StreamEvent.error(str(payload["error"]))
    if "ping" in payload:
        return StreamEvent.keepalive()
    if "content" in payload:
        return StreamEvent.delta(str(payload["content"] or ""))

    text = _chunk_content(payload)
    return StreamEvent.delta(text) if text else None
