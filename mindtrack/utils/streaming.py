"""
STREAMING UTILITY
=================

Server-sent-event framing for the coach chat, shared by the server (which
writes events) and the command-line client (which reads them).

WIRE FORMAT:
  Each fragment is one event:   data: {"choices":[{"delta":{"content":"<fragment>"}}]}\\n\\n
  The stream ends with:         data: [DONE]\\n\\n

  The browser concatenates fragments in arrival order. Fragments after the first
  carry a single leading space, so joining them as-is rebuilds the original text.

PACING:
  Gemini returns the whole answer in one response. paced() hands the tokens out
  one at a time with a fixed delay so the client shows a typing effect. It stops
  as soon as the output channel reports closed, and every sleep is a
  cancellation point.
"""

import asyncio
import json
from typing import AsyncIterator, Awaitable, Callable, Iterable, Iterator, List, Optional, TypeVar


T = TypeVar("T")

DATA_PREFIX = "data: "
DONE_MARKER = "[DONE]"
DONE_EVENT = f"{DATA_PREFIX}{DONE_MARKER}\n\n"


def split_tokens(text: str) -> List[str]:
    """
    Split text on single spaces into stream fragments.

    Only the space character separates tokens, so newlines and runs of spaces
    survive: "".join(split_tokens(text)) == text for any text.
    """
    words = text.split(" ")
    return [word if i == 0 else " " + word for i, word in enumerate(words)]


def format_event(content: str) -> str:
    """Wrap one fragment in the incremental-delta envelope and frame it as an SSE event."""
    payload = {"choices": [{"delta": {"content": content}}]}
    return f"{DATA_PREFIX}{json.dumps(payload, ensure_ascii=False, separators=(',', ':'))}\n\n"


async def paced(
    items: Iterable[T],
    interval: float,
    is_closed: Optional[Callable[[], Awaitable[bool]]] = None,
) -> AsyncIterator[T]:
    """Yield items in order, sleeping interval seconds between them; stop early once is_closed() is true."""
    for i, item in enumerate(items):
        if i > 0:
            await asyncio.sleep(interval)
        if is_closed is not None and await is_closed():
            return
        yield item


def iter_stream_content(lines: Iterable[str]) -> Iterator[str]:
    """
    Parse event-stream lines the way the browser client does and yield each content fragment.

    Non-data lines, the [DONE] marker, incomplete JSON and empty fragments are skipped.
    """
    for line in lines:
        if not line.startswith(DATA_PREFIX):
            continue
        data = line[len(DATA_PREFIX):].strip()
        if data == DONE_MARKER:
            continue
        try:
            parsed = json.loads(data)
            content = parsed["choices"][0]["delta"]["content"]
        except (ValueError, KeyError, IndexError, TypeError):
            continue
        if content:
            yield content
