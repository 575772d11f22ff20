import json

from mindtrack.utils.streaming import (
    DONE_EVENT,
    format_event,
    iter_stream_content,
    paced,
    split_tokens,
)


def test_split_tokens_prefixes_all_but_first():
    assert split_tokens("Take a breath.") == ["Take", " a", " breath."]


def test_split_tokens_rebuilds_text_exactly():
    text = "First line.\nSecond  line with  gaps. "
    assert "".join(split_tokens(text)) == text


def test_format_event_is_compact_sse_frame():
    event = format_event(" hello")
    assert event == 'data: {"choices":[{"delta":{"content":" hello"}}]}\n\n'


def test_format_event_keeps_unicode_and_escapes_quotes():
    event = format_event('"café"\n')
    payload = json.loads(event[len("data: "):])
    assert payload["choices"][0]["delta"]["content"] == '"café"\n'
    assert "café" in event


def test_done_event():
    assert DONE_EVENT == "data: [DONE]\n\n"


async def test_paced_yields_in_order():
    out = [item async for item in paced(["a", "b", "c"], 0)]
    assert out == ["a", "b", "c"]


async def test_paced_stops_when_channel_closes():
    checks = []

    async def is_closed():
        checks.append(True)
        return len(checks) > 2

    out = [item async for item in paced(["a", "b", "c", "d"], 0, is_closed)]
    assert out == ["a", "b"]


def test_iter_stream_content_reads_browser_style():
    lines = [
        format_event("Hello").strip(),
        "",
        ": keep-alive",
        "data: {not json",
        format_event(" there").strip(),
        "data: [DONE]",
    ]
    assert list(iter_stream_content(lines)) == ["Hello", " there"]


async def test_paced_sleeps_between_items_only(monkeypatch):
    delays = []

    async def record(delay):
        delays.append(delay)

    monkeypatch.setattr("mindtrack.utils.streaming.asyncio.sleep", record)

    out = [item async for item in paced(["a", "b", "c"], 0.05)]

    assert out == ["a", "b", "c"]
    assert delays == [0.05, 0.05]
