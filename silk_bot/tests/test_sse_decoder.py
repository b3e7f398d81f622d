from __future__ import annotations

import pytest

from silk_bot.enums import DecoderState
from silk_bot.errors import TransportError
from silk_bot.streaming import SSEFrameDecoder, extract_delta


def _decode(chunks):
    decoder = SSEFrameDecoder()
    fragments = list(decoder.iter_fragments(chunks))
    return decoder, fragments


def test_hello_scenario():
    chunks = [
        b'data: {"choices":[{"delta":{"content":"Hel"}}]}\n',
        b'data: {"choices":[{"delta":{"content":"lo"}}]}\n\ndata: [DONE]\n',
    ]
    decoder, fragments = _decode(chunks)
    assert fragments == ["Hel", "lo"]
    assert decoder.accumulated == "Hello"
    assert decoder.done


def test_split_mid_line_matches_unsplit(frame):
    stream = (frame("Your ") + frame("EMI is ") + frame("₹3,250") + "data: [DONE]\n\n").encode("utf-8")
    _, whole = _decode([stream])

    for size in (1, 3, 7, 16):
        pieces = [stream[i:i + size] for i in range(0, len(stream), size)]
        decoder, fragments = _decode(pieces)
        assert "".join(fragments) == "".join(whole) == "Your EMI is ₹3,250"
        assert decoder.accumulated == "Your EMI is ₹3,250"


def test_fragments_come_back_per_chunk_in_order(frame):
    decoder = SSEFrameDecoder()
    assert decoder.feed(frame("a") + frame("b")) == ["a", "b"]
    assert decoder.feed('data: {"choices":[{"delta":{"content":"c"') == []
    assert decoder.state is DecoderState.AWAITING_LINE
    assert decoder.feed("}}]}\n") == ["c"]
    assert decoder.accumulated == "abc"


def test_malformed_frame_is_skipped(frame):
    chunks = [frame("one "), "data: {not json}\n\n", frame("two")]
    decoder, fragments = _decode(chunks)
    assert fragments == ["one ", "two"]
    assert decoder.frames_skipped == 1


def test_done_discards_everything_after_it(frame):
    decoder = SSEFrameDecoder()
    out = decoder.feed(frame("kept") + "data: [DONE]\n" + frame("dropped") + 'data: {"partial')
    assert out == ["kept"]
    assert decoder.done
    assert decoder.buffer == ""
    assert decoder.feed(frame("late")) == []
    assert decoder.accumulated == "kept"


def test_iteration_stops_at_done(frame):
    consumed = []

    def chunks():
        for c in (frame("x"), "data: [DONE]\n", frame("never")):
            consumed.append(c)
            yield c

    _, fragments = _decode(chunks())
    assert fragments == ["x"]
    assert len(consumed) == 2


@pytest.mark.parametrize(
    "line",
    [
        ": keep-alive\n",
        ":\n",
        "\n",
        "   \n",
        "\r\n",
        "event: message\n",
        "id: 7\n",
        "data:{\"choices\":[{\"delta\":{\"content\":\"no space\"}}]}\n",
    ],
)
def test_non_data_lines_never_contribute(line):
    decoder = SSEFrameDecoder()
    assert decoder.feed(line) == []
    assert decoder.accumulated == ""
    assert not decoder.done


def test_crlf_line_endings(frame):
    text = frame("a").replace("\n", "\r\n") + "data: [DONE]\r\n"
    decoder, fragments = _decode([text])
    assert fragments == ["a"]
    assert decoder.done


@pytest.mark.parametrize(
    "payload",
    [
        '{"choices":[]}',
        '{"choices":[{"delta":{}}]}',
        '{"choices":[{"delta":{"content":""}}]}',
        '{"choices":[{"delta":{"content":null}}]}',
        '{"choices":[{"delta":{"role":"assistant"}}]}',
        '{"error":"x"}',
        '[1, 2]',
        '"text"',
    ],
)
def test_frames_without_delta_text_are_no_ops(payload):
    decoder = SSEFrameDecoder()
    assert decoder.feed(f"data: {payload}\n") == []
    assert decoder.frames_skipped == 0


def test_trailing_partial_line_is_not_flushed(frame):
    decoder, fragments = _decode([frame("done"), 'data: {"choices":[{"delta":{"content":"lost"}}]}'])
    assert fragments == ["done"]
    assert decoder.accumulated == "done"
    assert decoder.buffer == ""
    assert decoder.done


def test_multibyte_character_split_across_chunks(frame):
    raw = frame("नमस्ते").encode("utf-8")
    cut = raw.index("न".encode("utf-8")) + 1
    decoder, fragments = _decode([raw[:cut], raw[cut:]])
    assert fragments == ["नमस्ते"]


def test_invalid_utf8_is_a_transport_error():
    decoder = SSEFrameDecoder()
    with pytest.raises(TransportError):
        decoder.feed(b"data: \xff\xfe\n")


def test_extract_delta_path():
    assert extract_delta({"choices": [{"delta": {"content": "hi"}}]}) == "hi"
    assert extract_delta({"choices": [{"delta": {"content": 5}}]}) is None
    assert extract_delta(None) is None
