from itertools import combinations

import pytest

from plex_core.streaming.reassembler import EventReassembler

RECORD = (
    'data: {"choices":[{"delta":{"content":"héllo 世界"},"finish_reason":null}],'
    '"citations":["a.com","b.com"]}'
).encode("utf-8")
# 正文里出现 "data: " 的记录
NESTED_PREFIX_RECORD = b'data: {"choices":[{"delta":{"content":"see data: x"}}]}'


def _feed_all(frames):
    r = EventReassembler()
    chunks = [c for c in (r.feed(f) for f in frames) if c is not None]
    return chunks, r


def test_single_frame_record():
    chunks, r = _feed_all([RECORD])
    assert len(chunks) == 1
    assert chunks[0].content == "héllo 世界"
    assert chunks[0].citations == ["a.com", "b.com"]
    assert chunks[0].finish_reason is None
    assert r.pending == 0


@pytest.mark.parametrize("record", [RECORD, NESTED_PREFIX_RECORD])
def test_fragmented_record_matches_whole_record(record):
    expected, _ = _feed_all([record])
    assert len(expected) == 1
    points = range(1, len(record))
    for i in points:
        chunks, r = _feed_all([record[:i], record[i:]])
        assert chunks == expected, i
        assert r.pending == 0
    for i, j in combinations(points, 2):
        chunks, _ = _feed_all([record[:i], record[i:j], record[j:]])
        assert chunks == expected, (i, j)


def test_content_containing_prefix_survives_split():
    split = NESTED_PREFIX_RECORD.index(b" data: x")
    chunks, _ = _feed_all([NESTED_PREFIX_RECORD[:split], NESTED_PREFIX_RECORD[split:]])
    assert [c.content for c in chunks] == ["see data: x"]
    chunks, _ = _feed_all([NESTED_PREFIX_RECORD[:3], NESTED_PREFIX_RECORD[3:]])
    assert [c.content for c in chunks] == ["see data: x"]


def test_many_single_byte_fragments():
    frames = [RECORD[k:k + 1] for k in range(len(RECORD))]
    chunks, _ = _feed_all(frames)
    assert [c.content for c in chunks] == ["héllo 世界"]


def test_consecutive_records_each_locate_their_prefix():
    second = b'event: message\ndata: {"choices":[{"delta":{"content":"!"}}]}'
    chunks, r = _feed_all([RECORD[:20], RECORD[20:], second])
    assert [c.content for c in chunks] == ["héllo 世界", "!"]
    assert r.pending == 0


def test_empty_frame_contributes_nothing():
    r = EventReassembler()
    assert r.feed(b"") is None
    assert r.pending == 0


def test_frame_without_prefix_is_payload():
    r = EventReassembler()
    chunk = r.feed(b'{"choices":[{"delta":{"content":"x"}}]}')
    assert chunk is not None and chunk.content == "x"


def test_prefix_found_inside_frame():
    r = EventReassembler()
    chunk = r.feed(b'event: message\ndata: {"choices":[{"delta":{"content":"y"}}]}')
    assert chunk is not None and chunk.content == "y"


def test_partial_record_stays_buffered():
    r = EventReassembler()
    assert r.feed(b'data: {"choices":[{"delta":') is None
    assert r.pending > 0
    chunk = r.feed(b'{"content":"z"}}]}')
    assert chunk.content == "z"
    assert r.pending == 0


def test_non_object_json_is_not_a_record():
    r = EventReassembler()
    assert r.feed(b"data: 42") is None
    assert r.pending == 2


def test_finish_reason_and_missing_choices():
    r = EventReassembler()
    chunk = r.feed(b'data: {"choices":[{"delta":{},"finish_reason":"stop"}]}')
    assert chunk.finish_reason == "stop"
    assert chunk.content == ""
    chunk = r.feed(b'data: {"citations":["c.com", 3]}')
    assert chunk.content == ""
    assert chunk.citations == ["c.com"]


def test_done_sentinel():
    assert EventReassembler.is_terminal(b"data: [DONE]")
    assert not EventReassembler.is_terminal(b'data: {"choices":[]}')
