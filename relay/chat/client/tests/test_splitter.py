import random

from relay.chat.client.splitter import LineSplitter

STREAM = (
    '{"type":"text","content":"héllo"}\n'
    "\n"
    '{"type":"tool_use","tool":"Read","id":"t1","detail":"src/ünïcode.py"}\n'
    '{"type":"turn","turn":1}\r\n'
    '{"type":"text","content":"bye ✓"}'
).encode("utf-8")


def _split_all(chunks):
    splitter = LineSplitter()
    lines = []
    for chunk in chunks:
        lines.extend(splitter.feed(chunk))
    lines.extend(splitter.flush())
    return lines


def test_whole_stream_in_one_chunk():
    lines = _split_all([STREAM])
    assert len(lines) == 4
    assert lines[0] == '{"type":"text","content":"héllo"}'
    assert lines[2] == '{"type":"turn","turn":1}'


def test_partial_line_is_carried_over():
    splitter = LineSplitter()
    assert splitter.feed(b'{"type":"te') == []
    assert splitter.pending == b'{"type":"te'
    assert splitter.feed(b'xt","content":"a"}\n{"ty') == ['{"type":"text","content":"a"}']
    assert splitter.flush() == ['{"ty']
    assert splitter.flush() == []


def test_fragmentation_invariance():
    expected = _split_all([STREAM])
    rng = random.Random(42)
    for _ in range(300):
        cuts = sorted(rng.sample(range(1, len(STREAM)), rng.randint(1, 12)))
        bounds = [0] + cuts + [len(STREAM)]
        chunks = [STREAM[start:end] for start, end in zip(bounds, bounds[1:])]
        assert _split_all(chunks) == expected


def test_byte_at_a_time_splits_multibyte_characters():
    chunks = [STREAM[i:i + 1] for i in range(len(STREAM))]
    assert _split_all(chunks) == _split_all([STREAM])


def test_blank_lines_are_dropped():
    assert _split_all([b"\n\n  \n\r\n"]) == []
    assert LineSplitter().feed(b"") == []
