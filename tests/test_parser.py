import pytest

from ebmlgen.codegen import state_name
from ebmlgen.parser import StreamParser, main, vint_length

SCHEMA = "<EBMLSchema></EBMLSchema>"
EBML_ID = bytes([0x1A, 0x45, 0xDF, 0xA3])


def test_vint_length_pinned_values():
    assert vint_length(0x80) == 1
    assert vint_length(0x40) == 2
    assert vint_length(0x01) == 8


def test_vint_length_depends_on_leading_bit():
    for shift in range(8):
        marker = 1 << shift
        assert vint_length(marker) == vint_length(marker | (marker - 1))


@pytest.mark.parametrize("byte", [0, 256, -1])
def test_vint_length_rejects_bad_bytes(byte):
    with pytest.raises(ValueError):
        vint_length(byte)


def test_initial_state():
    parser = StreamParser(3)
    assert parser.state_name() == state_name("LIBEXAMPLE", 0, 0)
    assert parser.bytes_left == 0


def test_id_then_size():
    parser = StreamParser(3)
    parser.feed(EBML_ID[0])
    assert parser.state_name() == state_name("LIBEXAMPLE", 0, 1)
    assert parser.bytes_left == vint_length(EBML_ID[0]) - 1
    parser.feed_all(EBML_ID[1:])
    assert parser.bytes_left == 0
    assert parser.state_name() == state_name("LIBEXAMPLE", 0, 1)
    parser.feed(0x84)
    assert parser.state_name() == state_name("LIBEXAMPLE", 0, 2)
    assert parser.bytes_left == vint_length(0x84) - 1


def test_size_with_nothing_left_is_unsupported():
    parser = StreamParser(3)
    parser.feed_all(EBML_ID + bytes([0x84]))
    with pytest.raises(NotImplementedError):
        parser.feed(0x00)


def test_longer_size_counts_down():
    parser = StreamParser(1)
    parser.feed_all(EBML_ID + bytes([0x40]))
    left = parser.bytes_left
    parser.feed(0x05)
    assert parser.bytes_left == left - 1


def test_eof_keeps_state():
    parser = StreamParser(2)
    parser.feed(EBML_ID[0])
    before = (parser.state_name(), parser.bytes_left)
    parser.eof()
    assert (parser.state_name(), parser.bytes_left) == before


def test_describe_reports_state():
    parser = StreamParser(2, prefix="P")
    parser.feed(EBML_ID[0])
    lines = parser.describe().splitlines()
    assert lines[0] == "[INFO] Parser"
    assert lines[1] == f"[INFO]   state = {state_name('P', 0, 1)}"
    assert lines[2] == f"[INFO]   bytes_left = {parser.bytes_left}"


def test_zero_elements_rejected():
    with pytest.raises(ValueError):
        StreamParser(0)


def test_feed_rejects_non_byte():
    parser = StreamParser(1)
    with pytest.raises(ValueError):
        parser.feed(300)


def test_main_without_filename_prints_usage(capsys):
    assert main([]) == 0
    assert "Usage:" in capsys.readouterr().out


def test_main_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "missing.mkv")]) == 1
    assert "[ERROR] Could not open file" in capsys.readouterr().out


def test_main_traces_bytes(tmp_path, capsys):
    schema = tmp_path / "schema.xml"
    schema.write_text(SCHEMA, encoding="utf-8")
    stream = tmp_path / "test.mkv"
    stream.write_bytes(EBML_ID + bytes([0x84]))
    assert main([str(stream), "--schema", str(schema)]) == 0
    out = capsys.readouterr().out
    assert f"[INFO] read byte 0x{EBML_ID[0]:X}" in out
    assert out.count("[INFO] Parser") == len(EBML_ID) + 2
    assert f"state = {state_name('LIBEXAMPLE', 0, 2)}" in out


def test_main_reports_unsupported_state(tmp_path):
    schema = tmp_path / "schema.xml"
    schema.write_text(SCHEMA, encoding="utf-8")
    stream = tmp_path / "test.mkv"
    stream.write_bytes(EBML_ID + bytes([0x84, 0x00]))
    assert main([str(stream), "--schema", str(schema)]) == 1