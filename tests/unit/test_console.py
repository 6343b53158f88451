"""
Tests for Console, render_table and the output/dump streams.
"""

from unittest.mock import MagicMock

from yate_compat.client.console import (
    Console,
    DumpStream,
    OutputStream,
    format_args,
    render_table,
)


class TestFormatArgs:

    def test_strings_verbatim(self):
        assert format_args("a", "b c") == "a b c"

    def test_non_strings(self):
        assert format_args("n", 1, None, [1, "x"]) == "n 1 None [1, 'x']"

    def test_empty(self):
        assert format_args() == ""


class TestRenderTable:

    def test_list_of_dicts(self):
        expected = "\n".join([
            "┌─────────┬───┬─────┐",
            "│ (index) │ a │  b  │",
            "├─────────┼───┼─────┤",
            "│    0    │ 1 │ 'x' │",
            "└─────────┴───┴─────┘",
        ])
        assert render_table([{"a": 1, "b": "x"}]) == expected

    def test_scalar_rows_use_values_column(self):
        lines = render_table([10, 20]).split("\n")
        assert "Values" in lines[1]
        assert "10" in lines[3]
        assert "20" in lines[4]

    def test_columns_filter(self):
        rendered = render_table([{"a": 1, "b": 2}], ["b"])
        assert " b " in rendered.split("\n")[1]
        assert " a " not in rendered.split("\n")[1]

    def test_dict_rows_indexed_by_key(self):
        rendered = render_table({"first": {"x": 1}})
        assert "first" in rendered.split("\n")[3]

    def test_non_tabular(self):
        assert render_table(5) is None
        assert render_table("text") is None


class TestConsole:

    def test_log_single_write_and_flush(self):
        stream = MagicMock()
        Console(stream).log("a", 1)
        stream.write.assert_called_once_with("a 1\n")
        stream.flush.assert_called_once()

    def test_table_falls_back_to_log(self):
        stream = MagicMock()
        Console(stream).table(42)
        stream.write.assert_called_once_with("42\n")


class TestOutputStream:

    def test_complete_lines_forwarded(self):
        client = MagicMock()
        stream = OutputStream(client)
        stream.write("one\ntw")
        client.output.assert_called_once_with("one")
        stream.write("o\n")
        client.output.assert_called_with("two")

    def test_flush_sends_remainder(self):
        client = MagicMock()
        stream = OutputStream(client)
        stream.write("partial")
        client.output.assert_not_called()
        stream.flush()
        client.output.assert_called_once_with("partial")


class TestDumpStream:

    def test_flush_joins_chunks_and_strips_newline(self):
        stream = DumpStream()
        received = []
        stream.on_dump(received.append)

        stream.write("a")
        stream.write("b\n")
        stream.flush()

        assert received == ["ab"]

    def test_only_one_newline_stripped(self):
        stream = DumpStream()
        received = []
        stream.on_dump(received.append)
        stream.write("x\n\n")
        stream.flush()
        assert received == ["x\n"]

    def test_empty_flush_is_silent(self):
        stream = DumpStream()
        listener = MagicMock()
        stream.on_dump(listener)
        stream.flush()
        listener.assert_not_called()

    def test_off_dump(self):
        stream = DumpStream()
        listener = MagicMock()
        stream.on_dump(listener)
        stream.off_dump(listener)
        stream.write("x")
        stream.flush()
        listener.assert_not_called()
