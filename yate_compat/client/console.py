"""
Console e streams de saída.

- Console: log()/table() no estilo do console do Node (uma escrita + flush por chamada)
- OutputStream: envia linhas completas para o Yate via %%>output
- DumpStream: agrega escritas e notifica listeners a cada flush (captura)
"""

import io
from pprint import pformat
from typing import Any, Callable, Iterable, List, Optional, Sequence

INDEX_HEADER = "(index)"
VALUES_HEADER = "Values"


def format_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    return pformat(value)


def format_args(*args: Any) -> str:
    """Junta argumentos como console.log: strings literais, demais via pformat."""
    return " ".join(format_value(arg) for arg in args)


def _cell(value: Any) -> str:
    if isinstance(value, str):
        return repr(value)
    return str(value)


def _rows(data: Any) -> Optional[List[tuple]]:
    if isinstance(data, dict):
        return list(data.items())
    if isinstance(data, (list, tuple)):
        return list(enumerate(data))
    return None


def render_table(data: Any, columns: Optional[Sequence[str]] = None) -> Optional[str]:
    """
    Renderiza dados tabulares com bordas (mesmo layout do console.table).

    Returns:
        Texto da tabela, ou None se `data` não for tabular.
    """
    rows = _rows(data)
    if rows is None:
        return None

    keys: List[Any] = []
    has_values = False
    for _, row in rows:
        if isinstance(row, dict):
            row_keys: Iterable[Any] = row.keys()
        elif isinstance(row, (list, tuple)):
            row_keys = range(len(row))
        else:
            has_values = True
            continue
        for key in row_keys:
            if key not in keys:
                keys.append(key)

    if columns is not None:
        keys = list(columns)

    header = [INDEX_HEADER] + [str(key) for key in keys]
    if has_values:
        header.append(VALUES_HEADER)

    body = []
    for index, row in rows:
        line = [str(index)]
        for key in keys:
            if isinstance(row, dict):
                line.append(_cell(row[key]) if key in row else "")
            elif isinstance(row, (list, tuple)) and isinstance(key, int) and key < len(row):
                line.append(_cell(row[key]))
            else:
                line.append("")
        if has_values:
            line.append("" if isinstance(row, (dict, list, tuple)) else _cell(row))
        body.append(line)

    widths = [len(title) + 2 for title in header]
    for line in body:
        for i, cell in enumerate(line):
            widths[i] = max(widths[i], len(cell) + 2)

    def render_line(cells: List[str]) -> str:
        return "│" + "│".join(cell.center(widths[i]) for i, cell in enumerate(cells)) + "│"

    out = ["┌" + "┬".join("─" * w for w in widths) + "┐", render_line(header)]
    out.append("├" + "┼".join("─" * w for w in widths) + "┤")
    out.extend(render_line(line) for line in body)
    out.append("└" + "┴".join("─" * w for w in widths) + "┘")
    return "\n".join(out)


class Console:
    """
    Console mínimo sobre um stream de texto.

    Cada chamada faz exatamente uma escrita seguida de flush, o que delimita
    uma "escrita lógica" para o DumpStream.
    """

    def __init__(self, stream):
        self.stream = stream

    def _emit(self, text: str) -> None:
        self.stream.write(text + "\n")
        self.stream.flush()

    def log(self, *args: Any) -> None:
        self._emit(format_args(*args))

    info = log
    warn = log
    error = log

    def table(self, data: Any, columns: Optional[Sequence[str]] = None) -> None:
        rendered = render_table(data, columns)
        if rendered is None:
            self.log(data)
        else:
            self._emit(rendered)


class OutputStream(io.TextIOBase):
    """Stream de texto que encaminha linhas completas para client.output()."""

    def __init__(self, client):
        super().__init__()
        self._client = client
        self._buffer = ""

    def writable(self) -> bool:
        return True

    def write(self, text: str) -> int:
        self._buffer += text
        while "\n" in self._buffer:
            line, self._buffer = self._buffer.split("\n", 1)
            self._client.output(line)
        return len(text)

    def flush(self) -> None:
        if self._buffer:
            line, self._buffer = self._buffer, ""
            self._client.output(line)


class DumpStream(io.TextIOBase):
    """
    Stream de captura: agrega escritas e, a cada flush, entrega o texto
    renderizado aos listeners de "dump".
    """

    def __init__(self):
        super().__init__()
        self._chunks: List[str] = []
        self._listeners: List[Callable[[str], None]] = []

    def writable(self) -> bool:
        return True

    def write(self, text: str) -> int:
        self._chunks.append(text)
        return len(text)

    def flush(self) -> None:
        if not self._chunks:
            return
        text = "".join(self._chunks)
        self._chunks.clear()
        if text.endswith("\n"):
            text = text[:-1]
        for listener in list(self._listeners):
            listener(text)

    def on_dump(self, listener: Callable[[str], None]) -> None:
        self._listeners.append(listener)

    def off_dump(self, listener: Callable[[str], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)
