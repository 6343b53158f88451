"""
Capture Bridge - transforma uma escrita síncrona de console em um awaitable.

Fila FIFO de capturas pendentes: cada dump arma um future no fim da fila e
escreve no DumpStream sem suspender entre as duas etapas; cada flush do
stream resolve o future mais antigo. Dumps concorrentes ficam corretamente
pareados com o próprio texto.
"""

import asyncio
from collections import deque
from typing import Any, Deque, Optional, Sequence

import structlog

from ..client.console import Console, DumpStream

logger = structlog.get_logger()


class CaptureBridge:
    """Captura o texto renderizado por Console.log/Console.table."""

    def __init__(self, stream: Optional[DumpStream] = None):
        self.stream = stream or DumpStream()
        self.console = Console(self.stream)
        self._pending: Deque[asyncio.Future] = deque()
        self.stream.on_dump(self._on_dump)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def _arm(self) -> asyncio.Future:
        future = asyncio.get_running_loop().create_future()
        self._pending.append(future)
        return future

    def _disarm(self, future: asyncio.Future) -> None:
        if future in self._pending:
            self._pending.remove(future)

    def _on_dump(self, text: str) -> None:
        while self._pending:
            future = self._pending.popleft()
            if not future.done():
                future.set_result(text)
                return
        logger.debug("Dump completed without pending capture", size=len(text))

    async def dump_r(self, *args: Any) -> str:
        """Captura o equivalente a console.log(*args)."""
        future = self._arm()
        try:
            self.console.log(*args)
        except Exception:
            self._disarm(future)
            raise
        return await future

    async def dump_t(self, data: Any, columns: Optional[Sequence[str]] = None) -> str:
        """Captura o equivalente a console.table(data, columns)."""
        future = self._arm()
        try:
            self.console.table(data, columns)
        except Exception:
            self._disarm(future)
            raise
        return await future
