"""
Pytest configuration and fixtures.
"""

import asyncio
from typing import Callable, Dict, List
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio

from yate_compat.client import AsyncYateClient
from yate_compat.client.protocol import split_line
from yate_compat.compat import CaptureBridge, Engine


class FakeYate:
    """
    Simula o lado do Yate: recebe as linhas escritas pelo cliente (interface
    de StreamWriter) e alimenta as respostas no StreamReader.
    """

    def __init__(self):
        self.reader = asyncio.StreamReader()
        self.lines: List[str] = []
        self.handled: Dict[str, str] = {}  # nome da mensagem -> retvalue
        self.auto_reply = True
        self.refuse_setlocal = False

    # StreamWriter
    def write(self, data: bytes) -> None:
        for line in data.decode().splitlines():
            self.lines.append(line)
            if self.auto_reply:
                self._reply(line)

    async def drain(self) -> None:
        pass

    def close(self) -> None:
        pass

    async def wait_closed(self) -> None:
        pass

    def feed(self, line: str) -> None:
        self.reader.feed_data((line + "\n").encode())

    def _reply(self, line: str) -> None:
        keyword, fields = split_line(line)
        if keyword == "%%>message":
            msg_id, _, name, retvalue = fields[:4]
            processed = name in self.handled
            retvalue = self.handled.get(name, retvalue)
            self.feed(":".join(
                ["%%<message", msg_id, "true" if processed else "false", name, retvalue] + fields[4:]
            ))
        elif keyword == "%%>install":
            self.feed(f"%%<install:{fields[0]}:{fields[1]}:true")
        elif keyword == "%%>uninstall":
            self.feed(f"%%<uninstall:100:{fields[0]}:true")
        elif keyword in ("%%>watch", "%%>unwatch"):
            self.feed(f"%%<{keyword[3:]}:{fields[0]}:true")
        elif keyword == "%%>setlocal":
            success = "false" if self.refuse_setlocal else "true"
            self.feed(f"%%<setlocal:{fields[0]}:{fields[1]}:{success}")

    def sent(self, prefix: str) -> List[str]:
        return [line for line in self.lines if line.startswith(prefix)]


async def wait_until(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    """Aguarda até predicate() ser verdadeiro."""
    loop = asyncio.get_running_loop()
    end = loop.time() + timeout
    while not predicate():
        if loop.time() > end:
            raise AssertionError("Condition not met before timeout")
        await asyncio.sleep(0.005)


@pytest_asyncio.fixture
async def fake_yate():
    """Lado do Yate simulado."""
    return FakeYate()


def make_client(**kwargs) -> AsyncYateClient:
    options = {
        "host": "127.0.0.1",
        "port": 5040,
        "reconnect": False,
        "dispatch_timeout": 1.0,
        "setlocal_timeout": 1.0,
    }
    options.update(kwargs)
    return AsyncYateClient(**options)


async def connect_client(client: AsyncYateClient, fake: FakeYate) -> None:
    with patch("asyncio.open_connection", AsyncMock(return_value=(fake.reader, fake))):
        assert await client.connect()


@pytest_asyncio.fixture
async def yate_client(fake_yate):
    """AsyncYateClient conectado ao FakeYate."""
    client = make_client()
    await connect_client(client, fake_yate)
    yield client
    await client.disconnect()


@pytest.fixture
def mock_client():
    """Cliente mock para testes do Engine/Message."""
    client = MagicMock()
    client.trackname = ""
    client.connected = False
    client.setlocal = AsyncMock(return_value="value")
    client.dispatch = AsyncMock()
    return client


@pytest.fixture
def engine(mock_client):
    """Engine sobre cliente mock."""
    return Engine(mock_client, CaptureBridge(), name="test.py")
