"""
Engine - namespace legado (javascript.yate) sobre o AsyncYateClient.

Agrega estado de debug/alarm, captura de dumps, substituição de parâmetros,
timers e codecs.

Referências:
- https://docs.yate.ro/wiki/Javascript_Engine
"""

import asyncio
import sys
from datetime import datetime, timezone
from typing import Any, Callable, NamedTuple, Optional, Sequence, Tuple

import structlog

from ..utils import codec, templates, timers
from .capture import CaptureBridge
from .debug import DebugState, is_level
from .severity import DEBUG_CONSTANTS, MAX_LEVEL, MIN_LEVEL, severity_level, severity_name

logger = structlog.get_logger()


class AlarmInvocation(NamedTuple):
    """alarm(level, ...) ou alarm(label, level, ...) normalizados."""
    label: Optional[str]
    level: Any
    args: Tuple[Any, ...]


def parse_alarm(level: Any, args: Tuple[Any, ...]) -> AlarmInvocation:
    if isinstance(level, str) and args and is_level(args[0]):
        return AlarmInvocation(level, args[0], tuple(args[1:]))
    return AlarmInvocation(None, level, tuple(args))


def timestamp() -> str:
    """ISO-8601 UTC com milissegundos (2024-01-01T12:00:00.000Z)."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class Engine:
    """
    Engine legado.

    Uso:
        Engine, Message, Channel = get_engine({"host": "127.0.0.1"})
        Engine.output("Hello World!")
        Engine.debug(Engine.DebugInfo, "detalhe")
    """

    DebugFail = DEBUG_CONSTANTS["DebugFail"]
    DebugTest = DEBUG_CONSTANTS["DebugTest"]
    DebugCrit = DEBUG_CONSTANTS["DebugCrit"]
    DebugGoOn = DEBUG_CONSTANTS["DebugGoOn"]
    DebugConf = DEBUG_CONSTANTS["DebugConf"]
    DebugStub = DEBUG_CONSTANTS["DebugStub"]
    DebugWarn = DEBUG_CONSTANTS["DebugWarn"]
    DebugMild = DEBUG_CONSTANTS["DebugMild"]
    DebugNote = DEBUG_CONSTANTS["DebugNote"]
    DebugCall = DEBUG_CONSTANTS["DebugCall"]
    DebugInfo = DEBUG_CONSTANTS["DebugInfo"]
    DebugAll = DEBUG_CONSTANTS["DebugAll"]

    def __init__(
        self,
        client,
        capture: Optional[CaptureBridge] = None,
        state: Optional[DebugState] = None,
        name: Optional[str] = None,
    ):
        self._client = client
        self._capture = capture or CaptureBridge()
        self.name = name if name is not None else sys.argv[0]
        self._state = state or DebugState(name=client.trackname or self.name)

    def __getitem__(self, key: Any) -> Any:
        """Engine[3] -> "CONF"; Engine["CONF"] -> 3."""
        if isinstance(key, str):
            return severity_level(key)
        name = severity_name(key)
        if name is None:
            raise KeyError(key)
        return name

    @property
    def state(self) -> DebugState:
        return self._state

    # =========================================================================
    # Output / debug
    # =========================================================================

    def output(self, *args: Any) -> None:
        self._client.output(*args)

    def _tagged(self, level: Any, *args: Any) -> None:
        severity = severity_name(level)
        if severity is None:
            return
        self.output(timestamp(), f"<{self._state.name}:{severity}>", *args)

    def debug(self, level: Any, *args: Any) -> None:
        if self._state.allows_debug(level):
            self._tagged(level, *args)

    def alarm(self, level: Any, *args: Any) -> None:
        invocation = parse_alarm(level, args)
        if is_level(invocation.level) and MIN_LEVEL <= invocation.level <= MAX_LEVEL:
            self._tagged(invocation.level, *invocation.args)

    # =========================================================================
    # Sleep
    # =========================================================================

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(max(seconds, 0))

    async def usleep(self, microseconds: int) -> None:
        await asyncio.sleep(max(int(microseconds) // 1000, 0) / 1000)

    def idle(self) -> None:
        pass

    def yield_(self) -> None:
        pass

    # =========================================================================
    # Dumps
    # =========================================================================

    async def dump_r(self, *args: Any) -> str:
        return await self._capture.dump_r(*args)

    async def dump_t(self, data: Any, columns: Optional[Sequence[str]] = None) -> str:
        return await self._capture.dump_t(data, columns)

    def print_r(self, *args: Any) -> None:
        self._client.get_console().log(*args)

    def print_t(self, data: Any, columns: Optional[Sequence[str]] = None) -> None:
        self._client.get_console().table(data, columns)

    # =========================================================================
    # Debug accessors (getter sem argumento, setter com valor do tipo certo)
    # =========================================================================

    def debugName(self, name: Optional[str] = None) -> Optional[str]:
        if isinstance(name, str):
            self._state.set_name(name)
            return None
        return self._state.get_name()

    def debugLevel(self, level: Optional[int] = None) -> Optional[int]:
        if is_level(level):
            self._state.set_level(level)
            return None
        return self._state.get_level()

    def debugEnabled(self, value: Optional[bool] = None) -> Optional[bool]:
        if isinstance(value, bool):
            self._state.set_enabled(value)
            return None
        return self._state.get_enabled()

    def debugAt(self, level: Any) -> bool:
        return self._state.debug_at(level)

    def setDebug(self, command: Any) -> None:
        if isinstance(command, bool):
            self._state.set_enabled(command)
        else:
            # Comandos em string ("level 9", "on") não são suportados
            logger.debug("Ignoring unsupported setDebug command", command=command)

    def started(self) -> bool:
        return self._client.connected

    # =========================================================================
    # Timers
    # =========================================================================

    def setTimeout(self, callback: Callable, delay_ms: Any = 0, *args: Any):
        return timers.set_timeout(callback, delay_ms, *args)

    def setInterval(self, callback: Callable, delay_ms: Any = 0, *args: Any):
        return timers.set_interval(callback, delay_ms, *args)

    def clearTimeout(self, handle: Any) -> None:
        timers.clear_timeout(handle)

    def clearInterval(self, handle: Any) -> None:
        timers.clear_interval(handle)

    # =========================================================================
    # Helpers
    # =========================================================================

    def replaceParams(self, template: str, params: Any) -> str:
        return templates.replace_params(template, params)

    def atob(self, encoded: Any) -> bytes:
        return codec.atob(encoded)

    def btoa(self, data: Any) -> str:
        return codec.btoa(data)

    async def setLocal(self, name: str, value: Any = "") -> str:
        return await self._client.setlocal(name, value)
