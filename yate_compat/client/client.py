"""
AsyncYateClient - Cliente assíncrono para o protocolo extmodule do Yate.

Referências:
- https://docs.yate.ro/wiki/External_Module
- https://docs.yate.ro/wiki/External_module_command_flow

Funcionalidades:
- Conexão TCP (extmodule listener) ou stdio (script iniciado pelo Yate)
- Buffer de linhas enquanto não conectado, flush em ordem na conexão
- install/watch com re-registro automático após reconexão
- dispatch com timeout, enqueue fire-and-forget
- setlocal com resposta assíncrona

IMPORTANTE: Este cliente usa asyncio. Todas as operações devem rodar no
mesmo event loop.
"""

import asyncio
import itertools
import logging
import os
import sys
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, List, Optional

from . import protocol
from .console import Console, OutputStream, format_args
from .protocol import YateMessage

logger = logging.getLogger(__name__)

DEFAULT_PORT = 5040
DEFAULT_PRIORITY = 100


class YateError(Exception):
    """Erro genérico do cliente Yate."""
    pass


class YateConnectionError(YateError):
    """Erro de conexão com o Yate."""
    pass


class YateTimeoutError(YateError):
    """Timeout aguardando resposta do Yate."""
    pass


@dataclass
class InstalledHandler:
    """Handler registrado para mensagens."""
    name: str
    callback: Callable[[YateMessage], Any]
    priority: int = DEFAULT_PRIORITY
    filter_name: Optional[str] = None
    filter_value: Optional[str] = None
    order: int = 0

    def matches(self, message: YateMessage) -> bool:
        if not self.filter_name:
            return True
        return str(message.params.get(self.filter_name, "")) == str(self.filter_value or "")


@dataclass
class _SetLocalRequest:
    future: Optional[asyncio.Future]
    callback: Optional[Callable[[str], Any]]


class _PipeWriter:
    """Writer síncrono sobre o stdout real (modo stdio)."""

    def __init__(self, buffer):
        self._buffer = buffer

    def write(self, data: bytes) -> None:
        self._buffer.write(data)
        self._buffer.flush()

    async def drain(self) -> None:
        return None

    def close(self) -> None:
        return None

    async def wait_closed(self) -> None:
        return None


async def _invoke(callback: Callable, *args: Any) -> Any:
    result = callback(*args)
    if asyncio.iscoroutine(result):
        result = await result
    return result


class AsyncYateClient:
    """
    Cliente extmodule com suporte a handlers e watchers.

    Uso:
        client = AsyncYateClient(host="127.0.0.1", port=5040)
        await client.connect()

        client.install(on_route, "call.route", 90)
        msg = await client.dispatch(YateMessage("engine.status"))

        await client.disconnect()
    """

    def __init__(
        self,
        host: Optional[str] = None,
        port: int = DEFAULT_PORT,
        channel: bool = False,
        role: Optional[str] = None,
        trackname: str = "",
        reconnect: bool = True,
        reconnect_delay: float = 2.0,
        max_reconnect_attempts: int = 5,
        connect_timeout: float = 5.0,
        dispatch_timeout: Optional[float] = 10.0,
        setlocal_timeout: Optional[float] = 5.0,
    ):
        self.host = host
        self.port = port
        self.role = role or ("channel" if channel else "global")
        self.trackname = trackname
        self.reconnect_enabled = reconnect and bool(host)
        self.reconnect_delay = reconnect_delay
        self.max_reconnect_attempts = max_reconnect_attempts
        self.connect_timeout = connect_timeout
        self.dispatch_timeout = dispatch_timeout or None
        self.setlocal_timeout = setlocal_timeout or None

        self._reader: Optional[asyncio.StreamReader] = None
        self._writer = None
        self._connected = False
        self._reconnecting = False
        self._closing = False

        # stdout real, independente de redirecionamentos de sys.stdout
        if not host:
            self._writer = _PipeWriter(sys.__stdout__.buffer)

        self._outbox: Deque[str] = deque()
        self._pending: Dict[str, asyncio.Future] = {}
        self._setlocal_requests: Dict[str, Deque[_SetLocalRequest]] = {}
        self._handlers: Dict[str, List[InstalledHandler]] = {}
        self._installed_priority: Dict[str, int] = {}
        self._watchers: Dict[str, List[Callable[[YateMessage], Any]]] = {}
        self._debug_listeners: List[Callable[..., Any]] = []
        self._tasks: set = set()

        self._counter = itertools.count(1)
        self._order = itertools.count()
        self._connect_lock: Optional[asyncio.Lock] = None
        self._connect_task: Optional[asyncio.Task] = None
        self._reader_task: Optional[asyncio.Task] = None
        self._console: Optional[Console] = None

        self._channel = None
        if channel:
            from .channel import YateChannel
            self._channel = YateChannel(self)

    # =========================================================================
    # Estado
    # =========================================================================

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def channel(self):
        return self._channel

    def next_id(self) -> str:
        return f"{os.getpid()}.{next(self._counter)}"

    def on_debug(self, listener: Callable[..., Any]) -> None:
        """Registra listener para mensagens de diagnóstico do cliente."""
        self._debug_listeners.append(listener)

    def _emit_debug(self, *args: Any) -> None:
        logger.debug(format_args(*args))
        for listener in list(self._debug_listeners):
            try:
                listener(*args)
            except Exception as e:
                logger.error(f"Debug listener error: {e}")

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    # =========================================================================
    # Conexão
    # =========================================================================

    def init(self) -> None:
        """
        Inicia a conexão.

        Dentro de um event loop a conexão é aberta em background; fora dele,
        a conexão é aberta no primeiro ensure_connected().
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, deferring Yate connection")
            return
        if self._connect_task is None or self._connect_task.done():
            self._connect_task = self._spawn(self._connect_with_retry())

    async def _connect_with_retry(self) -> bool:
        if await self.connect():
            return True
        if self.reconnect_enabled:
            return await self.reconnect()
        return False

    async def connect(self) -> bool:
        """
        Conecta ao Yate.

        Returns:
            True se conectou com sucesso
        """
        if self._connect_lock is None:
            self._connect_lock = asyncio.Lock()

        async with self._connect_lock:
            if self._connected:
                return True

            self._closing = False
            try:
                if self.host:
                    self._reader, self._writer = await asyncio.wait_for(
                        asyncio.open_connection(self.host, self.port),
                        timeout=self.connect_timeout,
                    )
                else:
                    self._reader = await self._open_stdin()
            except asyncio.TimeoutError:
                logger.error(
                    f"Yate connection timeout ({self.connect_timeout}s) to {self.host}:{self.port}"
                )
                return False
            except OSError as e:
                logger.error(f"Yate connection error: {e}")
                return False

            self._connected = True
            if self.host:
                self._write_now(protocol.format_connect(self.role))
                logger.info(f"Connected to Yate extmodule at {self.host}:{self.port}")
            else:
                logger.info("Attached to Yate extmodule over stdio")
            self._emit_debug("Connected to Yate", self.host or "stdio")

            self._reader_task = self._spawn(self._reader_loop())
            self._restore_registrations()
            self._flush_outbox()
            return True

    async def _open_stdin(self) -> asyncio.StreamReader:
        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader()
        await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
        return reader

    async def ensure_connected(self) -> None:
        if self._connected:
            return
        if self._connect_task is not None and not self._connect_task.done():
            await self._connect_task
        elif not await self.connect():
            raise YateConnectionError("Failed to connect to Yate")
        if not self._connected:
            raise YateConnectionError("Failed to connect to Yate")

    async def reconnect(self) -> bool:
        """
        Tenta reconectar ao Yate.

        Returns:
            True se reconectou com sucesso
        """
        if self._reconnecting:
            return False

        self._reconnecting = True
        try:
            for attempt in range(self.max_reconnect_attempts):
                logger.info(
                    f"Yate reconnect attempt {attempt + 1}/{self.max_reconnect_attempts}"
                )
                await asyncio.sleep(self.reconnect_delay)
                if await self.connect():
                    return True

            logger.error("Yate reconnect failed after max attempts")
            return False
        finally:
            self._reconnecting = False

    async def disconnect(self) -> None:
        """Desconecta do Yate."""
        self._closing = True
        self._connected = False

        if self._reader_task and self._reader_task is not asyncio.current_task():
            self._reader_task.cancel()
            try:
                await self._reader_task
            except asyncio.CancelledError:
                pass
        self._reader_task = None

        await self._close_connection()
        self._fail_pending(YateConnectionError("Disconnected"))
        logger.info("Disconnected from Yate")

    async def _close_connection(self) -> None:
        if self._writer is not None and self.host:
            try:
                self._writer.close()
                await self._writer.wait_closed()
            except Exception as e:
                logger.debug(f"Error closing Yate connection: {e}")
            self._writer = None
        self._reader = None

    def _fail_pending(self, error: Exception) -> None:
        for future in self._pending.values():
            if not future.done():
                future.set_exception(error)
        self._pending.clear()
        for requests in self._setlocal_requests.values():
            for request in requests:
                if request.future is not None and not request.future.done():
                    request.future.set_exception(error)
        self._setlocal_requests.clear()

    async def _handle_disconnect(self) -> None:
        self._connected = False
        self._emit_debug("Disconnected from Yate")
        self._fail_pending(YateConnectionError("Connection to Yate lost"))
        await self._close_connection()
        if self.reconnect_enabled and not self._closing:
            await self.reconnect()

    # =========================================================================
    # Envio
    # =========================================================================

    def _write_now(self, line: str) -> None:
        self._writer.write((line + "\n").encode())

    def _write_line(self, line: str) -> None:
        """Escreve uma linha ou guarda no buffer até a conexão existir."""
        if self._writer is not None and (self._connected or not self.host):
            self._write_now(line)
        else:
            self._outbox.append(line)

    def _flush_outbox(self) -> None:
        while self._outbox and self._writer is not None:
            self._write_now(self._outbox.popleft())

    def _restore_registrations(self) -> None:
        """Reenvia install/watch/trackparam após (re)conexão."""
        self._installed_priority.clear()
        for name, handlers in self._handlers.items():
            priority = min(h.priority for h in handlers)
            self._installed_priority[name] = priority
            self._write_now(protocol.format_install(name, priority))
        for name in self._watchers:
            self._write_now(protocol.format_watch(name))
        if self.trackname:
            # resposta chega antes de qualquer setlocal pendente no outbox
            self._setlocal_requests.setdefault("trackparam", deque()).appendleft(
                _SetLocalRequest(None, None)
            )
            self._write_now(protocol.format_setlocal("trackparam", self.trackname))

    # =========================================================================
    # Mensagens
    # =========================================================================

    def _prepare(self, message: YateMessage) -> None:
        message.id = self.next_id()
        message.handled = None

    def enqueue(self, message: YateMessage) -> None:
        """Envia mensagem sem aguardar resposta."""
        self._prepare(message)
        self._write_line(protocol.format_message(message))

    async def dispatch(self, message: YateMessage) -> YateMessage:
        """
        Envia mensagem e aguarda o resultado do processamento.

        Returns:
            A própria mensagem com handled/retvalue/params atualizados.

        Raises:
            YateConnectionError: conexão indisponível ou perdida
            YateTimeoutError: sem resposta dentro de dispatch_timeout
        """
        await self.ensure_connected()
        self._prepare(message)
        future = asyncio.get_running_loop().create_future()
        self._pending[message.id] = future
        self._write_line(protocol.format_message(message))
        try:
            if self.dispatch_timeout:
                answer = await asyncio.wait_for(future, timeout=self.dispatch_timeout)
            else:
                answer = await future
        except asyncio.TimeoutError:
            raise YateTimeoutError(
                f"No answer for {message.name} ({message.id}) after {self.dispatch_timeout}s"
            ) from None
        finally:
            self._pending.pop(message.id, None)

        processed, retvalue, params = answer
        message.handled = processed
        message.retvalue = retvalue
        message.params = params
        return message

    def install(
        self,
        handler: Callable[[YateMessage], Any],
        name: str,
        priority: int = DEFAULT_PRIORITY,
        filter_name: Optional[str] = None,
        filter_value: Optional[str] = None,
    ) -> bool:
        """
        Instala handler para mensagens `name`.

        Handlers locais do mesmo nome rodam por prioridade (menor primeiro),
        e na ordem de instalação em caso de empate. O filtro é aplicado
        localmente.
        """
        entry = InstalledHandler(
            name=name,
            callback=handler,
            priority=int(priority),
            filter_name=filter_name,
            filter_value=filter_value,
            order=next(self._order),
        )
        handlers = self._handlers.setdefault(name, [])
        handlers.append(entry)
        handlers.sort(key=lambda h: (h.priority, h.order))

        installed = self._installed_priority.get(name)
        if self._connected and (installed is None or entry.priority < installed):
            if installed is not None:
                self._write_now(protocol.format_uninstall(name))
            self._installed_priority[name] = entry.priority
            self._write_now(protocol.format_install(name, entry.priority))
        return True

    def uninstall(self, name: str) -> bool:
        """Remove todos os handlers de `name`."""
        removed = self._handlers.pop(name, None)
        if removed is None:
            return False
        if self._installed_priority.pop(name, None) is not None and self._connected:
            self._write_now(protocol.format_uninstall(name))
        return True

    def watch(self, handler: Callable[[YateMessage], Any], name: str) -> bool:
        """Observa mensagens `name` após o processamento."""
        watchers = self._watchers.setdefault(name, [])
        watchers.append(handler)
        if len(watchers) == 1 and self._connected:
            self._write_now(protocol.format_watch(name))
        return True

    def unwatch(self, name: str) -> bool:
        if self._watchers.pop(name, None) is None:
            return False
        if self._connected:
            self._write_now(protocol.format_unwatch(name))
        return True

    def request_setlocal(
        self,
        name: str,
        value: Any = "",
        callback: Optional[Callable[[str], Any]] = None,
    ) -> Optional[asyncio.Future]:
        """
        Envia setlocal sem aguardar. `callback` é chamado com o valor
        confirmado quando o Yate responde com sucesso.

        Returns:
            Future da resposta quando há event loop rodando, senão None.
        """
        try:
            future = asyncio.get_running_loop().create_future()
        except RuntimeError:
            future = None
        self._setlocal_requests.setdefault(name, deque()).append(_SetLocalRequest(future, callback))
        self._write_line(protocol.format_setlocal(name, value))
        return future

    async def setlocal(
        self,
        name: str,
        value: Any = "",
        callback: Optional[Callable[[str], Any]] = None,
    ) -> str:
        """
        Lê/define parâmetro local do módulo (ex: "trackparam", "timeout",
        "engine.version").

        Returns:
            Valor informado pelo Yate
        """
        await self.ensure_connected()
        future = self.request_setlocal(name, value, callback)
        try:
            if self.setlocal_timeout:
                return await asyncio.wait_for(future, timeout=self.setlocal_timeout)
            return await future
        except asyncio.TimeoutError:
            raise YateTimeoutError(f"No answer for setlocal {name}") from None

    def output(self, *args: Any) -> None:
        """Envia texto para o log do Yate."""
        for line in protocol.format_output(format_args(*args)):
            self._write_line(line)

    def get_console(self) -> Console:
        """Console cuja saída vai para o log do Yate."""
        if self._console is None:
            self._console = Console(OutputStream(self))
        return self._console

    # =========================================================================
    # Leitura
    # =========================================================================

    async def _reader_loop(self) -> None:
        """Loop de leitura de linhas em background."""
        while self._connected:
            try:
                raw = await self._reader.readline()
                if not raw:
                    logger.warning("Yate closed the connection")
                    await self._handle_disconnect()
                    break
                line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
                if line:
                    await self._handle_line(line)
            except asyncio.CancelledError:
                break
            except Exception as e:
                if self._connected:
                    logger.error(f"Yate reader error: {e}")
                    await self._handle_disconnect()
                break

    async def _handle_line(self, line: str) -> None:
        keyword, fields = protocol.split_line(line)
        try:
            if keyword == protocol.MESSAGE_REQUEST:
                message = protocol.parse_incoming_message(fields)
                self._spawn(self._handle_incoming(message))
            elif keyword == protocol.MESSAGE_ANSWER:
                await self._handle_answer(fields)
            elif keyword == protocol.SETLOCAL_ANSWER:
                self._handle_setlocal_answer(fields)
            elif keyword in (protocol.INSTALL_ANSWER, protocol.UNINSTALL_ANSWER):
                self._handle_registration_answer(keyword, fields[1:])
            elif keyword in (protocol.WATCH_ANSWER, protocol.UNWATCH_ANSWER):
                self._handle_registration_answer(keyword, fields)
            elif keyword == protocol.ERROR_PREFIX:
                logger.error(f"Yate rejected command: {fields[0]}")
                self._emit_debug("Error in:", fields[0])
            else:
                logger.debug(f"Ignoring unknown line from Yate: {line[:100]}")
        except protocol.ProtocolError as e:
            logger.warning(f"Malformed line from Yate: {e}")

    async def _handle_incoming(self, message: YateMessage) -> None:
        """Executa handlers locais e responde ao Yate."""
        processed = False
        handlers = list(self._handlers.get(message.name, ()))

        if not handlers and self._channel is not None:
            processed = await self._channel.handle_message(message)
        for handler in handlers:
            if not handler.matches(message):
                continue
            try:
                if await _invoke(handler.callback, message):
                    processed = True
                    break
            except Exception as e:
                logger.error(f"Handler error for {message.name}: {e}")

        if self._writer is not None:
            self._write_now(protocol.format_answer(message, processed))

    async def _handle_answer(self, fields: List[str]) -> None:
        msg_id, processed, name, retvalue, params = protocol.parse_answer(fields)

        if not msg_id:
            watched = YateMessage(name=name, params=params, retvalue=retvalue, handled=processed)
            for watcher in list(self._watchers.get(name, ())):
                self._spawn(self._run_watcher(watcher, watched))
            return

        future = self._pending.get(msg_id)
        if future is not None and not future.done():
            future.set_result((processed, retvalue, params))

    async def _run_watcher(self, watcher: Callable[[YateMessage], Any], message: YateMessage) -> None:
        # fora do reader loop: o watcher pode aguardar respostas do Yate
        try:
            await _invoke(watcher, message)
        except Exception as e:
            logger.error(f"Watcher error for {message.name}: {e}")

    def _handle_setlocal_answer(self, fields: List[str]) -> None:
        if len(fields) < 3:
            raise protocol.ProtocolError(f"Incomplete setlocal answer: {fields!r}")
        name = protocol.unescape(fields[0])
        value = protocol.unescape(fields[1])
        success = protocol.to_bool(fields[2])

        requests = self._setlocal_requests.get(name)
        request = requests.popleft() if requests else None
        if requests is not None and not requests:
            self._setlocal_requests.pop(name, None)

        if not success:
            logger.warning(f"Yate refused setlocal {name}={value}")
        elif request is not None and request.callback is not None:
            try:
                request.callback(value)
            except Exception as e:
                logger.error(f"setlocal callback error for {name}: {e}")

        if request is not None and request.future is not None and not request.future.done():
            request.future.set_result(value)

    def _handle_registration_answer(self, keyword: str, fields: List[str]) -> None:
        if len(fields) < 2:
            raise protocol.ProtocolError(f"Incomplete answer for {keyword}: {fields!r}")
        name = protocol.unescape(fields[0])
        if protocol.to_bool(fields[1]):
            logger.debug(f"{keyword[3:]} {name} confirmed")
        else:
            logger.warning(f"Yate refused {keyword[3:]} {name}")
            self._emit_debug(f"Yate refused {keyword[3:]}", name)


def create_client_from_settings(settings) -> AsyncYateClient:
    """
    Cria cliente com base em YateSettings.

    Args:
        settings: YateSettings

    Returns:
        Novo AsyncYateClient configurado
    """
    return AsyncYateClient(
        host=settings.YATE_HOST or None,
        port=settings.YATE_PORT,
        channel=settings.YATE_CHANNEL,
        role=settings.YATE_ROLE,
        trackname=settings.YATE_TRACKNAME,
        reconnect=settings.YATE_RECONNECT,
        reconnect_delay=settings.YATE_RECONNECT_DELAY,
        max_reconnect_attempts=settings.YATE_MAX_RECONNECT_ATTEMPTS,
        connect_timeout=settings.YATE_CONNECT_TIMEOUT,
        dispatch_timeout=settings.YATE_DISPATCH_TIMEOUT,
        setlocal_timeout=settings.YATE_SETLOCAL_TIMEOUT,
    )
