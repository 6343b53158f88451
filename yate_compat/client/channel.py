"""
YateChannel - objeto de canal para scripts executados em modo canal.

O Yate inicia o script (extmodule) e entrega um call.execute. O canal
responde com o próprio targetid e passa a controlar a chamada via
chan.masquerade.

Referências:
- http://docs.yate.ro/wiki/Javascript_IVR_example
"""

import asyncio
import logging
import os
from typing import Any, Awaitable, Callable, Dict, Optional

from .protocol import YateMessage

logger = logging.getLogger(__name__)


class YateChannel:
    """Canal controlado pelo script (apenas modo canal)."""

    def __init__(self, client):
        self._client = client
        self.id = f"python/{os.getpid()}"
        self.peerid: Optional[str] = None
        self.ready = False
        self._main: Optional[Callable[[YateMessage], Awaitable[Any]]] = None
        self._autoring = False
        self._answered: Optional[asyncio.Event] = None

    def init(self, main: Callable[[YateMessage], Awaitable[Any]], autoring: bool = False) -> None:
        """Define a rotina principal, executada ao receber o call.execute."""
        self._main = main
        self._autoring = autoring
        self._client.watch(self._on_answered, "call.answered")

    async def handle_message(self, message: YateMessage) -> bool:
        """Trata o call.execute inicial. Outras mensagens não são processadas."""
        if message.name != "call.execute" or self.ready:
            return False

        self.peerid = message.params.get("id")
        message.params["targetid"] = self.id
        self.ready = True
        logger.info(f"Channel {self.id} attached to {self.peerid}")

        # roda depois que o cliente responder o call.execute
        self._client._spawn(self._start(message))
        return True

    async def _start(self, message: YateMessage) -> None:
        if self._autoring:
            self._client.enqueue(self._masquerade("call.ringing"))
        if self._main is None:
            return
        try:
            result = self._main(message)
            if asyncio.iscoroutine(result):
                await result
        except Exception as e:
            logger.error(f"Channel main error: {e}")

    def _masquerade(self, name: str, params: Optional[Dict[str, Any]] = None) -> YateMessage:
        message = YateMessage(
            "chan.masquerade",
            params={"message": name, "id": self.peerid, "targetid": self.id},
        )
        message.params.update(params or {})
        return message

    def _on_answered(self, message: YateMessage) -> None:
        if self.id in (message.params.get("targetid"), message.params.get("peerid")) or (
            self.peerid and message.params.get("id") == self.peerid
        ):
            self._answered_event().set()

    def _answered_event(self) -> asyncio.Event:
        if self._answered is None:
            self._answered = asyncio.Event()
        return self._answered

    async def call_to(self, target: str, params: Optional[Dict[str, Any]] = None) -> bool:
        """Executa `target` na chamada (ex: "wave/play/./share/sounds/welcome.au")."""
        message = self._masquerade("call.execute", dict(params or {}, callto=target))
        result = await self._client.dispatch(message)
        return bool(result.handled)

    async def call_just(self, target: str, params: Optional[Dict[str, Any]] = None) -> bool:
        """Encaminha a chamada para `target` e libera o canal do script."""
        handled = await self.call_to(target, params)
        self.ready = False
        await self._client.disconnect()
        return handled

    async def answered(self, timeout: Optional[float] = None) -> bool:
        """Aguarda o atendimento da chamada."""
        event = self._answered_event()
        if timeout is None:
            await event.wait()
            return True
        try:
            await asyncio.wait_for(event.wait(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            return False

    async def hangup(self, reason: Optional[str] = None) -> None:
        params = {"reason": reason} if reason else None
        self._client.enqueue(self._masquerade("call.drop", params))

    # API legada (javascript.yate)
    callTo = call_to
    callJust = call_just
