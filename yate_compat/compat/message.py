"""
Message - adaptador da API javascript.yate sobre o AsyncYateClient.

Referências:
- https://docs.yate.ro/wiki/Javascript_Message
"""

import asyncio
from typing import Any, Callable, Optional, Type

import structlog

from ..client.protocol import YateMessage

logger = structlog.get_logger()


def create_message_class(client) -> Type[YateMessage]:
    """
    Cria a classe Message ligada a um cliente.

    Args:
        client: AsyncYateClient usado para envio e registro de handlers

    Returns:
        Subclasse de YateMessage com enqueue/dispatch e os métodos estáticos
        legados (install, uninstall, watch, unwatch, trackName)
    """

    class Message(YateMessage):
        """
        Mensagem legada.

        Uso:
            m = Message("engine.status")
            result = await m.dispatch()
            if result.handled:
                Engine.output(result.retvalue)
        """

        def enqueue(self) -> None:
            client.enqueue(self)

        async def dispatch(self) -> "Message":
            return await client.dispatch(self)

        @staticmethod
        def install(handler: Callable[[YateMessage], Any], name: str, *args: Any, **kwargs: Any) -> bool:
            return client.install(handler, name, *args, **kwargs)

        @staticmethod
        def uninstall(name: str) -> bool:
            return client.uninstall(name)

        @staticmethod
        def watch(handler: Callable[[YateMessage], Any], name: str) -> bool:
            return client.watch(handler, name)

        @staticmethod
        def unwatch(name: str) -> bool:
            return client.unwatch(name)

        @staticmethod
        def trackName(name: str) -> Optional[asyncio.Future]:
            def apply(_value: str) -> None:
                client.trackname = name
                logger.debug("Track name updated", trackname=name)

            return client.request_setlocal("trackparam", name, callback=apply)

    return Message
