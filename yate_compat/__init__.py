"""
yate-compat - API javascript.yate (Engine, Message, Channel) sobre um cliente
asyncio do protocolo extmodule do Yate.

Uso:
    from yate_compat import get_engine

    async def main():
        Engine, Message, Channel = get_engine({"host": "127.0.0.1"})
        Engine.output("Hello World!")
        status = await Message("engine.status").dispatch()

Referências:
- https://docs.yate.ro/wiki/Javascript_Reference
"""

import sys
from typing import Any, Dict, NamedTuple, Optional

import structlog

from .client import AsyncYateClient, Console, DumpStream, create_client_from_settings
from .compat import CaptureBridge, DebugState, Engine, create_message_class
from .config import get_yate_settings, settings_from_options
from .utils.logging import setup_logging

__version__ = "0.1.0"

logger = structlog.get_logger()


class CompatNamespace(NamedTuple):
    """Os três namespaces legados."""
    Engine: Engine
    Message: type
    Channel: Any


def get_engine(options: Optional[Dict[str, Any]] = None, **kwargs: Any) -> CompatNamespace:
    """
    Cria Engine, Message e Channel ligados a um novo cliente.

    Cada chamada cria um cliente independente (factory, não singleton).

    Args:
        options: {"host", "port", "channel", ...} (ver config.settings.OPTION_FIELDS)
        **kwargs: mesmas opções como keywords

    Returns:
        CompatNamespace(Engine, Message, Channel); Channel é None fora do modo canal
    """
    merged = dict(options or {}, **kwargs)
    settings = settings_from_options(merged) if merged else get_yate_settings()

    if settings.YATE_CONFIGURE_LOGGING:
        setup_logging(settings.DEBUG)

    client: AsyncYateClient = create_client_from_settings(settings)
    capture = CaptureBridge(DumpStream())

    if client.host:
        console = Console(sys.stdout)
    else:
        # stdout é o canal do protocolo: print() vai para o log do Yate
        console = client.get_console()
        if settings.YATE_REDIRECT_STDOUT:
            sys.stdout = console.stream
    client.on_debug(console.log)
    client.init()

    engine = Engine(client, capture, DebugState(name=client.trackname or sys.argv[0]))
    message_class = create_message_class(client)

    logger.debug(
        "Yate compat engine created",
        host=client.host or "stdio",
        port=client.port,
        channel=client.channel is not None,
    )
    return CompatNamespace(Engine=engine, Message=message_class, Channel=client.channel)


# Nome legado
getEngine = get_engine

__all__ = ["get_engine", "getEngine", "CompatNamespace", "__version__"]
