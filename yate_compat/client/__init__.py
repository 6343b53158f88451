# Cliente extmodule do Yate
#
# Components:
# - protocol.py: codificação/parsing das linhas extmodule
# - client.py: AsyncYateClient (TCP ou stdio)
# - console.py: Console, OutputStream e DumpStream
# - channel.py: YateChannel (modo canal)
#
# Referências:
# - https://docs.yate.ro/wiki/External_Module

from .client import (
    AsyncYateClient,
    YateError,
    YateConnectionError,
    YateTimeoutError,
    create_client_from_settings,
)
from .protocol import YateMessage, ProtocolError
from .console import Console, DumpStream, OutputStream
from .channel import YateChannel

__all__ = [
    # Client
    "AsyncYateClient",
    "create_client_from_settings",
    # Errors
    "YateError",
    "YateConnectionError",
    "YateTimeoutError",
    "ProtocolError",
    # Protocol
    "YateMessage",
    # Console
    "Console",
    "DumpStream",
    "OutputStream",
    # Channel mode
    "YateChannel",
]
