"""Base64 no estilo atob/btoa (alfabeto padrão, com padding)."""

import base64
from typing import Union


def atob(encoded: Union[str, bytes]) -> bytes:
    """Decodifica base64 para bytes. Aceita entrada sem padding."""
    padding = "=" * (-len(encoded) % 4)
    if isinstance(encoded, str):
        return base64.b64decode(encoded + padding)
    return base64.b64decode(bytes(encoded) + padding.encode("ascii"))


def btoa(data: Union[str, bytes, bytearray, memoryview]) -> str:
    """Codifica texto (UTF-8) ou bytes em base64."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return base64.b64encode(bytes(data)).decode("ascii")
