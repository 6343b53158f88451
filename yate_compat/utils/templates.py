"""Substituição de parâmetros ${nome} em strings."""

import re
from typing import Any, Mapping, Optional

# Delimitadores mantidos no split: literais e placeholders se alternam
PLACEHOLDER_RE = re.compile(r"(\$\{[^${}]+\})")
KEY_RE = re.compile(r"\$\{([^${}]+)\}")


def replace_params(template: str, params: Optional[Mapping[str, Any]]) -> str:
    """
    Substitui cada ${chave} pelo valor em `params`.

    Placeholders sem valor correspondente são removidos (não ficam literais).
    """
    params = params or {}
    result = []
    for segment in PLACEHOLDER_RE.split(template):
        match = KEY_RE.fullmatch(segment)
        if match is None:
            result.append(segment)
        elif match.group(1) in params:
            result.append(str(params[match.group(1)]))
    return "".join(result)
