"""Tabela de severidades de debug do Yate (0 = mais crítica)."""

from enum import IntEnum
from numbers import Real
from typing import Any, Dict, Optional


class Severity(IntEnum):
    FAIL = 0
    TEST = 1
    CRIT = 2
    CONF = 3
    STUB = 4
    WARN = 5
    MILD = 6
    NOTE = 7
    CALL = 8
    INFO = 9
    ALL = 10


MIN_LEVEL = Severity.FAIL
MAX_LEVEL = Severity.ALL

# Nomes legados das constantes (Engine.DebugFail, ...)
DEBUG_CONSTANTS: Dict[str, int] = {
    "DebugFail": Severity.FAIL,
    "DebugTest": Severity.TEST,
    "DebugCrit": Severity.CRIT,
    "DebugGoOn": Severity.CRIT,
    "DebugConf": Severity.CONF,
    "DebugStub": Severity.STUB,
    "DebugWarn": Severity.WARN,
    "DebugMild": Severity.MILD,
    "DebugNote": Severity.NOTE,
    "DebugCall": Severity.CALL,
    "DebugInfo": Severity.INFO,
    "DebugAll": Severity.ALL,
}


def severity_name(level: Any) -> Optional[str]:
    """Nome curto da severidade, ou None para valores fora de 0..10, fracionários ou bool."""
    if isinstance(level, bool) or not isinstance(level, Real):
        return None
    if level not in range(MIN_LEVEL, MAX_LEVEL + 1):
        return None
    return Severity(int(level)).name


def severity_level(name: str) -> int:
    """Nível numérico a partir do nome curto ("CONF") ou legado ("DebugConf")."""
    if name in DEBUG_CONSTANTS:
        return int(DEBUG_CONSTANTS[name])
    return int(Severity[name])
