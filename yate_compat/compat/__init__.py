# Camada de compatibilidade javascript.yate
#
# Components:
# - severity.py: tabela de severidades (FAIL..ALL)
# - debug.py: estado de debug/alarm por Engine
# - capture.py: CaptureBridge (dump_r/dump_t)
# - message.py: classe Message ligada ao cliente
# - engine.py: namespace Engine

from .capture import CaptureBridge
from .debug import DebugState
from .engine import AlarmInvocation, Engine, parse_alarm
from .message import create_message_class
from .severity import DEBUG_CONSTANTS, Severity, severity_level, severity_name

__all__ = [
    "CaptureBridge",
    "DebugState",
    "Engine",
    "AlarmInvocation",
    "parse_alarm",
    "create_message_class",
    "Severity",
    "DEBUG_CONSTANTS",
    "severity_name",
    "severity_level",
]
