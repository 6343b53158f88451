"""
Estado de debug/alarm de uma instância de Engine.

Um objeto por Engine (não global): facades montadas no mesmo processo não
compartilham estado.
"""

from dataclasses import dataclass
from numbers import Real
from typing import Any

from .severity import MAX_LEVEL, MIN_LEVEL, Severity


def is_level(value: Any) -> bool:
    """Número real que não seja bool."""
    return isinstance(value, Real) and not isinstance(value, bool)


@dataclass
class DebugState:
    """
    name: tag usada em <name:SEVERITY>
    level: limiar de severidade, sempre em 0..10
    enabled: liga/desliga Engine.debug (alarm ignora)
    """
    name: str = ""
    level: int = Severity.CALL
    enabled: bool = True

    def get_name(self) -> str:
        return self.name

    def set_name(self, name: str) -> None:
        self.name = name

    def get_level(self) -> int:
        return self.level

    def set_level(self, level: Any) -> None:
        if not is_level(level):
            return
        self.level = int(min(max(level, MIN_LEVEL), MAX_LEVEL))

    def get_enabled(self) -> bool:
        return self.enabled

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = enabled

    def debug_at(self, level: Any) -> bool:
        return is_level(level) and level <= self.level

    def allows_debug(self, level: Any) -> bool:
        """Engine.debug só emite se habilitado e 0 <= level <= limiar."""
        return is_level(level) and level >= 0 and self.enabled and level <= self.level
