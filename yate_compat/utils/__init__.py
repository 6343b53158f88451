from .codec import atob, btoa
from .templates import replace_params
from .timers import clear_interval, clear_timeout, set_interval, set_timeout

__all__ = [
    "atob",
    "btoa",
    "replace_params",
    "set_timeout",
    "set_interval",
    "clear_timeout",
    "clear_interval",
]
