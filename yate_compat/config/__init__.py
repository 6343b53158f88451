from .settings import YateSettings, get_yate_settings, settings_from_options

__all__ = ["YateSettings", "get_yate_settings", "settings_from_options"]
