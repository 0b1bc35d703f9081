from .settings import ResourcelibSettings, load_settings

__all__ = ["ResourcelibSettings", "load_settings"]
