from .system_config import SystemConfig

__all__ = [
    "SystemConfig",
]
