"""azac core: configuration, logging, active context and key namespacing."""

from .config_manager import ConfigManager, AzacConfig
from .context import Context, ContextStore, get_active, load_store, save_store
from .logging_config import setup_logging, get_logger

__all__ = [
    "ConfigManager",
    "AzacConfig",
    "Context",
    "ContextStore",
    "get_active",
    "load_store",
    "save_store",
    "setup_logging",
    "get_logger",
]
