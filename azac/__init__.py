"""
azac: Azure App Configuration context and key tooling

Manages App Configuration keys per application, resolves Key Vault
references, and imports/exports keys in bulk.
"""

__version__ = "0.1.0"

from .core.context import Context, get_active
from .services.keys import KeyService

__all__ = ["Context", "KeyService", "get_active", "__version__"]
