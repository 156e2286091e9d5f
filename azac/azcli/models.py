"""
Remote Store Models.

Pydantic models for the JSON documents returned by ``az appconfig`` and
``az keyvault``.

Author: azac contributors
Date: 2026-10-19
"""

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ConfigEntry(BaseModel):
    """A key-value entry held by App Configuration.

    Attributes:
        key: Full (namespaced) key
        label: Label the entry is stored under
        value: Raw value, possibly encoding a Key Vault reference
        content_type: Content type flag
        etag: Entity tag of the stored revision
        last_modified: Last modification timestamp as reported by the service
        locked: Whether the entry is read-only
        tags: User-defined tags
    """

    key: str
    label: Optional[str] = None
    value: Optional[str] = None
    content_type: Optional[str] = Field(default=None, alias="contentType")
    etag: Optional[str] = None
    last_modified: Optional[str] = Field(default=None, alias="lastModified")
    locked: bool = False
    tags: Optional[Dict[str, str]] = None

    model_config = ConfigDict(populate_by_name=True)


class SecretBundle(BaseModel):
    """Secret value with its full identifier.

    Attributes:
        id: Full secret identifier URL, including version
        value: Secret value
        content_type: MIME type hint
    """

    id: str
    value: str = ""
    content_type: Optional[str] = Field(default=None, alias="contentType")

    model_config = ConfigDict(populate_by_name=True)


class StoreInfo(BaseModel):
    """App Configuration store as listed by ``az appconfig show``."""

    name: str
    endpoint: str = ""


# Content type App Configuration assigns to Key Vault references
KEYVAULT_REFERENCE_CONTENT_TYPE = "application/vnd.microsoft.appconfig.keyvaultref+json;charset=utf-8"
