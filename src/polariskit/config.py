"""
Connection and behaviour settings for polariskit.

Settings can be built directly, read from environment variables
(``POLARIS_BASE_URL``, ``POLARIS_REALM``, ...) or loaded from a YAML or JSON
file:

    base_url: https://polaris.example.com
    realm: default-realm
    access_token: eyJhbGciOi...
    max_concurrency: 8
    cache_ttl_seconds: 300
    principal_sample_size: 10
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

MANAGEMENT_API_PREFIX = "/api/management/v1"
CATALOG_API_PREFIX = "/api/catalog/v1"

DEFAULT_REALM_HEADER = "Polaris-Realm"
DEFAULT_MAX_CONCURRENCY = 8
DEFAULT_CACHE_TTL_SECONDS = 300.0
DEFAULT_PRINCIPAL_SAMPLE_SIZE = 10

# Environment values meaning "no value" for optional settings
_NULL_ENV_VALUES = {"", "none", "null"}
_OPTIONAL_FIELDS = {"realm", "access_token", "principal_sample_size"}


class ConsoleSettings(BaseModel):
    """
    Settings shared by the REST client, the tree resolver and the aggregator.

    ``principal_sample_size`` caps how many principals are inspected when
    counting principals without roles; None inspects every principal.
    """

    model_config = ConfigDict(extra="forbid", validate_default=True)

    base_url: str = Field("http://localhost:8181", description="Service root URL")
    realm: Optional[str] = Field(None, description="Realm sent in the realm header")
    realm_header: str = Field(DEFAULT_REALM_HEADER, description="Header carrying the realm")
    access_token: Optional[str] = Field(None, description="Bearer token", repr=False)
    timeout_seconds: float = Field(30.0, gt=0)
    max_concurrency: int = Field(DEFAULT_MAX_CONCURRENCY, ge=1)
    cache_ttl_seconds: float = Field(DEFAULT_CACHE_TTL_SECONDS, ge=0)
    principal_sample_size: Optional[int] = Field(DEFAULT_PRINCIPAL_SAMPLE_SIZE, ge=1)
    verify_ssl: bool = True

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def management_url(self) -> str:
        return f"{self.base_url}{MANAGEMENT_API_PREFIX}"

    @property
    def catalog_url(self) -> str:
        return f"{self.base_url}{CATALOG_API_PREFIX}"

    @classmethod
    def from_env(
        cls,
        prefix: str = "POLARIS_",
        environ: Optional[Mapping[str, str]] = None,
    ) -> "ConsoleSettings":
        """
        Build settings from environment variables.

        Each field maps to ``<prefix><FIELD_NAME>``; unset variables keep the
        field default. For optional fields, an empty value or ``none`` means None.

        Args:
            prefix: Variable name prefix
            environ: Mapping to read instead of ``os.environ``

        Returns:
            Validated settings
        """
        env = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        for field_name in cls.model_fields:
            key = f"{prefix}{field_name.upper()}"
            if key not in env:
                continue
            raw = env[key]
            if field_name in _OPTIONAL_FIELDS and raw.strip().lower() in _NULL_ENV_VALUES:
                values[field_name] = None
                continue
            values[field_name] = raw
        logger.debug(f"Loaded settings from environment: {sorted(values)}")
        return cls.model_validate(values)


def load_settings(path: str | Path) -> ConsoleSettings:
    """
    Load settings from a YAML or JSON file.

    Args:
        path: Path to a ``.yml``, ``.yaml`` or ``.json`` file

    Returns:
        Validated settings

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If YAML parsing fails
        json.JSONDecodeError: If JSON parsing fails
        ValidationError: If schema validation fails
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")

    with open(path, "r") as f:
        if path.suffix.lower() == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)

    settings = ConsoleSettings.model_validate(data or {})
    logger.info(f"Loaded settings for {settings.base_url} from {path}")
    return settings
