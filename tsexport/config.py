# tsexport/config.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Mapping, Optional
from urllib.parse import unquote, urlparse

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .capacity import SIZE_LIMIT
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_NAME = "tsexport"
DEFAULT_CHUNK_SIZE = 65536
DEFAULT_SIZE_LIMIT = SIZE_LIMIT


class WriterSettings(BaseModel):
    """
    Parsed writer configuration.

    - system_name: value of the Metadata ``system_name`` property
    - property_mode: ``json`` or ``flat`` (see tsexport.properties)
    - chunk_size: HDF5 chunk length of every channel dataset
    - compression: HDF5 filter name or None
    - size_limit: capacity ceiling in bytes per channel
    """
    system_name: str = Field(DEFAULT_SYSTEM_NAME, min_length=1)
    property_mode: Literal["json", "flat"] = "json"
    chunk_size: int = Field(DEFAULT_CHUNK_SIZE, gt=0, description="Chunk length in samples")
    compression: Optional[Literal["gzip", "lzf"]] = None
    size_limit: float = Field(DEFAULT_SIZE_LIMIT, gt=0, description="Capacity ceiling in bytes")

    model_config = ConfigDict(
        extra='ignore',            # Host configuration may carry unrelated keys
        str_strip_whitespace=True,
        frozen=True,               # Immutable after construction
    )

    @field_validator("compression", mode="before")
    @classmethod
    def normalize_compression(cls, v):
        """Accept any case; empty means no compression."""
        if v is None:
            return None
        return str(v).strip().lower() or None

    @classmethod
    def from_configuration(cls, configuration: Mapping[str, Any] | None) -> "WriterSettings":
        if not configuration:
            return cls()

        for key in configuration:
            if key not in cls.model_fields:
                logger.debug("Ignoring unknown configuration key '%s'", key)

        try:
            return cls.model_validate(dict(configuration))
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid writer configuration: {exc}") from exc


def locator_to_path(resource_locator: Any) -> Path:
    """Accept a directory path or a ``file://`` URI."""
    if isinstance(resource_locator, (str, os.PathLike)):
        text = os.fspath(resource_locator)
        if text.startswith("file:"):
            return Path(unquote(urlparse(text).path))
        return Path(text)
    raise ConfigurationError(
        f"resource_locator must be a path or file URI, got {type(resource_locator).__name__}"
    )


@dataclass
class WriterContext:
    resource_locator: Any
    configuration: dict[str, Any] = field(default_factory=dict)
    logger: logging.Logger | None = None

    def __post_init__(self):
        if self.configuration is None:
            self.configuration = {}
        self.target_directory = locator_to_path(self.resource_locator)
        self.settings = WriterSettings.from_configuration(self.configuration)
