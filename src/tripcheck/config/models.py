"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, tripcheck.toml only contains
overrides. A fresh checkout needs no config file at all.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from tripcheck.domain.types import ON_DEMAND_VEHICLES

# --- tripcheck.toml sections ---


class StoreConfig(BaseModel):
    """[store] section."""

    model_config = {"frozen": True}

    backend: Literal["sqlite", "memory"] = "sqlite"
    path: str = ".tripcheck/state.db"


class ValidationConfig(BaseModel):
    """[validation] section."""

    model_config = {"frozen": True}

    domain: str = "ONDC:TRV10"
    schema_domain: str = "TRV"
    default_version: str | None = None
    extensions_enabled: bool = True
    vehicle_categories: tuple[str, ...] = ON_DEMAND_VEHICLES


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True


class TripcheckConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    store: StoreConfig = Field(default_factory=StoreConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
