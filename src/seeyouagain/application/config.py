"""
Parameter Store.

Parameters are an immutable, validated value. Updates never mutate a live
object: they build and validate a new snapshot and swap it in whole.

Overrides can come from:
1. Defaults in Parameters
2. ~/.config/seeyouagain/config.toml (if exists)
3. Environment variables (SEEYOUAGAIN_*)
4. Explicit overrides passed by the caller
"""

import logging
import math
import threading
from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    ValidationError,
    field_validator,
)
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from seeyouagain.application.algorithm.retrievability import calculate_interval_modifier
from seeyouagain.domain.constants import (
    CLAMP_PARAMETERS,
    DEFAULT_ENABLE_FUZZ,
    DEFAULT_ENABLE_SHORT_TERM,
    DEFAULT_MAXIMUM_INTERVAL,
    DEFAULT_REQUEST_RETENTION,
    DEFAULT_W,
    LEGACY_WEIGHT_COUNT,
    WEIGHT_COUNT,
)
from seeyouagain.domain.errors import ConfigurationError

logger = logging.getLogger(__name__)


def _config_paths() -> list[Path]:
    return [
        Path.home() / ".config/seeyouagain/config.toml",
        Path.home() / ".seeyouagain.toml",
    ]


def migrate_legacy_weights(w: list[float] | tuple[float, ...]) -> list[float]:
    """
    Convert a 17-weight FSRS-4.5 vector to the 19-weight layout.

    The initial-difficulty and difficulty-delta weights are re-expressed for
    the exponential initial difficulty, and the two short-term weights are
    appended as zero (no short-term effect).
    """
    migrated = [float(x) for x in w]
    migrated[4] = round(migrated[5] * 2 + migrated[4], 8)
    migrated[5] = round(math.log(migrated[5] * 3 + 1) / 3, 8)
    migrated[6] = round(migrated[6] + 0.5, 8)
    return migrated + [0.0, 0.0]


def _describe(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "parameters"
        parts.append(f"{loc}: {err['msg']}")
    return "Invalid scheduler parameters: " + "; ".join(parts)


class Parameters(BaseModel):
    """
    Validated, immutable scheduler parameters.

    Invalid values are rejected with ConfigurationError; nothing is clamped.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    request_retention: float = DEFAULT_REQUEST_RETENTION
    maximum_interval: int = Field(default=DEFAULT_MAXIMUM_INTERVAL, ge=1)
    w: tuple[float, ...] = DEFAULT_W
    enable_fuzz: bool = DEFAULT_ENABLE_FUZZ
    enable_short_term: bool = DEFAULT_ENABLE_SHORT_TERM

    _interval_modifier: float = PrivateAttr()

    def __init__(self, **data: Any):
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise ConfigurationError(_describe(e)) from e

    def model_post_init(self, __context: Any) -> None:
        self._interval_modifier = calculate_interval_modifier(self.request_retention)

    @field_validator("request_retention")
    @classmethod
    def check_retention(cls, v: float) -> float:
        if not 0 < v <= 1:
            raise ValueError(f"request_retention must be in (0, 1], got {v}")
        return v

    @field_validator("w", mode="before")
    @classmethod
    def migrate_weights(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple)) and len(v) == LEGACY_WEIGHT_COUNT:
            return migrate_legacy_weights(v)
        return v

    @field_validator("w")
    @classmethod
    def check_weights(cls, v: tuple[float, ...]) -> tuple[float, ...]:
        if len(v) != WEIGHT_COUNT:
            raise ValueError(
                f"w must contain {WEIGHT_COUNT} weights "
                f"(or {LEGACY_WEIGHT_COUNT} legacy weights), got {len(v)}"
            )
        for i, (value, (lo, hi)) in enumerate(zip(v, CLAMP_PARAMETERS)):
            if not math.isfinite(value):
                raise ValueError(f"w[{i}] must be finite, got {value}")
            if not lo <= value <= hi:
                raise ValueError(f"w[{i}]={value} outside [{lo}, {hi}]")
        return v

    @property
    def interval_modifier(self) -> float:
        """Interval multiplier for request_retention, computed once per instance."""
        return self._interval_modifier


def generate_parameters(**overrides: Any) -> Parameters:
    """Merge a partial override onto the defaults and validate."""
    return Parameters(**overrides)


class ParameterStore:
    """
    Holds the current Parameters snapshot.

    Readers always see a complete, validated snapshot: `update` validates the
    merged parameters first and then replaces the reference under a lock.
    In-flight computations keep the snapshot they started with.
    """

    def __init__(self, parameters: Parameters | None = None, **overrides: Any):
        """
        Args:
            parameters: Initial snapshot; built from `overrides` if not provided.
            overrides: Partial parameters merged onto the defaults.
        """
        if parameters is not None and overrides:
            raise ConfigurationError("Pass either a Parameters instance or overrides, not both")
        self._lock = threading.Lock()
        self._parameters = parameters if parameters is not None else generate_parameters(**overrides)

    @property
    def parameters(self) -> Parameters:
        """The current immutable parameter set."""
        return self._parameters

    @property
    def interval_modifier(self) -> float:
        return self._parameters.interval_modifier

    def update(self, **overrides: Any) -> Parameters:
        """
        Validate `overrides` merged onto the current snapshot and swap it in.

        Raises:
            ConfigurationError: If the merged parameters are invalid. The
                current snapshot is left untouched.
        """
        with self._lock:
            merged = {**self._parameters.model_dump(), **overrides}
            new = Parameters(**merged)
            self._parameters = new
        logger.info(f"Scheduler parameters updated: {sorted(overrides)}")
        return new

    def replace(self, parameters: Parameters) -> None:
        """Swap in an already-validated snapshot."""
        with self._lock:
            self._parameters = parameters
        logger.info("Scheduler parameters replaced")


class ParameterSettings(BaseSettings):
    """
    Parameter overrides sourced from the environment or a TOML file.

    Only fields that are set are applied; everything else falls back to the
    Parameters defaults. Weights are given as a JSON list in the environment,
    e.g. SEEYOUAGAIN_W='[0.4, 1.2, ...]'.
    """

    model_config = SettingsConfigDict(
        env_prefix="SEEYOUAGAIN_",
        extra="ignore",
    )

    request_retention: float | None = None
    maximum_interval: int | None = None
    w: list[float] | None = None
    enable_fuzz: bool | None = None
    enable_short_term: bool | None = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # Find the first existing file
        toml_file = None
        for f in _config_paths():
            if f.exists():
                toml_file = f
                break

        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )


def resolve_parameters(overrides: dict[str, Any] | None = None) -> Parameters:
    """
    Multi-layered parameter resolution.
    1. Defaults in Parameters
    2. ~/.config/seeyouagain/config.toml (if exists)
    3. Environment variables (SEEYOUAGAIN_*)
    4. overrides
    """
    try:
        settings = ParameterSettings()
    except ValidationError as e:
        raise ConfigurationError(_describe(e)) from e

    values = settings.model_dump(exclude_none=True)
    values.update(overrides or {})
    if values:
        logger.debug(f"Resolved parameter overrides: {sorted(values)}")
    return generate_parameters(**values)
