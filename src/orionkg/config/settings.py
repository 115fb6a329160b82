"""
Configuration management with environment variable and .env support.

Configuration precedence (highest to lowest):
1. Environment variables (ORIONKG_*)
2. User config file (~/.orionkg/config/settings.toml)
3. Hardcoded constants (constants.py)
"""

from __future__ import annotations

import os
from typing import overload
from dataclasses import dataclass, field
from pathlib import Path
import tomli
from dotenv import load_dotenv

from ..core.logging_config import LogConfig
from .constants import (
    DEFAULT_DATA_DIR,
    DEFAULT_CONFIG_SUBDIR,
    SETTINGS_FILE,
    ENV_FILE,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_CORS_ORIGINS,
    DEFAULT_MERGE_THRESHOLD,
    DEFAULT_TOPIC_THRESHOLD,
    DEFAULT_TRUST_BIAS,
    DEFAULT_EDGE_DECAY,
    DEFAULT_MAX_EDGE_WEIGHT,
    DEFAULT_SOURCE_TRUST,
    DEFAULT_CONTRADICTIONS_ENABLED,
    DEFAULT_CONTRADICTION_MIN_CONFIDENCE,
    DEFAULT_CONTRADICTION_TRUST_MARGIN,
    DEFAULT_CONTRADICTION_CONFIDENCE_MARGIN,
    DEFAULT_SUPPRESSION_ENABLED,
    DEFAULT_TIMELINE_MAX_EVENTS,
    DEFAULT_EWMA_ALPHA,
    DEFAULT_PROFILE_WINDOW,
    DEFAULT_PROFILE_UPDATE_EVERY,
    DEFAULT_BREAK_BASELINE_MINUTES,
    DEFAULT_DEEP_READ_SECONDS,
    DEFAULT_DRIFT_THRESHOLD,
    DEFAULT_FATIGUE_THRESHOLDS,
    DEFAULT_INDICATOR_WEIGHTS,
    DEFAULT_INDICATOR_THRESHOLDS,
    DEFAULT_REFERENCE_TOPICS,
    ENV_DATA_DIR,
    ENV_MERGE_THRESHOLD,
    ENV_TOPIC_THRESHOLD,
    ENV_TRUST_BIAS,
    ENV_EDGE_DECAY,
    ENV_MAX_EDGE_WEIGHT,
    ENV_DEFAULT_SOURCE_TRUST,
    ENV_CONTRADICTIONS_ENABLED,
    ENV_CONTRADICTION_MIN_CONFIDENCE,
    ENV_SUPPRESSION_ENABLED,
    ENV_TIMELINE_MAX_EVENTS,
    ENV_EWMA_ALPHA,
    ENV_BREAK_BASELINE_MINUTES,
    ENV_HOST,
    ENV_PORT,
    ENV_CORS_ORIGINS,
    ERROR_NO_CONFIG,
)


# Load .env file at module import time
# Search order: ./.env, ~/.orionkg/.env, ~/.orionkg/config/.env
def _load_env_files():
    """Load .env files from standard locations."""
    env_locations = [
        Path.cwd() / ENV_FILE,
        DEFAULT_DATA_DIR / ENV_FILE,
        DEFAULT_DATA_DIR / DEFAULT_CONFIG_SUBDIR / ENV_FILE,
    ]

    for env_path in env_locations:
        if env_path.exists():
            load_dotenv(env_path, override=False)


_load_env_files()


@overload
def _get_env_str(key: str, default: str) -> str: ...


@overload
def _get_env_str(key: str, default: None = None) -> str | None: ...


def _get_env_str(key: str, default: str | None = None) -> str | None:
    """Get string value from environment variable. Empty strings are treated as missing."""
    value = os.getenv(key)
    if value is None or value == "":
        return default
    return value


def _get_env_int(key: str, default: int) -> int:
    """Get integer value from environment variable."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_env_bool(key: str, default: bool) -> bool:
    """Get boolean value from environment variable."""
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _get_env_float(key: str, default: float) -> float:
    """Get float value from environment variable."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _float_map(raw: dict | None, defaults: dict[str, float]) -> dict[str, float]:
    merged = dict(defaults)
    for key, value in (raw or {}).items():
        merged[str(key)] = float(value)
    return merged


@dataclass
class PathsConfig:
    data_directory: str

    @classmethod
    def from_dict(cls, data: dict) -> "PathsConfig":
        return cls(
            data_directory=_get_env_str(
                ENV_DATA_DIR,
                data.get("data_directory", str(DEFAULT_DATA_DIR)),
            ),
        )


@dataclass
class GraphConfig:
    merge_threshold: float = DEFAULT_MERGE_THRESHOLD
    topic_threshold: float = DEFAULT_TOPIC_THRESHOLD
    trust_bias: float = DEFAULT_TRUST_BIAS
    edge_decay: float = DEFAULT_EDGE_DECAY
    max_edge_weight: float = DEFAULT_MAX_EDGE_WEIGHT
    default_source_trust: float = DEFAULT_SOURCE_TRUST
    source_trust: dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "GraphConfig":
        return cls(
            merge_threshold=_get_env_float(
                ENV_MERGE_THRESHOLD,
                float(data.get("merge_threshold", DEFAULT_MERGE_THRESHOLD)),
            ),
            topic_threshold=_get_env_float(
                ENV_TOPIC_THRESHOLD,
                float(data.get("topic_threshold", DEFAULT_TOPIC_THRESHOLD)),
            ),
            trust_bias=_get_env_float(
                ENV_TRUST_BIAS,
                float(data.get("trust_bias", DEFAULT_TRUST_BIAS)),
            ),
            edge_decay=_get_env_float(
                ENV_EDGE_DECAY,
                float(data.get("edge_decay", DEFAULT_EDGE_DECAY)),
            ),
            max_edge_weight=_get_env_float(
                ENV_MAX_EDGE_WEIGHT,
                float(data.get("max_edge_weight", DEFAULT_MAX_EDGE_WEIGHT)),
            ),
            default_source_trust=_get_env_float(
                ENV_DEFAULT_SOURCE_TRUST,
                float(data.get("default_source_trust", DEFAULT_SOURCE_TRUST)),
            ),
            source_trust=_float_map(data.get("source_trust"), {}),
        )


@dataclass
class ContradictionConfig:
    enabled: bool = DEFAULT_CONTRADICTIONS_ENABLED
    min_confidence: float = DEFAULT_CONTRADICTION_MIN_CONFIDENCE
    trust_margin: float = DEFAULT_CONTRADICTION_TRUST_MARGIN
    confidence_margin: float = DEFAULT_CONTRADICTION_CONFIDENCE_MARGIN

    @classmethod
    def from_dict(cls, data: dict) -> "ContradictionConfig":
        return cls(
            enabled=_get_env_bool(
                ENV_CONTRADICTIONS_ENABLED,
                bool(data.get("enabled", DEFAULT_CONTRADICTIONS_ENABLED)),
            ),
            min_confidence=_get_env_float(
                ENV_CONTRADICTION_MIN_CONFIDENCE,
                float(data.get("min_confidence", DEFAULT_CONTRADICTION_MIN_CONFIDENCE)),
            ),
            trust_margin=float(data.get("trust_margin", DEFAULT_CONTRADICTION_TRUST_MARGIN)),
            confidence_margin=float(
                data.get("confidence_margin", DEFAULT_CONTRADICTION_CONFIDENCE_MARGIN)
            ),
        )


@dataclass
class SuppressionConfig:
    enabled: bool = DEFAULT_SUPPRESSION_ENABLED
    default_rules: list[dict[str, str]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "SuppressionConfig":
        rules = [
            {"type": str(r["type"]), "value": str(r["value"])}
            for r in data.get("default_rules", [])
            if "type" in r and "value" in r
        ]
        return cls(
            enabled=_get_env_bool(
                ENV_SUPPRESSION_ENABLED,
                bool(data.get("enabled", DEFAULT_SUPPRESSION_ENABLED)),
            ),
            default_rules=rules,
        )


@dataclass
class TimelineConfig:
    max_events: int = DEFAULT_TIMELINE_MAX_EVENTS

    @classmethod
    def from_dict(cls, data: dict) -> "TimelineConfig":
        return cls(
            max_events=_get_env_int(
                ENV_TIMELINE_MAX_EVENTS,
                int(data.get("max_events", DEFAULT_TIMELINE_MAX_EVENTS)),
            ),
        )


@dataclass
class ProfileConfig:
    ewma_alpha: float = DEFAULT_EWMA_ALPHA
    window_size: int = DEFAULT_PROFILE_WINDOW
    update_every: int = DEFAULT_PROFILE_UPDATE_EVERY
    break_baseline_minutes: float = DEFAULT_BREAK_BASELINE_MINUTES
    deep_read_seconds: float = DEFAULT_DEEP_READ_SECONDS
    drift_threshold: float = DEFAULT_DRIFT_THRESHOLD
    fatigue_thresholds: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_FATIGUE_THRESHOLDS),
    )
    indicator_weights: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_INDICATOR_WEIGHTS),
    )
    indicator_thresholds: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_INDICATOR_THRESHOLDS),
    )
    reference_topics: list[str] = field(
        default_factory=lambda: list(DEFAULT_REFERENCE_TOPICS),
    )
    # Externally supplied political skew per domain, in [-1, 1]
    source_skew: dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "ProfileConfig":
        return cls(
            ewma_alpha=_get_env_float(
                ENV_EWMA_ALPHA,
                float(data.get("ewma_alpha", DEFAULT_EWMA_ALPHA)),
            ),
            window_size=int(data.get("window_size", DEFAULT_PROFILE_WINDOW)),
            update_every=int(data.get("update_every", DEFAULT_PROFILE_UPDATE_EVERY)),
            break_baseline_minutes=_get_env_float(
                ENV_BREAK_BASELINE_MINUTES,
                float(data.get("break_baseline_minutes", DEFAULT_BREAK_BASELINE_MINUTES)),
            ),
            deep_read_seconds=float(data.get("deep_read_seconds", DEFAULT_DEEP_READ_SECONDS)),
            drift_threshold=float(data.get("drift_threshold", DEFAULT_DRIFT_THRESHOLD)),
            fatigue_thresholds=_float_map(
                data.get("fatigue_thresholds"), DEFAULT_FATIGUE_THRESHOLDS
            ),
            indicator_weights=_float_map(
                data.get("indicator_weights"), DEFAULT_INDICATOR_WEIGHTS
            ),
            indicator_thresholds=_float_map(
                data.get("indicator_thresholds"), DEFAULT_INDICATOR_THRESHOLDS
            ),
            reference_topics=list(data.get("reference_topics", DEFAULT_REFERENCE_TOPICS)),
            source_skew=_float_map(data.get("source_skew"), {}),
        )


@dataclass
class ServerConfig:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    cors_origins: list[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))

    @classmethod
    def from_dict(cls, data: dict) -> "ServerConfig":
        env_origins = _get_env_str(ENV_CORS_ORIGINS, None)
        if env_origins:
            origins = [o.strip() for o in env_origins.split(",") if o.strip()]
        else:
            origins = data.get("cors_origins", list(DEFAULT_CORS_ORIGINS))
        return cls(
            host=_get_env_str(ENV_HOST, data.get("host", DEFAULT_HOST)),
            port=_get_env_int(ENV_PORT, int(data.get("port", DEFAULT_PORT))),
            cors_origins=origins,
        )


@dataclass
class Config:
    paths: PathsConfig
    graph: GraphConfig
    contradictions: ContradictionConfig
    suppression: SuppressionConfig
    timeline: TimelineConfig
    profile: ProfileConfig
    server: ServerConfig
    logging: LogConfig

    @property
    def data_dir(self) -> Path:
        return Path(self.paths.data_directory).expanduser()

    @classmethod
    def defaults(cls) -> "Config":
        """Build a config from constants and environment only."""
        return cls.from_dict({})

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        return cls(
            paths=PathsConfig.from_dict(data.get("paths", {})),
            graph=GraphConfig.from_dict(data.get("graph", {})),
            contradictions=ContradictionConfig.from_dict(data.get("contradictions", {})),
            suppression=SuppressionConfig.from_dict(data.get("suppression", {})),
            timeline=TimelineConfig.from_dict(data.get("timeline", {})),
            profile=ProfileConfig.from_dict(data.get("profile", {})),
            server=ServerConfig.from_dict(data.get("server", {})),
            logging=LogConfig(**data.get("logging", {})),
        )

    @classmethod
    def load(cls, config_path: Path | None = None) -> "Config":
        """
        Load configuration with proper precedence.

        Precedence (highest to lowest):
        1. Environment variables (ORIONKG_*)
        2. User config (~/.orionkg/config/settings.toml)
        3. Hardcoded constants

        Args:
            config_path: Optional explicit config file path

        Returns:
            Loaded Config object

        Raises:
            FileNotFoundError: If an explicit config_path does not exist
        """
        if config_path is not None:
            config_file = Path(config_path)
        else:
            base_data_dir = Path(os.getenv(ENV_DATA_DIR, str(DEFAULT_DATA_DIR))).expanduser()
            config_file = base_data_dir / DEFAULT_CONFIG_SUBDIR / SETTINGS_FILE

        if config_file.exists():
            with open(config_file, "rb") as f:
                data = tomli.load(f)
        elif config_path is not None:
            raise FileNotFoundError(
                ERROR_NO_CONFIG.format(
                    path=config_path,
                    config_dir=DEFAULT_DATA_DIR / DEFAULT_CONFIG_SUBDIR,
                    settings_file=SETTINGS_FILE,
                )
            )
        else:
            data = {}

        return cls.from_dict(data)
