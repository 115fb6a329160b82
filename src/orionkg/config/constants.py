"""
Constants and default values for orionkg.

Centralizes magic numbers and strings to improve maintainability.
"""

from pathlib import Path

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "orionkg"
APP_VERSION = "0.1.0"
CONFIG_DIR_NAME = ".orionkg"

# ============================================================================
# Path Defaults
# ============================================================================

DEFAULT_DATA_DIR = Path.home() / CONFIG_DIR_NAME
DEFAULT_CONFIG_SUBDIR = "config"
DEFAULT_DATA_SUBDIR = "data"
DEFAULT_LOGS_SUBDIR = "logs"

SETTINGS_FILE = "settings.toml"
ENV_FILE = ".env"
SNAPSHOT_DB_FILE = "graph_snapshots.duckdb"

# ============================================================================
# Web Server Defaults
# ============================================================================

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8100
DEFAULT_CORS_ORIGINS = ("http://localhost:8100", "http://127.0.0.1:8100")

# ============================================================================
# Knowledge Graph Defaults
# ============================================================================

# Token-Jaccard similarity at or above which a candidate merges into a node
DEFAULT_MERGE_THRESHOLD = 0.85
# Similarity at or above which two nodes are considered the same topic
DEFAULT_TOPIC_THRESHOLD = 0.6
# 0.5 = plain trust-weighted average, 1.0 = always take the higher-trust side
DEFAULT_TRUST_BIAS = 0.7
DEFAULT_EDGE_DECAY = 0.5
DEFAULT_MAX_EDGE_WEIGHT = 10.0
DEFAULT_SOURCE_TRUST = 0.5

# ============================================================================
# Contradiction Defaults
# ============================================================================

DEFAULT_CONTRADICTIONS_ENABLED = True
DEFAULT_CONTRADICTION_MIN_CONFIDENCE = 0.3
DEFAULT_CONTRADICTION_TRUST_MARGIN = 0.2
DEFAULT_CONTRADICTION_CONFIDENCE_MARGIN = 0.3

# ============================================================================
# Suppression / Timeline Defaults
# ============================================================================

DEFAULT_SUPPRESSION_ENABLED = True
DEFAULT_TIMELINE_MAX_EVENTS = 10000

# ============================================================================
# Cognitive Profile Defaults
# ============================================================================

DEFAULT_EWMA_ALPHA = 0.3
DEFAULT_PROFILE_WINDOW = 50
DEFAULT_PROFILE_UPDATE_EVERY = 1
DEFAULT_BREAK_BASELINE_MINUTES = 45.0
DEFAULT_DEEP_READ_SECONDS = 120.0
DEFAULT_DRIFT_THRESHOLD = 0.25

# Composite fatigue score at which each level is entered
DEFAULT_FATIGUE_THRESHOLDS = {
    "mild": 0.25,
    "moderate": 0.5,
    "high": 0.7,
    "severe": 0.85,
}

DEFAULT_INDICATOR_WEIGHTS = {
    "scroll_speed": 0.25,
    "read_time": 0.25,
    "click_pattern": 0.2,
    "typos": 0.15,
    "backtracking": 0.15,
}

# Raw value at which an indicator reads as fully fatigued. For read_time this
# is the dwell time below which a page counts as skimmed; the reading is the
# shortfall, so a zero-second read is fully fatigued.
DEFAULT_INDICATOR_THRESHOLDS = {
    "scroll_speed": 3000.0,
    "read_time": 60.0,
    "click_pattern": 30.0,
    "typos": 10.0,
    "backtracking": 10.0,
}

DEFAULT_REFERENCE_TOPICS: tuple[str, ...] = ()

# ============================================================================
# Environment Variable Names
# ============================================================================

ENV_DATA_DIR = "ORIONKG_DATA_DIR"
ENV_MERGE_THRESHOLD = "ORIONKG_MERGE_THRESHOLD"
ENV_TOPIC_THRESHOLD = "ORIONKG_TOPIC_THRESHOLD"
ENV_TRUST_BIAS = "ORIONKG_TRUST_BIAS"
ENV_EDGE_DECAY = "ORIONKG_EDGE_DECAY"
ENV_MAX_EDGE_WEIGHT = "ORIONKG_MAX_EDGE_WEIGHT"
ENV_DEFAULT_SOURCE_TRUST = "ORIONKG_DEFAULT_SOURCE_TRUST"
ENV_CONTRADICTIONS_ENABLED = "ORIONKG_CONTRADICTIONS_ENABLED"
ENV_CONTRADICTION_MIN_CONFIDENCE = "ORIONKG_CONTRADICTION_MIN_CONFIDENCE"
ENV_SUPPRESSION_ENABLED = "ORIONKG_SUPPRESSION_ENABLED"
ENV_TIMELINE_MAX_EVENTS = "ORIONKG_TIMELINE_MAX_EVENTS"
ENV_EWMA_ALPHA = "ORIONKG_EWMA_ALPHA"
ENV_BREAK_BASELINE_MINUTES = "ORIONKG_BREAK_BASELINE_MINUTES"
ENV_HOST = "ORIONKG_HOST"
ENV_PORT = "ORIONKG_PORT"
ENV_CORS_ORIGINS = "ORIONKG_CORS_ORIGINS"

# ============================================================================
# Error Messages
# ============================================================================

ERROR_NO_CONFIG = """
Configuration file not found: {path}

Create one at:
    {config_dir}/{settings_file}
"""

ERROR_INVALID_PORT = "Invalid port: {port}. Must be between 1 and 65535."

ERROR_NO_SNAPSHOT = "No saved snapshot found in {path}"
