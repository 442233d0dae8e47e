"""
Engine configuration.

All tunables have defaults here; a YAML file can override any of them.
Nested dicts (``confidence_weights``) are merged key by key so a config
file only needs to name the values it changes.
"""

import copy
import functools
import os

import yaml

DEFAULTS = {
    # Timeline detection
    "header_scan_rows": 15,
    "month_tokens_required": 3,
    "week_tokens_required": 4,
    "week_row_tokens_required": 5,
    "min_timeline_columns": 10,
    "default_timeline_start_column": 2,
    # Activity detection
    "activity_scan_rows": 15,
    # Classification
    "classifier_scan_rows": 15,
    # Activation scoring (unitless, only compared against zero)
    "confidence_weights": {
        "color": 100,
        "filled": 90,
        "content": 60,
        "minimal_content": 30,
        "content_flag": 40,
        "font": 25,
        "border": 20,
        "pattern_fallback": 10,
    },
    "default_color": "#32CD32",
    "default_commodity": "maize",
    "log_level": "INFO",
}


def load_config(config_path=None):
    """Load configuration from a YAML file, layered over :data:`DEFAULTS`."""
    config = copy.deepcopy(DEFAULTS)
    if config_path and os.path.exists(config_path):
        with open(config_path, "r") as f:
            user_config = yaml.safe_load(f) or {}
        for key, value in user_config.items():
            if isinstance(value, dict) and isinstance(config.get(key), dict):
                config[key].update(value)
            else:
                config[key] = value
    return config


# ---------------------------------------------------------------------------
# Package data tables
# ---------------------------------------------------------------------------

DATA_DIR = os.path.join(os.path.dirname(__file__), "data")


@functools.lru_cache(maxsize=None)
def load_data(name):
    """Load a static YAML table from ``calendar_extractor/data``.

    Cached: the tables are read-only and shared by every parse call.
    Callers must not mutate the returned object.
    """
    with open(os.path.join(DATA_DIR, name), "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}
