"""Load pipeline tunables from pipeline.json.

The file is created from pipeline.example.json on first use. When neither
exists the settings are empty and config falls back to its defaults.
"""

import json
import os
import shutil
import threading

_dir = os.path.dirname(__file__)
SETTINGS_PATH = os.path.join(_dir, "pipeline.json")
_EXAMPLE_PATH = os.path.join(_dir, "pipeline.example.json")

# Keys that must hold a JSON object or list when present
_SECTION_TYPES = {"rescan": dict, "sources": list}

_settings = None
_lock = threading.Lock()


def validate_settings(settings) -> dict:
    """Check the shape of a loaded settings document. Raises ValueError when it is malformed."""
    if not isinstance(settings, dict):
        raise ValueError("pipeline settings must be a JSON object")
    for key, expected in _SECTION_TYPES.items():
        if key in settings and not isinstance(settings[key], expected):
            raise ValueError(f"pipeline setting {key!r} must be a JSON {expected.__name__}")
    for i, entry in enumerate(settings.get("sources", [])):
        if not isinstance(entry, dict) or not entry.get("provider") or not entry.get("company"):
            raise ValueError(f"pipeline source #{i} needs both 'provider' and 'company'")
    return settings


def get_settings(path: str = SETTINGS_PATH) -> dict:
    global _settings
    with _lock:
        if _settings is None:
            if not os.path.exists(path) and os.path.exists(_EXAMPLE_PATH):
                shutil.copy2(_EXAMPLE_PATH, path)
            if os.path.exists(path):
                with open(path) as f:
                    _settings = validate_settings(json.load(f))
            else:
                _settings = {}
        return _settings


def reload_settings():
    """Drop the cached settings; the next get_settings() re-reads the file."""
    global _settings
    with _lock:
        _settings = None
