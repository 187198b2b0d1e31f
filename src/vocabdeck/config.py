"""
config.py — Settings and data-directory layout for vocabdeck.

Settings come from an optional YAML file merged over built-in defaults:

    data_dir: data
    batch_size: 30
    lookup_workers: 8
    example_max_chars: 120
    default_level: B2
    default_zipf: 3.5

The config file is looked up at ./vocabdeck.yaml unless a path is given.
Every data file path is derived from data_dir.
"""

import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("vocabdeck.yaml")


@dataclass(frozen=True)
class Settings:
    data_dir: Path = Path("data")
    batch_size: int = 30
    lookup_workers: int = 8
    example_max_chars: int = 120
    default_level: str = "B2"
    default_zipf: float = 3.5

    # Intermediate artifact
    @property
    def cleaned_json(self) -> Path:
        return self.data_dir / "cleaned-words.json"

    # Reference files
    @property
    def stop_words_txt(self) -> Path:
        return self.data_dir / "stop_en.txt"

    @property
    def known_words_txt(self) -> Path:
        return self.data_dir / "known.txt"

    @property
    def cefr_json(self) -> Path:
        return self.data_dir / "cefr_map.json"

    @property
    def zipf_json(self) -> Path:
        return self.data_dir / "subtlex_zipf.json"

    @property
    def subtlex_xlsx(self) -> Path:
        return self.data_dir / "SUBTLEX-US.xlsx"

    # Audit side files
    @property
    def skipped_stop_words_txt(self) -> Path:
        return self.data_dir / "skipped_stop_words.txt"

    @property
    def skipped_duplicates_txt(self) -> Path:
        return self.data_dir / "skipped_duplicate_lemmas.txt"

    @property
    def skipped_known_txt(self) -> Path:
        return self.data_dir / "skipped_known_words.txt"

    @property
    def pos_mismatch_log(self) -> Path:
        return self.data_dir / "cefr_pos_mismatches.log"

    # Output
    @property
    def decks_dir(self) -> Path:
        return self.data_dir / "decks"


_FIELD_TYPES = {f.name: f.type for f in fields(Settings)}


def _coerce(name: str, value: Any) -> Any:
    if name == "data_dir":
        return Path(value)
    if name in ("batch_size", "lookup_workers", "example_max_chars"):
        value = int(value)
        if value < 1:
            raise ValueError(f"{name} must be >= 1, got {value}")
        return value
    if name == "default_zipf":
        return float(value)
    return str(value)


def load_settings(
    config_path: Optional[Union[str, Path]] = None,
    data_dir: Optional[Union[str, Path]] = None,
) -> Settings:
    """
    Load settings from YAML, falling back to defaults.

    An explicitly requested config file must exist; the implicit
    ./vocabdeck.yaml is optional.

    Args:
        config_path: Path to a YAML config file (optional)
        data_dir: Override for data_dir (e.g. from --data-dir)

    Returns:
        Settings instance
    """
    settings = Settings()

    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    if path.exists():
        with open(path, 'r', encoding='utf-8') as f:
            raw: Dict[str, Any] = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Config file must contain a mapping: {path}")

        overrides = {}
        for key, value in raw.items():
            if key not in _FIELD_TYPES:
                logger.warning(f"Ignoring unknown config key '{key}' in {path}")
                continue
            overrides[key] = _coerce(key, value)
        settings = replace(settings, **overrides)
        logger.debug(f"Loaded config from {path}")
    elif config_path:
        raise FileNotFoundError(f"Config file not found: {config_path}")

    if data_dir is not None:
        settings = replace(settings, data_dir=Path(data_dir))

    return settings
