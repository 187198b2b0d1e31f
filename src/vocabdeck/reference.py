"""
reference.py — Load the read-only reference data used by ingest.

Reads (all optional, from the data directory):
  - stop_en.txt          newline-delimited stop words
  - known.txt            newline-delimited words the learner already knows
  - cefr_map.json        {word: {"level": "B2", "pos": "noun"}}
  - subtlex_zipf.json    {word: zipf} cache, built from SUBTLEX-US.xlsx

A missing or unreadable file is never fatal: a warning is logged and an empty
substitute is used, so the classifier falls back to its default level and
Zipf score.
"""

import logging
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Set

import orjson
import pandas as pd

from vocabdeck.config import Settings


logger = logging.getLogger(__name__)

# SUBTLEX-US Lg10WF is log10 of the raw count over a 51M-token corpus;
# subtracting this offset approximates the Zipf scale when no Zipf column exists.
LG10WF_TO_ZIPF_OFFSET = 1.707

ZIPF_COLUMNS = ("Zipf", "Zipf-value")


@dataclass
class ReferenceMaps:
    """Reference data for one run, passed explicitly into ingest."""
    levels: Dict[str, dict] = field(default_factory=dict)
    zipf: Dict[str, float] = field(default_factory=dict)
    stop_words: Set[str] = field(default_factory=set)
    known_words: Set[str] = field(default_factory=set)


def read_word_list(path: Path) -> Set[str]:
    """Read a newline-delimited word list as a set of trimmed lowercase words."""
    if not path.exists():
        logger.warning(f"Word list not found: {path} (using empty list)")
        return set()

    try:
        with open(path, 'r', encoding='utf-8') as f:
            words = {line.strip().lower() for line in f}
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Word list unreadable: {path}: {e} (using empty list)")
        return set()
    words.discard('')

    logger.info(f"  -> Loaded {len(words):,} words from {path.name}")
    return words


def load_level_map(path: Path) -> Dict[str, dict]:
    """Load the CEFR level map; missing or unreadable file gives an empty map."""
    if not path.exists():
        logger.warning(f"Level map not found: {path} (default level applies)")
        return {}

    try:
        data = orjson.loads(path.read_bytes())
    except (OSError, orjson.JSONDecodeError) as e:
        logger.warning(f"Level map unreadable: {path}: {e} (default level applies)")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"Level map is not a JSON object: {path} (default level applies)")
        return {}

    levels = {}
    for word, info in data.items():
        level = info.get('level') if isinstance(info, dict) else None
        if isinstance(level, str) and level.strip():
            levels[word.lower()] = info

    logger.info(f"  -> Loaded {len(levels):,} CEFR levels from {path.name}")
    return levels


def _row_zipf(row: dict) -> Optional[float]:
    for column in ZIPF_COLUMNS:
        value = row.get(column)
        if value is not None and not pd.isna(value):
            return float(value)
    lg10wf = row.get('Lg10WF')
    if lg10wf is not None and not pd.isna(lg10wf) and lg10wf:
        return float(lg10wf) - LG10WF_TO_ZIPF_OFFSET
    return None


def build_zipf_map(xlsx_path: Path) -> Dict[str, float]:
    """
    Build {word: zipf} from the first sheet of a SUBTLEX spreadsheet.

    Uses the Zipf column, else Zipf-value, else Lg10WF converted to Zipf.
    Rows without a word or a usable score are skipped.
    """
    frame = pd.read_excel(xlsx_path, sheet_name=0)

    zipf_map: Dict[str, float] = {}
    for row in frame.to_dict(orient='records'):
        word = row.get('Word')
        if not isinstance(word, str) or not word.strip():
            continue
        score = _row_zipf(row)
        if score is not None:
            zipf_map[word.strip().lower()] = score

    return zipf_map


def ensure_zipf_map(cache_path: Path, xlsx_path: Path) -> Dict[str, float]:
    """
    Return the Zipf map, building and caching it on first use.

    A non-empty cache wins. Without a cache and without the spreadsheet the
    map is empty and every word gets the default Zipf score.
    """
    if cache_path.exists():
        try:
            cached = orjson.loads(cache_path.read_bytes())
            if isinstance(cached, dict) and cached:
                logger.info(f"  -> Loaded {len(cached):,} Zipf scores from {cache_path.name}")
                return cached
        except orjson.JSONDecodeError as e:
            logger.warning(f"Zipf cache unreadable, rebuilding: {cache_path}: {e}")

    if not xlsx_path.exists():
        logger.warning(f"{xlsx_path.name} missing (Zipf fallback applies)")
        return {}

    logger.info(f"Building Zipf map from {xlsx_path.name}...")
    try:
        zipf_map = build_zipf_map(xlsx_path)
    except (ValueError, zipfile.BadZipFile, OSError) as e:
        logger.warning(f"{xlsx_path.name} unreadable: {e} (Zipf fallback applies)")
        return {}

    cache_path.parent.mkdir(parents=True, exist_ok=True)
    cache_path.write_bytes(orjson.dumps(zipf_map))
    logger.info(f"  Zipf map cached ({len(zipf_map):,} words)")
    logger.info(f"  -> {cache_path}")
    return zipf_map


def load_reference_maps(settings: Settings) -> ReferenceMaps:
    """Load all reference data for one run."""
    logger.info("Loading reference data...")
    return ReferenceMaps(
        levels=load_level_map(settings.cefr_json),
        zipf=ensure_zipf_map(settings.zipf_json, settings.subtlex_xlsx),
        stop_words=read_word_list(settings.stop_words_txt),
        known_words=read_word_list(settings.known_words_txt),
    )
