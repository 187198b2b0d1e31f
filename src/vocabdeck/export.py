"""
export.py — Write the next deck batch for a tier.

Reads:
  - cleaned-words.json (from ingest)
  - decks/deck_t{N}_*.tsv (previous batches for the tier)

Outputs:
  - decks/deck_t{N}_{KK}.tsv

Batch files are append-only: a lemma found in any existing batch of the
tier is excluded before windowing, and the new file always gets a fresh
number. Each row has six tab-separated fields:

  lemma (pos) | (media placeholder) | definition | example | synonyms | tags
"""

import logging
import re
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

import orjson

from vocabdeck.config import Settings
from vocabdeck.lexicon import Enrichment, Lexicon, WordNetLexicon, enrich_lemma
from vocabdeck.progress_display import ProgressDisplay
from vocabdeck.tiers import TIERS


logger = logging.getLogger(__name__)

DECK_FILE_RE = re.compile(r'^deck_t(\d+)_(\d+)\.tsv$')
_POS_SUFFIX_RE = re.compile(r'\s*\([^()]*\)$')
_FIELD_WS_RE = re.compile(r'[\t\r\n]+')


@dataclass
class ExportResult:
    tier: int
    batch_number: int
    rows: int
    path: Optional[Path] = None


def deck_filename(tier: int, batch_number: int) -> str:
    return f"deck_t{tier}_{batch_number:02d}.tsv"


def deck_files(decks_dir: Path, tier: int) -> List[Path]:
    """Existing batch files for a tier, ordered by batch number."""
    if not decks_dir.exists():
        return []
    found = []
    for path in decks_dir.iterdir():
        match = DECK_FILE_RE.match(path.name)
        if match and int(match.group(1)) == tier:
            found.append((int(match.group(2)), path))
    return [path for _, path in sorted(found)]


def next_batch_number(files: List[Path]) -> int:
    """Count of existing batches plus one, skipping past any higher number in use."""
    numbers = [int(DECK_FILE_RE.match(p.name).group(2)) for p in files]
    return max([len(files)] + numbers) + 1


def lemma_from_first_field(field_text: str) -> str:
    """'glass (noun)' -> 'glass'; a bare 'glass' is returned as-is."""
    return _POS_SUFFIX_RE.sub('', field_text.strip()).strip().lower()


def exported_lemmas(files: Iterable[Path]) -> Set[str]:
    """Lemmas already present in the given batch files."""
    exported = set()
    for path in files:
        with open(path, 'r', encoding='utf-8') as f:
            for line in f:
                first = line.rstrip('\r\n').split('\t', 1)[0]
                lemma = lemma_from_first_field(first)
                if lemma:
                    exported.add(lemma)
    return exported


def load_cleaned(path: Path) -> Optional[List[dict]]:
    """Cleaned entries, or None when the artifact is missing, unreadable or empty."""
    if not path.exists():
        logger.warning(f"Cleaned words not found: {path} (run ingest first)")
        return None
    try:
        data = orjson.loads(path.read_bytes())
    except orjson.JSONDecodeError as e:
        logger.warning(f"Cleaned words unreadable: {path}: {e}")
        return None
    if not isinstance(data, list) or not data:
        logger.warning(f"Cleaned words data is invalid or empty: {path}")
        return None
    return data


def remaining_for_tier(entries: List[dict], tier: int, exported: Set[str]) -> List[dict]:
    """Unexported entries of a tier, by lookup count then Zipf score (both descending)."""
    pending = [e for e in entries if e.get('tier') == tier and e.get('lemma') not in exported]
    pending.sort(key=lambda e: (-(e.get('count') or 0), -(e.get('zipf') or 0.0)))
    return pending


def _clean_field(text: str) -> str:
    return _FIELD_WS_RE.sub(' ', text or '').strip()


def format_row(entry: dict, enrichment: Enrichment, tier: int, example_max_chars: int = 120) -> str:
    """One TSV row for a deck file."""
    pos = entry.get('pos') or ''
    headword = f"{entry['lemma']} ({pos})" if pos else entry['lemma']
    example = _clean_field(entry.get('example') or '')[:example_max_chars]
    tags = f"Tier{tier}·{entry.get('level', '')}·Zipf {float(entry.get('zipf') or 0.0):.2f}"

    return '\t'.join([
        _clean_field(headword),
        '',
        _clean_field(enrichment.definition),
        example,
        _clean_field(', '.join(enrichment.synonyms)),
        tags,
    ])


def enrich_batch(batch: List[dict], lexicon: Lexicon, workers: int) -> Dict[str, Enrichment]:
    """Look up every distinct lemma of a batch; results keyed by lemma."""
    lemmas = list(dict.fromkeys(e['lemma'] for e in batch))
    pos_by_lemma = {e['lemma']: e.get('pos') or '' for e in batch}

    results: Dict[str, Enrichment] = {}
    with ProgressDisplay("Looking up definitions", total=len(lemmas)) as progress:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            lookups = executor.map(lambda l: enrich_lemma(l, pos_by_lemma[l], lexicon), lemmas)
            for i, (lemma, enrichment) in enumerate(zip(lemmas, lookups), 1):
                results[lemma] = enrichment
                progress.update(Lemmas=i)
    return results


def export_tier(
    tier: int,
    settings: Settings,
    batch_size: Optional[int] = None,
    lexicon: Optional[Lexicon] = None,
) -> Optional[ExportResult]:
    """
    Write the next batch file for a tier.

    Args:
        tier: 1, 2 or 3
        settings: Paths and defaults
        batch_size: Words per batch (settings.batch_size if None)
        lexicon: Lexical reference (NLTK WordNet if None)

    Returns:
        ExportResult (rows == 0 and path None when nothing is left), or
        None when the cleaned artifact is missing or empty
    """
    if tier not in TIERS:
        raise ValueError(f"Tier must be one of {TIERS}, got {tier}")
    batch_size = batch_size or settings.batch_size
    if batch_size < 1:
        raise ValueError(f"Batch size must be >= 1, got {batch_size}")

    entries = load_cleaned(settings.cleaned_json)
    if entries is None:
        return None

    decks_dir = settings.decks_dir
    files = deck_files(decks_dir, tier)
    exported = exported_lemmas(files)
    pending = remaining_for_tier(entries, tier, exported)
    batch_number = next_batch_number(files)

    logger.info(f"Preparing batch #{batch_number} for tier {tier}")
    logger.info(f"  Previous batches: {len(files)} ({len(exported):,} lemmas exported)")
    logger.info(f"  Remaining in tier: {len(pending):,}")

    batch = pending[:batch_size]
    if not batch:
        logger.warning(f"Tier {tier} has no words left to export")
        return ExportResult(tier=tier, batch_number=batch_number, rows=0)

    if lexicon is None:
        lexicon = WordNetLexicon()
    enrichments = enrich_batch(batch, lexicon, settings.lookup_workers)

    rows = [
        format_row(entry, enrichments[entry['lemma']], tier, settings.example_max_chars)
        for entry in batch
    ]

    decks_dir.mkdir(parents=True, exist_ok=True)
    path = decks_dir / deck_filename(tier, batch_number)
    path.write_text('\n'.join(rows) + '\n', encoding='utf-8')

    missing = sum(1 for e in enrichments.values() if not e.definition)
    logger.info(f"  Deck created: {path.name} ({len(rows)} words, {missing} without definition)")
    logger.info(f"  -> {path}")
    return ExportResult(tier=tier, batch_number=batch_number, rows=len(rows), path=path)


def tier_stats(settings: Settings) -> Optional[Dict[int, Dict[str, int]]]:
    """Per-tier totals, exported counts and remaining counts."""
    entries = load_cleaned(settings.cleaned_json)
    if entries is None:
        return None

    totals = Counter(e.get('tier') for e in entries)
    stats = {}
    for tier in TIERS:
        files = deck_files(settings.decks_dir, tier)
        remaining = len(remaining_for_tier(entries, tier, exported_lemmas(files)))
        stats[tier] = {
            'total': totals.get(tier, 0),
            'batches': len(files),
            'exported': totals.get(tier, 0) - remaining,
            'remaining': remaining,
        }
    return stats
