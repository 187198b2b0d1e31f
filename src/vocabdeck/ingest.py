"""
ingest.py — Normalize, classify and deduplicate raw Kindle words.

Reads:
  - raw words JSON: [{"word": ..., "count": ..., "example": ...}, ...]
  - reference data (see reference.py)

Outputs (under the data directory):
  - cleaned-words.json            one CleanEntry per lemma (overwritten)
  - skipped_stop_words.txt        audit: stop words (raw form or lemma)
  - skipped_duplicate_lemmas.txt  audit: lemmas seen earlier in the input
  - skipped_known_words.txt       audit: lemmas on the known-word list
  - cefr_pos_mismatches.log       audit: WordNet vs CEFR POS disagreements (appended)

Pipeline, in input order:
  1. skip empty words
  2. skip stop words (raw lowercase form)
  3. choose lemma; skip stop-word lemmas
  4. skip lemmas already seen (first occurrence wins)
  5. skip known lemmas
  6. resolve POS (WordNet lookups on a bounded thread pool)
  7. attach level, Zipf score and tier

Nothing is written until every entry has been built, so a failing run
leaves the previous artifact untouched. The skipped_* files describe the
latest run only: one with nothing to report is removed.
"""

import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import orjson

from vocabdeck.config import Settings
from vocabdeck.lemma import Reducer, WordNetReducer, choose_lemma
from vocabdeck.lexicon import (
    Lexicon,
    Tagger,
    WordNetLexicon,
    first_sense_pos,
    pos_from_example,
    pos_from_suffix,
)
from vocabdeck.progress_display import ProgressDisplay
from vocabdeck.reference import ReferenceMaps, load_reference_maps
from vocabdeck.tiers import decide_tier


logger = logging.getLogger(__name__)


@dataclass
class IngestReport:
    """Counters and audit lines collected during one ingest run."""
    kept: int = 0
    skipped_stop: int = 0
    skipped_duplicate: int = 0
    skipped_known: int = 0
    tiers: Counter = field(default_factory=Counter)
    stop_log: List[str] = field(default_factory=list)
    duplicate_log: List[str] = field(default_factory=list)
    known_log: List[str] = field(default_factory=list)
    pos_mismatches: List[str] = field(default_factory=list)


@dataclass
class Candidate:
    raw: dict
    surface: str
    lemma: str


def read_raw_words(path: Path) -> List[dict]:
    """
    Read and validate the raw words JSON.

    Raises:
        FileNotFoundError: input missing
        ValueError: invalid JSON, not an array, an element is not an object,
            or a present 'word' is not a string
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Raw words file not found: {path}")

    try:
        data = orjson.loads(path.read_bytes())
    except orjson.JSONDecodeError as e:
        raise ValueError(f"Raw words file is not valid JSON: {path}: {e}") from e

    if not isinstance(data, list):
        raise ValueError(f"Raw words file must contain a JSON array: {path}")

    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise ValueError(f"Item {index} in {path} is not an object")
        word = item.get('word')
        if word is not None and not isinstance(word, str):
            raise ValueError(f"Item {index} in {path} has a non-string word: {word!r}")
        count = item.get('count')
        if count is not None and (isinstance(count, bool) or not isinstance(count, int)):
            raise ValueError(f"Item {index} in {path} has a non-integer count: {count!r}")

    return data


def select_candidates(
    raw_words: List[dict],
    refs: ReferenceMaps,
    reducer: Reducer,
) -> Tuple[List[Candidate], IngestReport]:
    """Apply stop-word, duplicate and known-word filters in input order."""
    report = IngestReport()
    seen = set()
    candidates: List[Candidate] = []

    for raw in raw_words:
        word = raw.get('word')
        if not word or not word.strip():
            continue
        surface = word.strip().lower()

        if surface in refs.stop_words:
            report.skipped_stop += 1
            report.stop_log.append(surface)
            continue

        lemma = choose_lemma(surface, refs.levels, refs.zipf, reducer)

        if lemma in refs.stop_words:
            report.skipped_stop += 1
            report.stop_log.append(f"{surface} (lemma: {lemma})")
            continue

        if lemma in seen:
            report.skipped_duplicate += 1
            report.duplicate_log.append(lemma)
            continue

        if lemma in refs.known_words:
            report.skipped_known += 1
            report.known_log.append(lemma)
            continue

        seen.add(lemma)
        candidates.append(Candidate(raw=raw, surface=surface, lemma=lemma))

    return candidates, report


def resolve_pos(
    lemma: str,
    example: str,
    level_info: Optional[dict],
    lexicon: Lexicon,
    tagger: Optional[Tagger] = None,
) -> Tuple[str, Optional[str]]:
    """
    Resolve the part of speech for a lemma.

    Order: first WordNet sense, suffix heuristic, CEFR map; then the example
    sentence overrides when the tagger finds the word.

    Returns:
        (pos, mismatch audit line or None)
    """
    pos = first_sense_pos(lemma, lexicon) or pos_from_suffix(lemma)

    cefr_pos = (level_info or {}).get('pos') or ''
    if not pos and cefr_pos:
        pos = cefr_pos

    mismatch = None
    if pos and cefr_pos and pos != cefr_pos:
        mismatch = f"{lemma}\tWN:{pos}\tCEFR:{cefr_pos}"

    if example:
        context_pos = pos_from_example(example, lemma, tagger)
        if context_pos and context_pos != pos:
            pos = context_pos

    return pos, mismatch


def build_entry(candidate: Candidate, pos: str, refs: ReferenceMaps, settings: Settings) -> dict:
    """Assemble a CleanEntry dict (raw fields first, then derived fields)."""
    level_info = refs.levels.get(candidate.lemma) or {}
    level = level_info.get('level') or settings.default_level

    zipf = refs.zipf.get(candidate.surface)
    if zipf is None:
        zipf = refs.zipf.get(candidate.lemma, settings.default_zipf)

    entry = dict(candidate.raw)
    entry.update({
        'lemma': candidate.lemma,
        'level': level,
        'pos': pos,
        'zipf': zipf,
    })
    entry['tier'] = decide_tier(level, zipf, entry.get('count'))
    return entry


def _write_lines(path: Path, lines: List[str], label: str) -> None:
    """Write an audit side file; a stale file from an earlier run is removed when empty."""
    if not lines:
        path.unlink(missing_ok=True)
        return
    path.write_text('\n'.join(lines), encoding='utf-8')
    logger.info(f"  {len(lines):,} {label} written to {path.name}")


def ingest(
    raw_path: Path,
    settings: Settings,
    refs: Optional[ReferenceMaps] = None,
    reducer: Optional[Reducer] = None,
    lexicon: Optional[Lexicon] = None,
    tagger: Optional[Tagger] = None,
) -> IngestReport:
    """
    Run the ingest pipeline and write the cleaned artifact.

    Args:
        raw_path: Raw words JSON
        settings: Paths and defaults
        refs: Reference maps (loaded from the data directory if None)
        reducer: Lemma reducer (NLTK WordNetLemmatizer if None)
        lexicon: Lexical reference (NLTK WordNet if None)
        tagger: Context POS tagger (nltk.pos_tag if None)

    Returns:
        IngestReport
    """
    logger.info("Ingest")
    logger.info(f"  Input: {raw_path}")

    raw_words = read_raw_words(raw_path)
    logger.info(f"  Raw words: {len(raw_words):,}")

    if refs is None:
        refs = load_reference_maps(settings)
    if reducer is None:
        reducer = WordNetReducer()

    candidates, report = select_candidates(raw_words, refs, reducer)

    if candidates and lexicon is None:
        lexicon = WordNetLexicon()

    def resolve(candidate: Candidate) -> Tuple[str, Optional[str]]:
        return resolve_pos(
            candidate.lemma,
            candidate.raw.get('example') or '',
            refs.levels.get(candidate.lemma),
            lexicon,
            tagger,
        )

    resolved: List[Tuple[str, Optional[str]]] = []
    with ProgressDisplay("Resolving parts of speech", total=len(candidates)) as progress:
        with ThreadPoolExecutor(max_workers=settings.lookup_workers) as executor:
            for i, result in enumerate(executor.map(resolve, candidates), 1):
                resolved.append(result)
                progress.update(Words=i)

    entries: List[Dict] = []
    for candidate, (pos, mismatch) in zip(candidates, resolved):
        if mismatch:
            report.pos_mismatches.append(mismatch)
        entry = build_entry(candidate, pos, refs, settings)
        report.tiers[entry['tier']] += 1
        entries.append(entry)
    report.kept = len(entries)

    # All entries built; write outputs
    settings.data_dir.mkdir(parents=True, exist_ok=True)

    _write_lines(settings.skipped_stop_words_txt, report.stop_log, "stop words/lemmas")
    _write_lines(settings.skipped_duplicates_txt, report.duplicate_log, "duplicate lemmas")
    _write_lines(settings.skipped_known_txt, report.known_log, "known words")

    if report.pos_mismatches:
        with open(settings.pos_mismatch_log, 'a', encoding='utf-8') as f:
            for line in report.pos_mismatches:
                f.write(line + '\n')

    settings.cleaned_json.write_bytes(orjson.dumps(entries))

    logger.info(
        f"  {report.kept:,} words saved to {settings.cleaned_json.name}"
        f" | Skipped: stop {report.skipped_stop}, duplicates {report.skipped_duplicate},"
        f" known {report.skipped_known}"
        f" | Tiers: T1 {report.tiers[1]}, T2 {report.tiers[2]}, T3 {report.tiers[3]}"
    )
    logger.info(f"  -> {settings.cleaned_json}")
    return report
