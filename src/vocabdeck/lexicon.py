"""
lexicon.py — Lexical lookups against WordNet (via NLTK).

Provides:
  - Sense / WordNetLexicon: candidate senses for a lemma
  - pick_best_sense: ranked sense selection for a desired part of speech
  - enrich_lemma: short definition + up to three same-POS synonyms
  - resolve_pos helpers: WordNet -> suffix heuristic -> CEFR -> context tagger

Lookups are best effort. A lemma WordNet does not know, or a lookup that
raises, yields an empty definition and no synonyms.

WordNet POS codes:
  n -> noun, v -> verb, a/s -> adjective (s = satellite), r -> adverb
"""

import logging
import re
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

import nltk


logger = logging.getLogger(__name__)

WORDNET_POS = {
    'n': 'noun',
    'v': 'verb',
    'a': 'adjective',
    's': 'adjective',
    'r': 'adverb',
}

MAX_SYNONYMS = 3

NLTK_RESOURCES = [
    ('corpora/wordnet', 'wordnet'),
    ('corpora/omw-1.4', 'omw-1.4'),
    ('taggers/averaged_perceptron_tagger_eng', 'averaged_perceptron_tagger_eng'),
]


def ensure_nltk_data(download: bool = True) -> List[str]:
    """
    Check NLTK resources and download the missing ones.

    Returns:
        Names of resources still missing afterwards
    """
    missing = []
    for resource_path, package in NLTK_RESOURCES:
        try:
            nltk.data.find(resource_path)
            logger.info(f"  {package}: found")
        except LookupError:
            if download:
                logger.info(f"  {package}: downloading...")
                nltk.download(package, quiet=True)
                try:
                    nltk.data.find(resource_path)
                    continue
                except LookupError:
                    pass
            missing.append(package)
            logger.warning(f"  {package}: missing")
    return missing


def standard_pos(code: Optional[str]) -> str:
    """Map a WordNet POS code to noun/verb/adjective/adverb ('' if unknown)."""
    if not code:
        return ''
    return WORDNET_POS.get(code.lower(), '')


@dataclass
class Sense:
    """One candidate sense from the lexical reference."""
    pos: str
    definition: str
    synonyms: List[str] = field(default_factory=list)
    freq_count: int = 0

    @property
    def standard_pos(self) -> str:
        return standard_pos(self.pos)


class Lexicon(Protocol):
    def lookup(self, lemma: str) -> List[Sense]: ...


# The NLTK WordNet reader seeks and reads shared file handles; every call
# that touches it (synsets, lemmas, counts, glosses) must hold this lock.
_WORDNET_LOCK = threading.Lock()


class WordNetLexicon:
    """Sense lookups against the NLTK WordNet corpus."""

    def __init__(self, wordnet=None):
        if wordnet is None:
            from nltk.corpus import wordnet

        self._wn = wordnet
        with _WORDNET_LOCK:
            # LazyCorpusLoader is not safe to trigger from several threads at once
            self._wn.synsets('test')

    def lookup(self, lemma: str) -> List[Sense]:
        senses = []
        key = lemma.lower().replace(' ', '_')
        with _WORDNET_LOCK:
            for synset in self._wn.synsets(key):
                lemmas = synset.lemmas()
                freq = sum(l.count() for l in lemmas if l.name().lower() == key)
                senses.append(Sense(
                    pos=synset.pos(),
                    definition=synset.definition(),
                    synonyms=[l.name() for l in lemmas],
                    freq_count=freq,
                ))
        return senses


# =============================================================================
# Sense selection
# =============================================================================

def rank_senses(senses: Sequence[Sense], desired_pos: str = '') -> List[Sense]:
    """
    Order senses for selection.

    Rank key, in order:
      1. senses matching desired_pos first (only when some sense matches)
      2. higher freq_count first
      3. original lexicon order
    """
    has_match = bool(desired_pos) and any(s.standard_pos == desired_pos for s in senses)

    def key(indexed: Tuple[int, Sense]):
        index, sense = indexed
        mismatch = 1 if has_match and sense.standard_pos != desired_pos else 0
        return (mismatch, -(sense.freq_count or 0), index)

    return [sense for _, sense in sorted(enumerate(senses), key=key)]


def pick_best_sense(senses: Sequence[Sense], desired_pos: str = '') -> Optional[Sense]:
    """
    Choose one sense for a lemma.

    Decision table:
      - a sense of the desired POS, most frequent first
      - else the most frequent sense of any POS
      - when the desired POS is noun and the winner is not, the best noun
        sense wins if there is one
    """
    ranked = rank_senses(senses, desired_pos)
    if not ranked:
        return None

    best = ranked[0]
    if desired_pos == 'noun' and best.standard_pos != 'noun':
        best = next((s for s in ranked if s.standard_pos == 'noun'), best)
    return best


@dataclass
class Enrichment:
    definition: str = ''
    synonyms: List[str] = field(default_factory=list)


def short_definition(definition: str) -> str:
    """First clause of a gloss (text before the first semicolon)."""
    return (definition or '').split(';')[0].strip()


def collect_synonyms(senses: Sequence[Sense], pos: str, lemma: str) -> List[str]:
    """Up to MAX_SYNONYMS distinct synonyms of the given standard POS, excluding lemma."""
    own = lemma.lower()
    synonyms: List[str] = []
    for sense in senses:
        if sense.standard_pos != pos:
            continue
        for raw in sense.synonyms:
            synonym = raw.replace('_', ' ').strip().lower()
            if synonym and synonym != own and synonym not in synonyms:
                synonyms.append(synonym)
    return synonyms[:MAX_SYNONYMS]


def enrich_lemma(lemma: str, desired_pos: str, lexicon: Lexicon) -> Enrichment:
    """
    Definition and synonyms for a lemma; never raises.

    Args:
        lemma: Lemma to look up
        desired_pos: Expected standard POS ('' if unknown)
        lexicon: Lexical reference

    Returns:
        Enrichment (empty when nothing is found or the lookup fails)
    """
    try:
        senses = lexicon.lookup(lemma)
    except Exception as e:
        logger.error(f"Lookup failed for '{lemma}': {e}")
        return Enrichment()

    best = pick_best_sense(senses, desired_pos)
    if best is None:
        logger.debug(f"No senses for '{lemma}'")
        return Enrichment()

    return Enrichment(
        definition=short_definition(best.definition),
        synonyms=collect_synonyms(senses, best.standard_pos, lemma),
    )


# =============================================================================
# Part-of-speech resolution
# =============================================================================

SUFFIX_POS = [
    (('ly',), 'adverb'),
    (('ing', 'ed'), 'verb'),
    (('ness', 'tion'), 'noun'),
    (('ous', 'ive', 'ful'), 'adjective'),
]

_TOKEN_RE = re.compile(r"[A-Za-z][A-Za-z'-]*")

Tagger = Callable[[List[str]], List[Tuple[str, str]]]


def first_sense_pos(lemma: str, lexicon: Lexicon) -> str:
    """Standard POS of the first listed sense ('' if none or on error)."""
    try:
        senses = lexicon.lookup(lemma)
    except Exception as e:
        logger.error(f"Lookup failed for '{lemma}': {e}")
        return ''
    return senses[0].standard_pos if senses else ''


def pos_from_suffix(lemma: str) -> str:
    for suffixes, pos in SUFFIX_POS:
        if lemma.endswith(suffixes):
            return pos
    return ''


def _penn_to_standard(tag: str, lemma: str) -> str:
    if tag.startswith('NN'):
        return 'noun'
    if tag.startswith('VB'):
        # -ed / -ing participles read as adjectives on a vocabulary card
        if lemma.endswith(('ed', 'ing')):
            return 'adjective'
        return 'verb'
    if tag.startswith('JJ'):
        return 'adjective'
    if tag.startswith('RB'):
        return 'adverb'
    return ''


_tagger = None
_TAGGER_LOCK = threading.Lock()


def nltk_tagger(tokens: List[str]) -> List[Tuple[str, str]]:
    """
    Penn Treebank tags from one shared PerceptronTagger.

    nltk.pos_tag reloads the model on every call, so the tagger is built
    once on first use. Raises LookupError when the model data is missing.
    """
    global _tagger
    with _TAGGER_LOCK:
        if _tagger is None:
            from nltk.tag.perceptron import PerceptronTagger

            _tagger = PerceptronTagger()
            logger.debug("POS tagger model loaded")
        return _tagger.tag(tokens)


def pos_from_example(example: str, lemma: str, tagger: Optional[Tagger] = None) -> str:
    """
    POS of the lemma as used in its example sentence ('' if not found).

    Looks for the exact lemma token, then its plural, then any token whose
    lowercase text equals the lemma. A tagger without its model data
    (LookupError) gives ''.
    """
    if not example:
        return ''

    tokens = _TOKEN_RE.findall(example)
    if not tokens:
        return ''

    try:
        tagged = (tagger or nltk_tagger)(tokens)
    except LookupError as e:
        logger.debug(f"POS tagger unavailable: {e}")
        return ''

    plural = lemma + 'es' if lemma.endswith('s') else lemma + 's'

    match = next((t for t in tagged if t[0] == lemma), None)
    if match is None:
        match = next((t for t in tagged if t[0] == plural), None)
    if match is None:
        match = next((t for t in tagged if t[0].lower() == lemma), None)
    if match is None:
        return ''

    return _penn_to_standard(match[1], lemma)
