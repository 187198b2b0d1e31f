"""
lemma.py — Choose a canonical dictionary form (lemma) for a looked-up word.

Kindle records the surface form the reader tapped ("glasses", "wandered").
The lemma is chosen among the noun, verb and adjective reductions of that
form, preferring whichever one the level or frequency maps know about, so
that the lemma carries metadata even when a different reduction would be
linguistically tidier.
"""

from typing import Dict, List, Mapping, Optional, Protocol


class Reducer(Protocol):
    """Anything that can reduce a word to its noun, verb or adjective base."""

    def noun(self, word: str) -> str: ...

    def verb(self, word: str) -> str: ...

    def adjective(self, word: str) -> str: ...


class WordNetReducer:
    """Reducer backed by NLTK's WordNetLemmatizer (morphy rules + exceptions)."""

    def __init__(self):
        from nltk.stem import WordNetLemmatizer

        self._lemmatizer = WordNetLemmatizer()
        self._cache: Dict[tuple, str] = {}

    def _reduce(self, word: str, pos: str) -> str:
        key = (word, pos)
        if key not in self._cache:
            self._cache[key] = self._lemmatizer.lemmatize(word, pos=pos)
        return self._cache[key]

    def noun(self, word: str) -> str:
        return self._reduce(word, 'n')

    def verb(self, word: str) -> str:
        return self._reduce(word, 'v')

    def adjective(self, word: str) -> str:
        return self._reduce(word, 'a')


def lemma_candidates(word: str, reducer: Reducer) -> List[str]:
    """
    Candidate lemmas in preference order: noun, verb, adjective, word.

    Empty reductions are dropped and repeats collapse to their first position.
    """
    ordered = [reducer.noun(word), reducer.verb(word), reducer.adjective(word), word]
    candidates: List[str] = []
    for candidate in ordered:
        if candidate and candidate not in candidates:
            candidates.append(candidate)
    return candidates


def choose_lemma(
    word: str,
    levels: Mapping[str, dict],
    zipf: Mapping[str, float],
    reducer: Reducer,
) -> str:
    """
    Pick the lemma for a lowercased word.

    1. First candidate that is a key of the level map or the Zipf map.
    2. Otherwise the first reduction that differs from the word.
    3. Otherwise the word itself.

    Args:
        word: Lowercased surface form
        levels: CEFR level map
        zipf: Zipf frequency map
        reducer: Noun/verb/adjective reducer

    Returns:
        Non-empty lemma (for non-empty input)
    """
    candidates = lemma_candidates(word, reducer)

    for candidate in candidates:
        if candidate in levels or candidate in zipf:
            return candidate

    reduced: Optional[str] = next((c for c in candidates if c != word), None)
    return reduced or word
