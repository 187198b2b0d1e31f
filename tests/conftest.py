"""Pytest configuration and shared fixtures.

Nothing here touches NLTK data: the reducer, lexicon and tagger are small
in-memory stand-ins with pinned senses, so results do not depend on the
installed WordNet version.
"""
import json
import tempfile
from pathlib import Path

import pytest

from vocabdeck.config import Settings
from vocabdeck.lexicon import Sense
from vocabdeck.reference import ReferenceMaps


class FakeReducer:
    """Noun/verb/adjective reductions from fixed tables (identity otherwise)."""

    NOUNS = {
        "glasses": "glass",
        "mice": "mouse",
        "books": "book",
        "boons": "boon",
        "wanderings": "wandering",
    }
    VERBS = {
        "wandered": "wander",
        "wanderings": "wander",
        "running": "run",
        "ran": "run",
        "glasses": "glass",
    }
    ADJECTIVES = {
        "better": "good",
    }

    def noun(self, word):
        return self.NOUNS.get(word, word)

    def verb(self, word):
        return self.VERBS.get(word, word)

    def adjective(self, word):
        return self.ADJECTIVES.get(word, word)


class FakeLexicon:
    """Pinned senses per lemma; lemmas in `failing` raise on lookup."""

    def __init__(self, senses=None, failing=()):
        self.senses = senses if senses is not None else dict(PINNED_SENSES)
        self.failing = set(failing)
        self.calls = []

    def lookup(self, lemma):
        self.calls.append(lemma)
        if lemma in self.failing:
            raise RuntimeError(f"corrupt index entry for {lemma}")
        return list(self.senses.get(lemma, []))


PINNED_SENSES = {
    "boon": [
        Sense("s", "very close and convivial", ["boon"], 0),
        Sense("n", "something that is desirable, favorable, or beneficial", ["blessing", "boon"], 3),
    ],
    "glass": [
        Sense("n", "a brittle transparent solid with irregular atomic structure", ["glass"], 30),
        Sense("n", "a container for holding liquids while drinking", ["drinking_glass", "glass"], 12),
        Sense("v", "enclose with glass; cover with glass", ["glass", "glaze"], 1),
    ],
    "wander": [
        Sense("v", "move about aimlessly or without any destination; roam", ["roll", "wander", "swan", "stray", "tramp"], 11),
        Sense("n", "a leisurely walk", ["wander"], 0),
    ],
    "run": [
        Sense("n", "a score in baseball made by a runner touching all four bases", ["run", "tally"], 20),
        Sense("v", "move fast by using one's feet", ["run"], 50),
        Sense("v", "flee; take to one's heels", ["scat", "run", "scarper", "turn_tail", "lam"], 8),
    ],
    "serendipity": [
        Sense("n", "good luck in making unexpected and fortunate discoveries", ["serendipity"], 0),
    ],
    "quickly": [
        Sense("r", "with rapid movements", ["quickly", "rapidly", "speedily", "chop-chop", "apace"], 15),
    ],
}


def fake_tagger(tokens):
    """Tag everything NN except a few fixed words."""
    tags = {"wandered": "VBD", "quickly": "RB", "boon": "JJ", "running": "VBG"}
    return [(t, tags.get(t.lower(), "NN")) for t in tokens]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def settings(temp_dir):
    """Settings rooted in a fresh data directory."""
    data_dir = temp_dir / "data"
    data_dir.mkdir()
    return Settings(data_dir=data_dir, lookup_workers=4)


@pytest.fixture
def refs():
    """Small reference maps."""
    return ReferenceMaps(
        levels={
            "glass": {"level": "A1", "pos": "noun"},
            "wander": {"level": "B2", "pos": "verb"},
            "serendipity": {"level": "C2", "pos": "noun"},
            "boon": {"level": "C1", "pos": "noun"},
            "run": {"level": "A1", "pos": "verb"},
        },
        zipf={
            "glass": 4.6,
            "wander": 3.6,
            "serendipity": 2.1,
            "boon": 2.9,
            "run": 5.8,
            "quickly": 4.9,
        },
        stop_words={"the", "and", "good"},
        known_words={"mouse"},
    )


@pytest.fixture
def reducer():
    return FakeReducer()


@pytest.fixture
def lexicon():
    return FakeLexicon()


@pytest.fixture
def write_json(temp_dir):
    """Write a JSON document into the temp dir and return its path."""
    def _write(name, data):
        path = temp_dir / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path
    return _write
