"""Tests for Kindle vocab.db extraction."""
import sqlite3

import orjson
import pytest

from vocabdeck.kindle import extract, format_listing, read_lookups


@pytest.fixture
def vocab_db(temp_dir):
    """A vocab.db with the three Kindle tables that extraction reads."""
    path = temp_dir / "vocab.db"
    conn = sqlite3.connect(path)
    conn.executescript("""
        CREATE TABLE WORDS (id TEXT PRIMARY KEY, word TEXT, stem TEXT, lang TEXT);
        CREATE TABLE BOOK_INFO (id TEXT PRIMARY KEY, title TEXT);
        CREATE TABLE LOOKUPS (id TEXT PRIMARY KEY, word_key TEXT, book_key TEXT, usage TEXT);
    """)
    conn.executemany("INSERT INTO WORDS VALUES (?, ?, ?, ?)", [
        ("en:wandered", "wandered", "wander", "en"),
        ("en:glasses", "glasses", "glass", "en"),
        ("en:of", "of", "of", "en"),
        ("ru:слово", "слово", "слово", "ru"),
        ("en:Boon", "Boon", "Boon", "en"),
        ("en:none", "none", None, "en"),
    ])
    conn.executemany("INSERT INTO BOOK_INFO VALUES (?, ?)", [
        ("b1", "Essays: A Collection"),
        ("b2", "The Lens"),
    ])
    conn.executemany("INSERT INTO LOOKUPS VALUES (?, ?, ?, ?)", [
        ("l1", "en:wandered", "b1", "They wandered off."),
        ("l2", "en:wandered", "b1", "They wandered off."),
        ("l3", "en:wandered", "b1", "They wandered off."),
        ("l4", "en:glasses", "b2", " She took off her glasses. "),
        ("l5", "en:of", "b2", "Out of time."),
        ("l6", "ru:слово", "b2", "Слово."),
        ("l7", "en:Boon", "missing-book", "A boon to us all."),
        ("l8", "en:none", "b2", "None at all."),
    ])
    conn.commit()
    conn.close()
    return path


class TestReadLookups:

    def test_aggregates_per_stem(self, vocab_db):
        words = read_lookups(vocab_db)
        assert [w["word"] for w in words] == ["boon", "glass", "wander"]

        wander = words[2]
        assert wander["count"] == 3
        assert wander["example"] == "They wandered off."
        # subtitle after ':' dropped
        assert wander["book"] == "Essays"

    def test_trims_usage(self, vocab_db):
        glass = read_lookups(vocab_db)[1]
        assert glass["example"] == "She took off her glasses."
        assert glass["book"] == "The Lens"

    def test_short_and_cyrillic_stems_dropped(self, vocab_db):
        words = {w["word"] for w in read_lookups(vocab_db)}
        assert "of" not in words
        assert "слово" not in words

    def test_missing_book_gives_empty_title(self, vocab_db):
        assert read_lookups(vocab_db)[0]["book"] == ""

    def test_database_left_unchanged(self, vocab_db):
        before = vocab_db.read_bytes()
        read_lookups(vocab_db)
        assert vocab_db.read_bytes() == before

    def test_missing_database(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            read_lookups(temp_dir / "vocab.db")


def test_format_listing():
    text = format_listing([
        {"word": "boon", "count": 1, "example": "A boon.", "book": ""},
        {"word": "glass", "count": 2, "example": "Glasses.", "book": "The Lens"},
    ])
    assert text == (
        "boon (1)\n  book: \n  example: A boon.\n\n"
        "glass (2)\n  book: The Lens\n  example: Glasses."
    )


def test_extract_writes_json_and_listing(vocab_db, temp_dir):
    out_dir = temp_dir / "out"
    json_path, text_path = extract(vocab_db, out_dir)

    words = orjson.loads(json_path.read_bytes())
    assert json_path.name == "words_detailed.json"
    assert [w["word"] for w in words] == ["boon", "glass", "wander"]
    assert set(words[0]) == {"word", "count", "example", "book"}

    assert text_path.read_text(encoding="utf-8").startswith("boon (1)\n")
