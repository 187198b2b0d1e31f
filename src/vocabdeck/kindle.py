"""
kindle.py — Extract looked-up words from a Kindle vocab.db.

Reads:
  - vocab.db (SQLite, opened read-only) from the Kindle's system/vocabulary/

Outputs:
  - words_detailed.json   [{"word", "count", "example", "book"}, ...]
  - words.txt             human-readable listing

One row per word stem: lookup count, one usage sentence and one book title.
Stems of two characters or fewer and stems containing Cyrillic are dropped.
"""

import logging
import re
import sqlite3
from pathlib import Path
from typing import Dict, List, Tuple

import orjson


logger = logging.getLogger(__name__)

LOOKUPS_QUERY = """
    SELECT
      w.stem AS word,
      COUNT(*) AS count,
      MAX(l.usage) AS usage,
      MAX(b.title) AS title
    FROM LOOKUPS l
    JOIN WORDS w ON w.id = l.word_key
    LEFT JOIN BOOK_INFO b ON b.id = l.book_key
    WHERE w.stem IS NOT NULL
    GROUP BY w.stem
    HAVING LENGTH(w.stem) > 2
    ORDER BY LOWER(w.stem) ASC, count DESC
"""

_CYRILLIC_RE = re.compile(r"[\u0400-\u04FF]")


def read_lookups(db_path: Path) -> List[Dict]:
    """Aggregate lookups per stem from a Kindle vocabulary database."""
    db_path = Path(db_path)
    if not db_path.exists():
        raise FileNotFoundError(f"Kindle database not found: {db_path}")

    conn = sqlite3.connect(f"{db_path.resolve().as_uri()}?mode=ro", uri=True)
    try:
        rows = conn.execute(LOOKUPS_QUERY).fetchall()
    finally:
        conn.close()

    words = []
    for stem, count, usage, title in rows:
        word = (stem or '').strip().lower()
        if not word or _CYRILLIC_RE.search(word):
            continue
        words.append({
            'word': word,
            'count': count,
            'example': (usage or '').strip(),
            'book': (title or '').strip().split(':')[0].strip(),
        })

    words.sort(key=lambda w: (w['word'].casefold(), -w['count']))
    return words


def format_listing(words: List[Dict]) -> str:
    blocks = [
        f"{w['word']} ({w['count']})\n  book: {w['book']}\n  example: {w['example']}"
        for w in words
    ]
    return '\n\n'.join(blocks)


def extract(db_path: Path, out_dir: Path) -> Tuple[Path, Path]:
    """
    Write words_detailed.json and words.txt for a Kindle database.

    Returns:
        (json path, text path)
    """
    logger.info("Kindle extraction")
    logger.info(f"  Database: {db_path}")

    words = read_lookups(db_path)

    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    json_path = out_dir / "words_detailed.json"
    text_path = out_dir / "words.txt"

    json_path.write_bytes(orjson.dumps(words, option=orjson.OPT_INDENT_2))
    text_path.write_text(format_listing(words), encoding='utf-8')

    logger.info(f"  {len(words):,} words extracted")
    logger.info(f"  -> {json_path}")
    logger.info(f"  -> {text_path}")
    return json_path, text_path
