"""
vocabdeck - Kindle vocabulary lookups to Anki flashcard decks.

Pipeline:
  kindle   -> raw words JSON from a Kindle vocab.db
  ingest   -> lemma, CEFR level, Zipf score, tier per word (cleaned-words.json)
  export   -> next TSV batch per tier, enriched with WordNet definitions
"""

__version__ = "0.3.0"
