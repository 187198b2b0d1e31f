"""
Command-line interface entry points for vocabdeck.

Entry points:
- vocabdeck: extract, ingest, export, stats, setup-nltk
"""
