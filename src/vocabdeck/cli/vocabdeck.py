#!/usr/bin/env python3
"""
vocabdeck - Turn Kindle vocabulary lookups into Anki decks.

Commands:
  vocabdeck extract <vocab.db> [--out-dir DIR]   Kindle DB -> words_detailed.json
  vocabdeck ingest <words.json>                  -> data/cleaned-words.json
  vocabdeck export --tier N [--batch K]          -> data/decks/deck_tN_KK.tsv
  vocabdeck stats                                Per-tier progress
  vocabdeck setup-nltk                           Download WordNet and tagger data

Global options: --config PATH, --data-dir DIR, -v/--verbose
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from vocabdeck.config import load_settings
from vocabdeck.tiers import TIERS


logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


def cmd_extract(args: argparse.Namespace, settings) -> int:
    from vocabdeck.kindle import extract

    out_dir = Path(args.out_dir) if args.out_dir else Path('.')
    extract(Path(args.database), out_dir)
    return 0


def cmd_ingest(args: argparse.Namespace, settings) -> int:
    from vocabdeck.ingest import ingest

    ingest(Path(args.file).resolve(), settings)
    return 0


def cmd_export(args: argparse.Namespace, settings) -> int:
    from vocabdeck.export import export_tier

    result = export_tier(args.tier, settings, batch_size=args.batch)
    if result is None:
        return 1
    return 0


def cmd_stats(args: argparse.Namespace, settings) -> int:
    from vocabdeck.export import tier_stats

    stats = tier_stats(settings)
    if stats is None:
        return 1

    print(f"{'Tier':<6}{'Total':>8}{'Batches':>10}{'Exported':>10}{'Remaining':>11}")
    for tier, row in stats.items():
        print(f"{tier:<6}{row['total']:>8,}{row['batches']:>10,}{row['exported']:>10,}{row['remaining']:>11,}")
    return 0


def cmd_setup_nltk(args: argparse.Namespace, settings) -> int:
    from vocabdeck.lexicon import ensure_nltk_data

    logger.info("Checking NLTK data")
    missing = ensure_nltk_data(download=not args.check)
    return 1 if missing else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='vocabdeck',
        description='Turn Kindle vocabulary lookups into Anki decks',
    )
    parser.add_argument('--config', default=None,
                        help='Path to YAML config (default: ./vocabdeck.yaml if present)')
    parser.add_argument('--data-dir', default=None,
                        help='Data directory (overrides config data_dir)')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Debug logging')

    sub = parser.add_subparsers(dest='cmd', required=True)

    extract = sub.add_parser('extract', help='Extract looked-up words from a Kindle vocab.db')
    extract.add_argument('database', help='Path to vocab.db')
    extract.add_argument('--out-dir', default=None,
                         help='Where to write words_detailed.json and words.txt (default: .)')
    extract.set_defaults(func=cmd_extract)

    ingest = sub.add_parser('ingest', help='Normalize and tier raw words from JSON')
    ingest.add_argument('file', help='Path to the raw words JSON (e.g. words_detailed.json)')
    ingest.set_defaults(func=cmd_ingest)

    export = sub.add_parser('export', help='Write the next deck batch (TSV) for a tier')
    export.add_argument('--tier', type=int, choices=TIERS, required=True,
                        help='Tier to export (1 = hardest)')
    export.add_argument('--batch', type=int, default=None,
                        help='Maximum words per deck file (default: 30)')
    export.set_defaults(func=cmd_export)

    stats = sub.add_parser('stats', help='Show per-tier export progress')
    stats.set_defaults(func=cmd_stats)

    setup = sub.add_parser('setup-nltk', help='Download WordNet and POS tagger data')
    setup.add_argument('--check', action='store_true',
                       help='Only report missing resources, do not download')
    setup.set_defaults(func=cmd_setup_nltk)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.cmd == 'export' and args.batch is not None and args.batch < 1:
        parser.error('--batch must be >= 1')

    try:
        settings = load_settings(args.config, args.data_dir)
        return args.func(args, settings)
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        return 1


if __name__ == '__main__':
    sys.exit(main())
