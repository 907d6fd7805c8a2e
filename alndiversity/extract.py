#!/usr/bin/env python3
"""
Extract the unique sequences of one alignment window.

The window is given either by start position and size, or by a query
sequence: the query is aligned to the alignment consensus and the best
matching region becomes the window.
"""

import argparse
import logging
import sys
from typing import Sequence

from alndiversity import __version__
from alndiversity.aligners import BACKENDS, AlignerConfig, create_aligner
from alndiversity.core import AlignmentError, read_alignment, read_query_sequence
from alndiversity.output import OUTPUT_FORMATS, save_unique_sequences


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="extract-window",
        description="Extract unique sequences from a FASTA alignment window"
    )
    parser.add_argument("--input-file", required=True,
                        help="Input FASTA alignment file")
    parser.add_argument("--start-position", type=int, default=1,
                        help="Window start position, 1-based (default: 1)")
    parser.add_argument("--window-size", type=int, default=None,
                        help="Window size in base pairs (required unless --query-sequence is given)")
    parser.add_argument("--impute-missing", action="store_true",
                        help="Replace missing nucleotides (N, ambiguity codes) with the consensus nucleotide")
    parser.add_argument("--query-sequence", metavar="FASTA_FILE", default=None,
                        help="FASTA file with a query sequence; the window containing its best match "
                             "is extracted and --start-position/--window-size are ignored")
    parser.add_argument("--aligner", choices=BACKENDS, default="local",
                        help="Query aligner: local (Smith-Waterman) or infix (edlib, whole query) "
                             "(default: local)")
    parser.add_argument("--match-score", type=int, default=2,
                        help="Local alignment match score (default: 2)")
    parser.add_argument("--mismatch-penalty", type=int, default=2,
                        help="Local alignment mismatch penalty (default: 2)")
    parser.add_argument("--gap-open-penalty", type=int, default=3,
                        help="Local alignment gap opening penalty (default: 3)")
    parser.add_argument("--gap-extend-penalty", type=int, default=1,
                        help="Local alignment gap extension penalty (default: 1)")
    parser.add_argument("--out-format", type=str.lower, choices=OUTPUT_FORMATS, default="tab",
                        help="Output file format, fasta or tab, case-insensitive (default: tab)")
    parser.add_argument("--out-file", required=True,
                        help="Output file name")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Logging level (default: INFO)")
    parser.add_argument("--version", action="version",
                        version=f"extract-window {__version__}",
                        help="Show program's version number and exit")
    return parser


def parse_arguments(argv: Sequence[str] = None) -> argparse.Namespace:
    """Parse and validate command line arguments."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.query_sequence is None:
        if args.window_size is None:
            parser.error("--window-size is required without --query-sequence")
        if args.window_size <= 0:
            parser.error("window size must be > 0")
        if args.start_position < 1:
            parser.error("start position must be 1 or greater")
    try:
        args.aligner_config = AlignerConfig.from_args(args)
    except ValueError as e:
        parser.error(str(e))
    return args


def setup_logging(log_level: str):
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, log_level),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )


def main(argv: Sequence[str] = None):
    args = parse_arguments(argv)
    setup_logging(args.log_level)

    try:
        alignment = read_alignment(args.input_file)
        if args.impute_missing:
            alignment.impute_missing()

        query = None
        statistics = None
        if args.query_sequence is None:
            start = args.start_position - 1  # make position 0-based
            size = args.window_size
        else:
            aligner = create_aligner(args.aligner_config)
            query_sequence = read_query_sequence(args.query_sequence)
            statistics = alignment.extract_sequence(query_sequence, aligner)
            start = statistics.reference_start
            size = statistics.reference_length
            query = query_sequence[statistics.query_start:statistics.query_start + statistics.query_length]

        consensus_window = alignment.extract_consensus_window(start, size)
        variants = alignment.extract_window_sorted(start, size)
        logging.info(f"Found {len(variants)} unique sequences in window {start + 1}-{start + size}")

        with open(args.out_file, 'w') as out:
            save_unique_sequences(variants, consensus_window, args.out_format, out,
                                  query=query, statistics=statistics)
        logging.info(f"Unique sequences written to {args.out_file}")
    except (AlignmentError, OSError) as e:
        logging.error(str(e))
        build_parser().print_usage(sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
