#!/usr/bin/env python3
"""
Identify low-diversity regions (homozygosity runs) in a FASTA alignment.

Slides a window along the alignment and reports, for every window position,
how many times each distinct sequence occurs.
"""

import argparse
import logging
import sys
from typing import List, Sequence

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt

from alndiversity import __version__
from alndiversity.core import AlignmentError, read_alignment
from alndiversity.output import save_diversity_table
from alndiversity.types import WindowDiversity


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="homoruns",
        description="Count distinct sequences in windows sliding along a FASTA alignment"
    )
    parser.add_argument("--input-file", required=True,
                        help="Input FASTA alignment file")
    parser.add_argument("--window-size", type=int, required=True,
                        help="Window size in base pairs for similarity estimates")
    parser.add_argument("--step-size", type=int, required=True,
                        help="Step size in base pairs between window starts")
    parser.add_argument("--impute-missing", action="store_true",
                        help="Replace missing nucleotides (N, ambiguity codes) with the consensus nucleotide")
    parser.add_argument("--out-file", required=True,
                        help="Output file for the tab-delimited diversity table")
    parser.add_argument("--plot", metavar="PNG_FILE", default=None,
                        help="Also save a plot of sequence diversity along the alignment")
    parser.add_argument("--progress", action="store_true",
                        help="Show a progress bar while scanning windows")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Logging level (default: INFO)")
    parser.add_argument("--version", action="version",
                        version=f"homoruns {__version__}",
                        help="Show program's version number and exit")
    return parser


def parse_arguments(argv: Sequence[str] = None) -> argparse.Namespace:
    """Parse and validate command line arguments."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.window_size <= 0:
        parser.error("window size must be > 0")
    if args.step_size <= 0:
        parser.error("step size must be > 0")
    return args


def setup_logging(log_level: str):
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, log_level),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )


def plot_diversity(windows: List[WindowDiversity], n_sequences: int, output_file: str):
    """Plot number of distinct sequences and top sequence frequency per window."""
    starts = [window.start + 1 for window in windows]
    n_variants = [len(window.counts) for window in windows]
    top_frequency = [max(window.counts) / n_sequences if window.counts else 0.0 for window in windows]

    fig, (ax_variants, ax_top) = plt.subplots(2, 1, figsize=(13, 8), sharex=True)
    ax_variants.plot(starts, n_variants, color='darkcyan', linewidth=1)
    ax_variants.set_ylabel('Distinct sequences')
    ax_variants.set_ylim(0, n_sequences + 1)
    ax_variants.set_title('Sequence diversity along the alignment')

    ax_top.plot(starts, top_frequency, color='darkorange', linewidth=1)
    ax_top.set_ylabel('Most common sequence frequency')
    ax_top.set_xlabel('Window start')
    ax_top.set_ylim(0, 1.05)

    fig.savefig(output_file, dpi=300, bbox_inches='tight')
    plt.close(fig)
    logging.info(f"Diversity plot saved to {output_file}")


def main(argv: Sequence[str] = None):
    args = parse_arguments(argv)
    setup_logging(args.log_level)

    try:
        alignment = read_alignment(args.input_file)
        if args.impute_missing:
            alignment.impute_missing()

        windows = alignment.diversity_in_windows(args.window_size, args.step_size,
                                                 show_progress=args.progress)
        logging.info(f"Scanned {len(windows)} windows of {args.window_size} bp")
        if not windows:
            logging.warning(f"Window size {args.window_size} leaves no complete window in a "
                            f"{alignment.alignment_length} bp alignment")

        with open(args.out_file, 'w') as out:
            n_rows = save_diversity_table(windows, out)
        logging.info(f"Wrote {n_rows} rows to {args.out_file}")

        if args.plot:
            plot_diversity(windows, alignment.n_sequences, args.plot)
    except (AlignmentError, OSError) as e:
        logging.error(str(e))
        build_parser().print_usage(sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
