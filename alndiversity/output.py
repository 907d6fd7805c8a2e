"""
Writers for diversity tables and unique-sequence tables.

Variant sequences are written relative to the consensus window: positions
that agree with the consensus become a placeholder marker, the rest show the
variant's own (upper-case) nucleotide.
"""

import csv
import logging
from typing import List, Optional, Sequence, TextIO, Tuple

from Bio import SeqIO
from Bio.Seq import Seq
from Bio.SeqRecord import SeqRecord

from alndiversity.types import AlignmentStatistics, WindowDiversity


OUTPUT_FORMATS = ('tab', 'fasta')
IDENTITY_MARKER = '.'


def save_diversity_table(windows: Sequence[WindowDiversity], handle: TextIO) -> int:
    """
    Write one row per (window, distinct sequence) with the sequence count.

    Window starts are reported 1-based.

    Returns:
        Number of data rows written
    """
    writer = csv.writer(handle, delimiter='\t', lineterminator='\n')
    writer.writerow(['window_start', 'count'])
    n_rows = 0
    for window in windows:
        for count in window.counts:
            writer.writerow([window.start + 1, count])
            n_rows += 1
    return n_rows


def diff_from_consensus(sequence: str, consensus: str, marker: str = IDENTITY_MARKER) -> str:
    """Mask positions identical to the consensus (case-insensitive) with marker."""
    if len(sequence) != len(consensus):
        raise ValueError(f"sequence length ({len(sequence)}) differs from consensus length ({len(consensus)})")
    return ''.join(marker if nuc.upper() == cons.upper() else nuc.upper()
                   for nuc, cons in zip(sequence, consensus))


def _location_description(statistics: AlignmentStatistics) -> str:
    return (f"query_start={statistics.query_start + 1} query_length={statistics.query_length} "
            f"reference_start={statistics.reference_start + 1} "
            f"reference_length={statistics.reference_length}")


def save_unique_sequences(variants: Sequence[Tuple[str, int]], consensus_window: str,
                          out_format: str, handle: TextIO,
                          query: Optional[str] = None,
                          statistics: Optional[AlignmentStatistics] = None) -> int:
    """
    Write the distinct sequences of a window against its consensus.

    Args:
        variants: (sequence, count) pairs, written in the given order as var1, var2, ...
        consensus_window: Consensus for the same window
        out_format: 'tab' or 'fasta' (case-insensitive)
        handle: Open text handle to write to
        query: Matched part of the query sequence, if the window came from a query
        statistics: Query location, written as metadata when given

    Returns:
        Number of variants written
    """
    out_format = out_format.lower()
    if out_format not in OUTPUT_FORMATS:
        raise ValueError(f"Unknown output format '{out_format}'; expected one of {', '.join(OUTPUT_FORMATS)}")

    named = [(f"var{i}", count, diff_from_consensus(sequence, consensus_window))
             for i, (sequence, count) in enumerate(variants, start=1)]

    if out_format == 'tab':
        if statistics is not None:
            handle.write(f"# {_location_description(statistics)}\n")
        writer = csv.writer(handle, delimiter='\t', lineterminator='\n')
        writer.writerow(['name', 'count', 'sequence'])
        if query is not None:
            writer.writerow(['query', '-', query.upper()])
        writer.writerow(['consensus', '-', consensus_window])
        for name, count, masked in named:
            writer.writerow([name, count, masked])
    else:
        records: List[SeqRecord] = []
        if query is not None:
            description = _location_description(statistics) if statistics is not None else ""
            records.append(SeqRecord(Seq(query.upper()), id="query", description=description))
        records.append(SeqRecord(Seq(consensus_window), id="consensus", description=""))
        for name, count, masked in named:
            records.append(SeqRecord(Seq(masked), id=name, description=f"count={count}"))
        SeqIO.write(records, handle, 'fasta')

    logging.debug(f"Wrote {len(named)} unique sequences in {out_format} format")
    return len(named)
