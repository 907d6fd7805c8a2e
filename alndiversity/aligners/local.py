"""Smith-Waterman local alignment backend built on Biopython."""

import logging

from Bio.Align import PairwiseAligner

from alndiversity.aligners.config import AlignerConfig
from alndiversity.errors import AlignmentFailure
from alndiversity.types import AlignmentBoundaries


class BiopythonLocalAligner:
    """Local aligner using Bio.Align.PairwiseAligner in local mode.

    Scoring follows the classic striped Smith-Waterman defaults (match 2,
    mismatch -2, gap open -3, gap extend -1). Query and reference are compared
    case-insensitively.
    """

    def __init__(self, config: AlignerConfig = None):
        config = config or AlignerConfig()
        self._aligner = PairwiseAligner()
        self._aligner.mode = 'local'
        self._aligner.match_score = config.match_score
        self._aligner.mismatch_score = -config.mismatch_penalty
        self._aligner.open_gap_score = -config.gap_open_penalty
        self._aligner.extend_gap_score = -config.gap_extend_penalty

    def align(self, query: str, reference: str, reference_length: int,
              mask_length: int) -> AlignmentBoundaries:
        # No suboptimal hits are reported, so the mask only shows up in the log
        logging.debug(f"Local alignment of {len(query)} bp query against {reference_length} bp "
                      f"reference (mask length {mask_length})")
        target = reference[:reference_length].upper()
        alignments = self._aligner.align(target, query.upper())
        try:
            best = alignments[0]
        except IndexError:
            raise AlignmentFailure("no local alignment between query and consensus found") from None
        if best.score <= 0:
            raise AlignmentFailure("no positive-scoring local alignment between query and consensus found")

        coordinates = best.coordinates
        return AlignmentBoundaries(
            reference_begin=int(coordinates[0, 0]),
            reference_end=int(coordinates[0, -1]),
            query_begin=int(coordinates[1, 0]),
            query_end=int(coordinates[1, -1]),
            score=float(best.score),
        )
