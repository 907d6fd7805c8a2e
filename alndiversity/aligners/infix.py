"""Infix (semi-global) alignment backend built on edlib."""

import logging

import edlib

from alndiversity.aligners.config import AlignerConfig
from alndiversity.errors import AlignmentFailure
from alndiversity.types import AlignmentBoundaries


# N in either sequence matches any base
IUPAC_N_EQUALITIES = [("N", base) for base in "ACGT"]


class EdlibInfixAligner:
    """Places the whole query at its minimum edit distance location in the reference.

    Query boundaries always cover the full query. Useful when the query is
    known to lie entirely within the alignment, and much faster than local
    alignment on long references.
    """

    def __init__(self, config: AlignerConfig = None):
        self.config = config or AlignerConfig(backend='infix')

    def align(self, query: str, reference: str, reference_length: int,
              mask_length: int) -> AlignmentBoundaries:
        logging.debug(f"Infix alignment of {len(query)} bp query against {reference_length} bp "
                      f"reference (mask length {mask_length})")
        query = query.upper()
        target = reference[:reference_length].upper()
        result = edlib.align(query, target, mode="HW", task="locations",
                             additionalEqualities=IUPAC_N_EQUALITIES)
        if result["editDistance"] == -1 or not result["locations"]:
            raise AlignmentFailure("no infix alignment between query and consensus found")

        # edlib reports inclusive ends; several equally good locations keep the first
        ref_begin, ref_end = result["locations"][0]
        if ref_begin is None:
            raise AlignmentFailure("edlib did not report a start for the query location")
        return AlignmentBoundaries(
            reference_begin=ref_begin,
            reference_end=ref_end + 1,
            query_begin=0,
            query_end=len(query),
            score=float(-result["editDistance"]),
        )
