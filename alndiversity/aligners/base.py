"""Interface for local aligner backends."""

from typing import Protocol

from alndiversity.types import AlignmentBoundaries


class LocalAligner(Protocol):
    """Finds the best local match of a query within a reference.

    Any object with a conforming align() method can be passed to
    AlignmentStore.extract_sequence.
    """

    def align(self, query: str, reference: str, reference_length: int,
              mask_length: int) -> AlignmentBoundaries:
        """Align query against the first reference_length symbols of reference.

        mask_length is the minimum distance between the best and a suboptimal
        alignment for backends that report suboptimal hits.
        """
        ...
