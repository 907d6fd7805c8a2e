"""Configuration for local aligner backends."""

from dataclasses import dataclass


BACKENDS = ('local', 'infix')


@dataclass
class AlignerConfig:
    """Configuration for query localization.

    Attributes:
        backend: Which aligner to use ('local' Smith-Waterman or 'infix' edlib)
        match_score: Score added for each matching position (default: 2)
        mismatch_penalty: Score subtracted for each mismatch (default: 2)
        gap_open_penalty: Score subtracted for the first position of a gap (default: 3)
        gap_extend_penalty: Score subtracted for each further gap position (default: 1)
    """
    backend: str = 'local'
    match_score: int = 2
    mismatch_penalty: int = 2
    gap_open_penalty: int = 3
    gap_extend_penalty: int = 1

    def __post_init__(self):
        if self.backend not in BACKENDS:
            raise ValueError(f"Unknown aligner backend '{self.backend}'; expected one of {', '.join(BACKENDS)}")
        if self.match_score <= 0:
            raise ValueError("match_score must be positive")
        if min(self.mismatch_penalty, self.gap_open_penalty, self.gap_extend_penalty) < 0:
            raise ValueError("penalties cannot be negative")

    @classmethod
    def from_args(cls, args) -> 'AlignerConfig':
        """Create config from command-line arguments.

        Attributes missing from args fall back to the defaults above.
        """
        defaults = cls()
        return cls(
            backend=getattr(args, 'aligner', defaults.backend),
            match_score=getattr(args, 'match_score', defaults.match_score),
            mismatch_penalty=getattr(args, 'mismatch_penalty', defaults.mismatch_penalty),
            gap_open_penalty=getattr(args, 'gap_open_penalty', defaults.gap_open_penalty),
            gap_extend_penalty=getattr(args, 'gap_extend_penalty', defaults.gap_extend_penalty),
        )
