"""Local aligner backends used to place a query sequence on the consensus."""

from alndiversity.aligners.base import LocalAligner
from alndiversity.aligners.config import AlignerConfig, BACKENDS
from alndiversity.aligners.infix import EdlibInfixAligner
from alndiversity.aligners.local import BiopythonLocalAligner


def create_aligner(config: AlignerConfig = None) -> LocalAligner:
    """Build the backend named by config.backend."""
    config = config or AlignerConfig()
    if config.backend == 'infix':
        return EdlibInfixAligner(config)
    return BiopythonLocalAligner(config)


__all__ = [
    "AlignerConfig",
    "BACKENDS",
    "BiopythonLocalAligner",
    "EdlibInfixAligner",
    "LocalAligner",
    "create_aligner",
]
