"""Message boundary detection."""

from .batch_splitter import BatchSplitter, split, split_single

__all__ = [
    'BatchSplitter',
    'split',
    'split_single',
]
