"""
Indexing jobs, one per search core.

    >>> from feindexer.indexers import INDEXERS
    >>> sorted(INDEXERS)[:2]
    ['allele', 'probe']
"""

from typing import Dict, Type

from .allele import AlleleIndexer
from .base import Counter, Indexer
from .probe import ProbeIndexer
from .qs_other_bucket import QSOtherBucketIndexer
from .recombinase_matrix import RecombinaseMatrixIndexer
from .reference import ReferenceIndexer
from .sequence import SequenceIndexer
from .vocab_browser import VocabBrowserIndexer

# --------------------------------------------------------------------- #
#  Registry: job name → class, in default run order                      #
# --------------------------------------------------------------------- #
INDEXERS: Dict[str, Type[Indexer]] = {
    cls.name: cls
    for cls in (
        ReferenceIndexer,
        AlleleIndexer,
        SequenceIndexer,
        ProbeIndexer,
        VocabBrowserIndexer,
        RecombinaseMatrixIndexer,
        QSOtherBucketIndexer,
    )
}

__all__ = [
    "INDEXERS",
    "Counter",
    "Indexer",
    "AlleleIndexer",
    "ProbeIndexer",
    "QSOtherBucketIndexer",
    "RecombinaseMatrixIndexer",
    "ReferenceIndexer",
    "SequenceIndexer",
    "VocabBrowserIndexer",
]
