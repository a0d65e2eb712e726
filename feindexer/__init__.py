"""
MGI front-end indexer – root package
------------------------------------

Rebuilds the front-end search cores from the read-only front-end database.

Convenience re-exports:

    >>> from feindexer import SourceDatabase, SolrClient, BatchWriter, INDEXERS
"""

from importlib.metadata import PackageNotFoundError, version

# --------------------------------------------------------------------- #
#  Public version string                                                #
# --------------------------------------------------------------------- #
try:
    __version__: str = version(__name__)          # read from installed metadata
except PackageNotFoundError:                      # fallback for source checkout
    __version__ = "0.0.0+"                        # pragma: no cover

# --------------------------------------------------------------------- #
#  Handy one-liners for the REPL                                        #
# --------------------------------------------------------------------- #
from .chunker import KeyRange, key_ranges       # ✂️  key-range chunking
from .config import Settings, load_settings     # ⚙️  YAML settings
from .documents import Document                 # 📄  index documents
from .extract import SourceDatabase             # 🗄   source DB session
from .indexers import INDEXERS                  # 🗂   job registry
from .load import BatchWriter, SolrClient       # 🚚  batched writes

__all__ = [
    "__version__",
    "INDEXERS",
    "BatchWriter",
    "Document",
    "KeyRange",
    "Settings",
    "SolrClient",
    "SourceDatabase",
    "key_ranges",
    "load_settings",
]
