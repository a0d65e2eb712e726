#!/usr/bin/env python3

"""
Rebuilds the MGI front-end search cores from the front-end database:

  1. Load config.yml + the (optionally age-encrypted) sensitive config
  2. For every requested indexer: open a source DB session, clear the core,
     stream documents in batches, commit once
  3. Exit 0 when every job succeeded, 1 on the first fatal error,
     2 for an unknown indexer name

Logs go both to screen and to  logs/feindexer_<timestamp>.log

example of CLI run:
`
python main.py --config config.yml reference allele
`
"""

from __future__ import annotations

import argparse
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from feindexer.config import Settings, load_settings
from feindexer.errors import IndexerError
from feindexer.extract import SourceDatabase
from feindexer.indexers import INDEXERS
from feindexer.load import SolrClient
from feindexer.utils.log import configure_logging, get_logger

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_UNKNOWN_INDEXER = 2


# ───────────────────────────────────────────────────────────────────────────
#  Helpers
# ───────────────────────────────────────────────────────────────────────────
def _parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="MGI front-end indexer – rebuild search cores")
    ap.add_argument(
        "--config", type=Path, default=Path("config.yml"),
        help="Public YAML config (keys: index, indexers, logging)"
    )
    ap.add_argument(
        "--sensitive-config", type=Path,
        default=Path(".config/sensitive_config.yml.age"),
        help="Path to the sensitive YAML (db credentials); *.age files are decrypted with age"
    )
    ap.add_argument("--db-url", default=None, help="Source DB URL (JDBC or SQLAlchemy style)")
    ap.add_argument("--db-user", default=None, help="Source DB user")
    ap.add_argument("--db-password", default=None, help="Source DB password")
    ap.add_argument("--index-url", default=None, help="Search server base URL, e.g. http://host:8983/solr")
    ap.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING ... (default from config)")
    ap.add_argument("--list", action="store_true", help="List the available indexers and exit")
    ap.add_argument(
        "indexers", nargs="*", metavar="INDEXER",
        help="Indexers to run, in order (default: all)"
    )
    return ap


def run_indexer(name: str, settings: Settings) -> Dict[str, int]:
    """One full rebuild, with its own DB session and index client."""
    cls = INDEXERS[name]
    client = SolrClient(settings.index.base_url, cls.core, timeout=settings.index.timeout)
    try:
        with SourceDatabase(settings.db) as db:
            return cls(db, client, settings.for_indexer(name)).run()
    finally:
        client.close()


# ───────────────────────────────────────────────────────────────────────────
#  Main driver
# ───────────────────────────────────────────────────────────────────────────
def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parser().parse_args(argv)

    if args.list:
        for name, cls in INDEXERS.items():
            print(f"{name:20s} → core {cls.core}")
        return EXIT_OK

    unknown = [n for n in args.indexers if n not in INDEXERS]
    if unknown:
        print(f"ERROR: unknown indexer(s): {', '.join(unknown)} "
              f"(choose from {', '.join(INDEXERS)})", file=sys.stderr)
        return EXIT_UNKNOWN_INDEXER
    names: List[str] = list(args.indexers) or list(INDEXERS)

    overrides = {
        "db_url": args.db_url,
        "db_user": args.db_user,
        "db_password": args.db_password,
        "index_url": args.index_url,
        "log_level": args.log_level,
    }
    try:
        settings = load_settings(args.config, args.sensitive_config, overrides)
    except IndexerError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    # Logging: console + file
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_path = Path(settings.log_dir) / f"feindexer_{ts}.log"
    configure_logging(log_path, level=settings.log_level, datefmt=settings.log_datefmt, tz=settings.tz)
    logger = get_logger(__name__)
    logger.info("🚀  Indexing started: %s", ", ".join(names))

    start = time.perf_counter()
    summary: Dict[str, Dict[str, int]] = {}
    for name in names:
        try:
            summary[name] = run_indexer(name, settings)
        except IndexerError as exc:
            logger.exception("❌  %s failed: %s", name, exc)
            return EXIT_FAILURE
        except Exception:
            logger.exception("❌  %s failed unexpectedly", name)
            return EXIT_FAILURE

    logger.info("🎉  Indexed %d core(s) in %.2fs", len(summary), time.perf_counter() - start)
    logger.info("📊  Summary: %s", summary)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
