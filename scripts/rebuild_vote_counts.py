#!/usr/bin/env python3
"""
Rebuild Vote Counters

Recomputes every book's likes/dislikes from the vote ledger. Use after
importing votes or books outside the API.

USAGE:
    python scripts/rebuild_vote_counts.py
"""

import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from catalog.config import get_settings
from catalog.database import StorageContext, create_storage
from catalog.services.votes import recount_votes


def rebuild(storage: StorageContext) -> int:
    """Recount all books in one transaction. Returns the number of books."""
    return storage.run(recount_votes)


if __name__ == "__main__":
    storage = create_storage(get_settings())
    try:
        updated = rebuild(storage)
    finally:
        storage.dispose()
    print(f"Recounted votes for {updated} book(s).")
