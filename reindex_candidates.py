"""Standalone script to re-normalize the metadata of every indexed CV.

Recomputes skills, skills_normalized, education and location_normalized from
the stored raw values and writes back only the fields that changed. Run it
after the skill taxonomy or the location aliases change.

With --dedupe it instead removes repeated uploads of the same CV (same
filename and same opening text), keeping the most recently uploaded copy.

Usage:
    python reindex_candidates.py [--dry-run] [--limit N] [--dedupe]
"""
import asyncio
import sys
from typing import Optional

from cv_search.services.candidate_indexing_service import CandidateIndexingService
from cv_search.services.vector_db_service import get_vector_db_service
from cv_search.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


async def reindex_candidates(dry_run: bool = False, limit: Optional[int] = None) -> int:
    """Re-normalize stored metadata. Returns a process exit code."""
    try:
        vector_db = await get_vector_db_service()
        service = CandidateIndexingService(vector_db)

        summary = await service.reindex_metadata(dry_run=dry_run, limit=limit)

        print("\n" + "=" * 80)
        print("REINDEX SUMMARY")
        print("=" * 80)
        print(f"Scanned: {summary['scanned_count']}")
        print(f"{'Would update' if dry_run else 'Updated'}: {summary['updated_count']}")
        print(f"Failed: {summary['failed_count']}")
        if summary["failed_ids"]:
            print(f"Failed IDs: {', '.join(summary['failed_ids'])}")
        print("=" * 80)
        logger.info("Reindex finished", extra=summary)

        return 1 if summary["failed_count"] else 0

    except Exception as e:
        print(f"\nERROR: {e}")
        logger.error(f"FAILED: Reindex failed: {e}", extra={"error": str(e)}, exc_info=True)
        return 1


async def dedupe_candidates(dry_run: bool = False, limit: Optional[int] = None) -> int:
    """Remove repeated uploads of the same CV. Returns a process exit code."""
    try:
        vector_db = await get_vector_db_service()
        service = CandidateIndexingService(vector_db)

        summary = await service.dedupe_candidates(dry_run=dry_run, limit=limit)

        print("\n" + "=" * 80)
        print("DEDUPE SUMMARY")
        print("=" * 80)
        print(f"Scanned: {summary['scanned_count']}")
        print(f"Duplicate groups: {summary['duplicate_groups']}")
        print(f"{'Would remove' if dry_run else 'Removed'}: {summary['removed_count']}")
        print(f"Failed: {summary['failed_count']}")
        print(f"Remaining: {summary['scanned_count'] - summary['removed_count']}")
        print("=" * 80)
        logger.info("Dedupe finished", extra=summary)

        return 1 if summary["failed_count"] else 0

    except Exception as e:
        print(f"\nERROR: {e}")
        logger.error(f"FAILED: Dedupe failed: {e}", extra={"error": str(e)}, exc_info=True)
        return 1


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Re-normalize metadata of every indexed CV")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report which CVs would change without writing anything"
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Limit number of CVs to process (default: None = all)"
    )
    parser.add_argument(
        "--dedupe",
        action="store_true",
        help="Remove duplicate uploads instead of re-normalizing metadata"
    )

    args = parser.parse_args()
    setup_logging()

    print("=" * 80)
    print("DEDUPLICATING CVS" if args.dedupe else "REINDEXING CV METADATA")
    print("=" * 80)
    print(f"Dry run: {args.dry_run}")
    if args.limit:
        print(f"Limit: {args.limit}")
    print("=" * 80)

    run = dedupe_candidates if args.dedupe else reindex_candidates
    sys.exit(asyncio.run(run(dry_run=args.dry_run, limit=args.limit)))
