# =============================================================================
# Upload Policy PDFs to PostgreSQL
# =============================================================================
#
# Extracts text from every policy PDF under a category-per-directory tree
# and stores it in the policy_documents table. Already-stored policies are
# skipped, so the script can be re-run after adding files.
#
# Usage:
#   python scripts/upload_policies.py                 # ./public/policies
#   python scripts/upload_policies.py path/to/policies
#   python scripts/upload_policies.py --create-tables path/to/policies
# =============================================================================

import argparse
import logging
import sys

from app.config import settings
from app.db.engine import get_sync_engine
from app.db.models import Base
from app.services.ingest import ingest_policies


def main() -> int:
    parser = argparse.ArgumentParser(description="Upload policy PDFs to the corpus")
    parser.add_argument(
        "policies_dir",
        nargs="?",
        default="public/policies",
        help="Directory with one sub-directory per policy category",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create the policy_documents table if it does not exist",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )

    if args.create_tables:
        Base.metadata.create_all(get_sync_engine())

    try:
        report = ingest_policies(args.policies_dir)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("=" * 60)
    print("Upload complete!")
    print(f"   Successfully uploaded: {report.uploaded} policies")
    print(f"   Skipped (already stored): {report.skipped} policies")
    if report.failed:
        print(f"   Errors: {report.failed} policies")
    print("=" * 60)
    return 0 if report.failed == 0 else 2


if __name__ == "__main__":
    sys.exit(main())
