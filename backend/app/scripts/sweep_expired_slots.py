from __future__ import annotations

import argparse
import logging

from app.db.session import SessionLocal
from app.services.slot_expiry import sweep_all


def main() -> int:
    parser = argparse.ArgumentParser(description="Remove expired slots from every provider catalog.")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Count expired slots without deleting them.",
    )
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    session = SessionLocal()
    try:
        removed = sweep_all(session, apply=not args.dry_run)
        print("Expired slot sweep")
        print(f"Expired slots: {removed}")
        if args.dry_run:
            print("Dry run only. Re-run without --dry-run to persist changes.")
        return 0
    except Exception as exc:
        session.rollback()
        raise exc
    finally:
        session.close()


if __name__ == "__main__":
    raise SystemExit(main())
