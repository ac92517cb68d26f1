"""
Pickems maintenance tasks run by an operator against the live database.

    python scripts/pickems_maintenance.py init-fields
    python scripts/pickems_maintenance.py rescore
    python scripts/pickems_maintenance.py award-top-cut
"""

from __future__ import annotations

import argparse
import sys
from typing import TYPE_CHECKING

from firebase_admin import firestore

from redrace import create_app
from redrace.constants import PICKEMS_COLLECTION
from redrace.core import BatchProcessor
from redrace.pickems.models import new_pickems
from redrace.pickems.services import PickemsService

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client


def init_fields(db: Client) -> int:
    """Add the scoring fields missing from entries created before they existed."""
    defaults = new_pickems("")
    processor = BatchProcessor(db)
    updated = 0
    for doc in db.collection(PICKEMS_COLLECTION).stream():
        data = doc.to_dict() or {}
        missing = {
            key: value
            for key, value in defaults.items()
            if key != "userId" and key not in data
        }
        if "userId" not in data:
            missing["userId"] = doc.id
        if missing:
            processor.update(doc.reference, missing)
            updated += 1
    processor.commit()
    return updated


def main() -> None:
    """Main entry point for the maintenance script."""
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("task", choices=["init-fields", "rescore", "award-top-cut"])
    args = parser.parse_args()

    app = create_app()
    with app.app_context():
        db = firestore.client()
        try:
            if args.task == "init-fields":
                print(f"Initialised fields on {init_fields(db)} pickems entries.")
            elif args.task == "rescore":
                summary = PickemsService.rescore_completed_races(db)
                print(
                    f"Rescored pickems: {summary['awarded']} awards, "
                    f"{summary['revoked']} revocations, "
                    f"{summary['entriesUpdated']} entries updated."
                )
            else:
                awarded = PickemsService.award_top_cut_points(app.config["TOURNAMENT_ID"], db)
                for row in awarded:
                    print(f"  {row['userId']}: {row['correctPicks']} correct picks")
                print(f"Top cut points awarded to {len(awarded)} entries.")
        except Exception as e:
            print(f"\nAn error occurred: {e}")
            sys.exit(1)


if __name__ == "__main__":
    main()
