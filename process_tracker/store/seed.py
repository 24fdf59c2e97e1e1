"""
Demo data for local development.

Loaded with ``flask seed-demo``. Writes straight through the store, so
the workflow rules are bypassed and historic timestamps are preserved.
"""

import logging
from datetime import datetime, timezone

from process_tracker.models.process_change import ACCEPTED, OPEN, PROPOSED

logger = logging.getLogger(__name__)

DEMO_OWNER_ID = 1


def _ts(year, month, day):
    return datetime(year, month, day, tzinfo=timezone.utc)


DEMO_CHANGES = [
    {
        "status": PROPOSED,
        "title": "Change ETCH chemical formula",
        "process_area": "ETCH",
        "proposal_date": _ts(2023, 11, 1),
        "target_date": _ts(2023, 12, 15),
        "acceptance_date": None,
        "reason": "Current chemical formula is causing inconsistent etch rates across wafers.",
        "change_overview": (
            "Replace current Buffered Oxide Etch (BOE) with a new formulation that has "
            "shown better uniformity in lab tests.\n\n"
            "The new formula has a 7:1 ratio instead of the current 6:1 ratio."
        ),
        "general_comments": "",
        "attachments": ["/uploads/change-1/etch_test_results.pdf"],
        "spec_updated": False,
        "created_at": _ts(2023, 11, 1),
        "updated_at": _ts(2023, 11, 1),
    },
    {
        "status": OPEN,
        "title": "Update Diffusion temperature profile",
        "process_area": "DIFFUSION",
        "proposal_date": _ts(2023, 10, 15),
        "target_date": _ts(2023, 12, 1),
        "acceptance_date": None,
        "reason": "Current temperature profile is causing excessive dopant diffusion.",
        "change_overview": (
            "Modify the temperature ramp rate from 10°C/min to 5°C/min.\n"
            "Reduce max temperature from 1050°C to 1025°C.\n"
            "Extend soak time from 30 minutes to 35 minutes."
        ),
        "general_comments": "Reviewed initial proposal. Please include simulation results for the new profile.",
        "attachments": [],
        "spec_updated": True,
        "created_at": _ts(2023, 10, 15),
        "updated_at": _ts(2023, 10, 25),
    },
    {
        "status": ACCEPTED,
        "title": "New saw blade for wafer dicing",
        "process_area": "SAW",
        "proposal_date": _ts(2023, 9, 5),
        "target_date": _ts(2023, 10, 1),
        "acceptance_date": _ts(2023, 9, 20),
        "reason": "Current blades are causing excessive chipping on wafer edges.",
        "change_overview": (
            "Replace the current 2.0mm diamond blade with a new 1.8mm resin-bond blade "
            "from Vendor XYZ. Tests show 35% reduction in edge chipping."
        ),
        "general_comments": (
            "Approved after successful test runs. "
            "Please monitor closely during initial implementation."
        ),
        "attachments": [
            "/uploads/change-3/blade_test_report.pdf",
            "/uploads/change-3/vendor_specs.pdf",
        ],
        "spec_updated": True,
        "created_at": _ts(2023, 9, 5),
        "updated_at": _ts(2023, 9, 20),
    },
]


def seed_demo_changes(store, *, owner_id: int = DEMO_OWNER_ID, force: bool = False) -> int:
    """
    Insert the demo changes owned by ``owner_id``.

    Does nothing when the store already holds changes unless ``force``.
    Returns the number of changes inserted.
    """
    if not force and sum(store.count_by("status").values()):
        logger.info("Change store not empty: demo seed skipped")
        return 0

    for change in DEMO_CHANGES:
        store.create(dict(change, change_owner=owner_id))
    logger.info("Seeded %d demo changes for owner %s", len(DEMO_CHANGES), owner_id)
    return len(DEMO_CHANGES)
