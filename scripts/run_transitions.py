"""
Run sector mapping transitions from the CLI.

Examples:
    python -m scripts.run_transitions
    python -m scripts.run_transitions --as-of 2026-01-01
    python -m scripts.run_transitions --upcoming 14
"""

from __future__ import annotations

import argparse
import json
from datetime import date, datetime
from zoneinfo import ZoneInfo

from app.config import get_transition_scheduler_settings
from app.errors import SectorMappingError
from app.logging_utils import configure_logging
from app.repositories.sqlalchemy_mapping_store import SQLAlchemyMappingStore
from app.schemas.sector_mapping import TransitionReportResponse, UpcomingTransitionsResponse
from app.services.sector_transition_service import SectorTransitionService
from db.session import SessionLocal


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}") from exc


def main() -> int:
    parser = argparse.ArgumentParser(description="Apply the day's sector mapping transitions.")
    parser.add_argument(
        "--as-of",
        dest="as_of",
        type=_parse_date,
        default=None,
        help="Day to process (YYYY-MM-DD). Defaults to today in TRANSITION_TIMEZONE.",
    )
    parser.add_argument(
        "--upcoming",
        dest="upcoming",
        type=int,
        default=None,
        metavar="DAYS",
        help="Only list transitions due in the next DAYS days; change nothing.",
    )
    args = parser.parse_args()

    configure_logging()
    zone = ZoneInfo(get_transition_scheduler_settings().timezone)
    as_of = args.as_of or datetime.now(zone).date()

    with SessionLocal() as db:
        service = SectorTransitionService(SQLAlchemyMappingStore(db))
        try:
            if args.upcoming is not None:
                upcoming = service.get_upcoming_transitions(args.upcoming, as_of=as_of)
                payload = UpcomingTransitionsResponse.from_domain(upcoming).model_dump(mode="json")
            else:
                report = service.run_transitions(as_of)
                payload = TransitionReportResponse.from_domain(report).model_dump(mode="json")
        except SectorMappingError as exc:
            print(json.dumps(exc.to_dict(), indent=2))
            return 1

    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
