"""Import a doctor's legacy inline availability as weekly templates.

Usage:
    python -m clinic_scheduler.migrate_legacy_schedule PROVIDER_ID availability.json
"""
import json
import sys

from clinic_scheduler.database import Base, SessionLocal, engine, ensure_scheduling_schema
from clinic_scheduler.models import weekly_template
from clinic_scheduler.services.legacy_schedule import import_legacy_availability


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 2:
        print(__doc__, file=sys.stderr)
        return 2

    provider_id, path = args
    with open(path, encoding="utf-8") as handle:
        legacy = json.load(handle)

    if not isinstance(legacy, dict):
        print("Legacy availability must be a JSON object keyed by day name.", file=sys.stderr)
        return 1

    Base.metadata.create_all(bind=engine, tables=[weekly_template.WeeklyTemplate.__table__])
    ensure_scheduling_schema()

    db = SessionLocal()
    try:
        report = import_legacy_availability(db, provider_id, legacy)
    finally:
        db.close()

    print(f"created: {report.created}")
    print(f"already configured: {report.existing}")
    for day_of_week, reason in sorted(report.skipped.items()):
        print(f"skipped {day_of_week}: {reason}", file=sys.stderr)

    return 1 if report.skipped else 0


if __name__ == "__main__":
    sys.exit(main())
