"""Command-line import of denormalized person/family documents."""

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from kinbook.core.reconcile import import_documents
from kinbook.database import Base, SessionLocal, engine
from kinbook.errors import BackendUnavailable
from kinbook.logging_config import configure_logging
from kinbook.models import user, person, person_link, family, event, memory  # noqa: F401
from kinbook.schemas.import_schema import ImportBundle


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kinbook-import",
        description="Import people and families exported from a document store",
    )
    parser.add_argument("path", type=Path, help='JSON file with "people" and "families" arrays')
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit non-zero if any relation was recorded on only one side",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        bundle = ImportBundle.model_validate(json.loads(args.path.read_text(encoding="utf-8")))
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        logger.error("Cannot read %s: %s", args.path, exc)
        return 2

    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        report = import_documents(db, bundle)
    except BackendUnavailable as exc:
        logger.error("Import aborted: %s", exc.message)
        return 1
    finally:
        db.close()

    print(
        f"people={report.people_created} families={report.families_created} "
        f"links={report.links_created} memberships={report.memberships_created} "
        f"asymmetric={len(report.asymmetries)} dangling={len(report.dangling)}"
    )

    if args.strict and report.asymmetries:
        return 3
    return 0


if __name__ == "__main__":
    sys.exit(main())
