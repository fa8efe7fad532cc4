"""Re-deliver a form or submission event by hand.

    python -m formflow.scripts.resend_webhook --form <uuid> --action update
    python -m formflow.scripts.resend_webhook --submission <uuid>
"""
from __future__ import annotations

import argparse
import json
import sys

from formflow.core.logging_setup import setup_logging
from formflow.db.session import SessionLocal
from formflow.services.webhook_dispatch import DispatchResult, FORM_ACTIONS, dispatch_form_event, dispatch_submission_event


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Send a form or submission webhook synchronously.")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--form", dest="form_id", help="form id")
    target.add_argument("--submission", dest="submission_id", help="submission id")
    parser.add_argument("--action", choices=sorted(FORM_ACTIONS), default="update", help="form event action")
    return parser


def resend(form_id: str | None = None, submission_id: str | None = None, action: str = "update") -> DispatchResult:
    db = SessionLocal()
    try:
        if form_id:
            return dispatch_form_event(db, form_id, action)
        return dispatch_submission_event(db, submission_id)
    finally:
        db.close()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()
    result = resend(form_id=args.form_id, submission_id=args.submission_id, action=args.action)
    print(json.dumps(result.as_response(), ensure_ascii=False))
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
