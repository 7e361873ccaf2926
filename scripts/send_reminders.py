# scripts/send_reminders.py
# Usage (from cron, once a day):
#   python scripts/send_reminders.py [--date YYYY-MM-DD] [--dry-run]
from __future__ import annotations

import argparse
import json
import sys
from datetime import date
from pathlib import Path

# --- ensure project root on sys.path ---
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app import create_app  # noqa: E402
from blueprints.reminders.services import run_reminder_sweep  # noqa: E402


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Send squarehead reminder emails for the active schedule.")
    ap.add_argument("--date", type=date.fromisoformat, default=None,
                    help="evaluate as if today were this date (default: today in the club timezone)")
    ap.add_argument("--dry-run", action="store_true", help="plan only, do not send anything")
    ap.add_argument("--config", default=None, help="config name (dev/prod), default FLASK_CONFIG")
    args = ap.parse_args(argv)

    app = create_app(args.config)
    with app.app_context():
        res = run_reminder_sweep(args.date, dry_run=args.dry_run)
    if not res.ok:
        print(json.dumps(res.error.to_dict(), ensure_ascii=False))
        # нет текущего расписания: для cron это не ошибка
        return 0 if res.error.code == "NOT_FOUND" else 1
    print(json.dumps(res.value.to_dict(), ensure_ascii=False, indent=2))
    return 1 if res.value.failures else 0


if __name__ == "__main__":
    sys.exit(main())
