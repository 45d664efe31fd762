"""
CLI entrypoint for the event reminder job. Run from cron, e.g.:

  python -m portal.reminders

Or hourly: 0 * * * * cd /path/to/portal && .venv/bin/python -m portal.reminders
"""

import asyncio
import logging
import sys

from portal.core.config import get_settings
from portal.core.database import SessionLocal
from portal.services.mailer import Mailer
from portal.services.reminders import process_pending_reminders

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Send every due PENDING reminder (one batch of REMINDER_BATCH_SIZE)."""
    settings = get_settings()
    db = SessionLocal()
    try:
        results = asyncio.run(process_pending_reminders(db, settings, Mailer(settings)))
        logger.info(
            "Reminder job completed: processed=%s sent=%s failed=%s",
            results["processed"],
            results["sent"],
            results["failed"],
        )
        return 0
    except Exception as e:
        logger.exception("Reminder job failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
