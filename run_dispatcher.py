"""
Run the notification dispatcher (and optionally the daily reminders) by hand
"""
import argparse
import logging
from datetime import date

from sailsync.application.notification_dispatcher import NotificationDispatcher, DISPATCHER_NAME
from sailsync.application.reminders import run_daily_reminders
from sailsync.infrastructure.db.session import session_scope
from sailsync.infrastructure.eventlog.repository import EventLogRepository

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("run_dispatcher")


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--reset", action="store_true", help="reprocess the whole event log")
    parser.add_argument("--reminders", metavar="YYYY-MM-DD", help="also run the daily reminders for this day")
    args = parser.parse_args()

    try:
        with session_scope() as db:
            if args.reset:
                EventLogRepository(db).save_checkpoint(DISPATCHER_NAME, 0)
                db.commit()
                logger.info("Checkpoint %s reset", DISPATCHER_NAME)

            created = NotificationDispatcher(db).run()
            logger.info("Notifications created: %d", created)

            if args.reminders:
                counts = run_daily_reminders(db, date.fromisoformat(args.reminders))
                logger.info("Reminders: %s", counts)
    except Exception:
        logger.exception("Dispatcher run failed")
        raise


if __name__ == "__main__":
    main()
