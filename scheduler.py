# scheduler.py
import pytz
from apscheduler.schedulers.background import BackgroundScheduler


def start_scheduler():
    """Background scheduler running debounced place searches."""
    scheduler = BackgroundScheduler(
        timezone=pytz.utc,
        job_defaults={'coalesce': True, 'max_instances': 10}
    )
    scheduler.start()
    return scheduler
