import logging
import sys

from admissions.core.config import settings


def configure_logging() -> None:
    """
    Configure root logging for the API process.
    Call once before the FastAPI app starts serving.
    """
    logging.basicConfig(
        level=logging.DEBUG if settings.database_echo else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # APScheduler is chatty at INFO for every run
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
