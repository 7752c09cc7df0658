import logging

from career_advisor.db.session import engine
from career_advisor.db.base import Base
import career_advisor.db.models  # noqa: F401  registers every table

logger = logging.getLogger(__name__)


def init_db(bind=None) -> None:
    """Create any missing tables."""
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables ensured")
