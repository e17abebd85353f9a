"""SQLAlchemy models."""

from datetime import datetime, timezone

from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Import all models so Base.metadata.create_all() picks them up
from app.models.user import User  # noqa: E402, F401
from app.models.goal import Goal  # noqa: E402, F401
from app.models.task import GoalTask, Task  # noqa: E402, F401
from app.models.progress import Progress  # noqa: E402, F401
