from app.db.session import engine
from app.db.base import Base

# IMPORTANT: import models so they register with Base.metadata
import app.db.models  # noqa: F401


def init_db(bind=None) -> None:
    Base.metadata.create_all(bind=bind or engine)
