from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
import os

# Allow overriding database via environment.
# Default is a lightweight local sqlite DB for development runs.
SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+pysqlite:///./report_sync.db")

engine = create_engine(SQLALCHEMY_DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

class Base(DeclarativeBase):
	pass


def init_db(bind=None) -> None:
	"""Create missing tables. Models must be imported so they register on ``Base``."""
	import report_sync.models.db  # noqa: F401
	Base.metadata.create_all(bind=bind or engine)
