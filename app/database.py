from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
import os

# Storage handle for the configuration override store. Tables are created and
# the pool disposed by the application lifespan in app.main.
SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+pysqlite:///./pharmacy_reports.db")

# Sessions are opened from FastAPI's threadpool
_connect_args = {"check_same_thread": False} if SQLALCHEMY_DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=_connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

class Base(DeclarativeBase):
	pass


def close_storage() -> None:
	"""Release pooled connections at shutdown."""
	engine.dispose()
