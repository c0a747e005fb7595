from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from pricing_portal.core.config import settings
from pricing_portal.core.errors import ConflictError, ValidationError

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    connect_args["check_same_thread"] = False

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session, conflict_message: str = "Record was modified concurrently; reload and retry"):
    """
    Run a multi-step write as one transaction: commit once at the end, roll
    everything back on any error. Version or uniqueness clashes become 409,
    other constraint failures 400.
    """
    try:
        yield db
        db.commit()
    except StaleDataError:
        db.rollback()
        raise ConflictError(conflict_message)
    except IntegrityError as exc:
        db.rollback()
        if is_unique_violation(exc):
            raise ConflictError(conflict_message)
        raise ValidationError("Invalid data: a required value is missing or out of range")
    except Exception:
        db.rollback()
        raise


def is_unique_violation(exc: IntegrityError) -> bool:
    # sqlite: "UNIQUE constraint failed", postgres: "duplicate key value"
    message = str(exc.orig).lower()
    return "unique" in message or "duplicate" in message
