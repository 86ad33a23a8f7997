from typing import Iterable, List, NamedTuple, Optional

from sqlalchemy import create_engine, select, text
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session

from .config import settings
from .errors import StorageError
from .models import Base, Contact


# dialects that support INSERT ... ON CONFLICT DO NOTHING RETURNING
_UPSERT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": pg_insert,
}


class InsertResult(NamedTuple):
    inserted: bool
    id: Optional[int] = None


def _engine_connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.DATABASE_URL,
    connect_args=_engine_connect_args(settings.DATABASE_URL),
)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def init_db() -> None:
    Base.metadata.create_all(bind=engine)


def get_db() -> Iterable[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ping(db: Session) -> None:
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        raise StorageError(f"DB error: {e}") from e


def _insert_ignoring_conflict(db: Session, values: dict) -> Optional[int]:
    """Single-statement insert; returns the new id or None when the key exists."""
    insert = _UPSERT_INSERTS[db.get_bind().dialect.name]
    stmt = (
        insert(Contact)
        .values(**values)
        .on_conflict_do_nothing(index_elements=["country_code", "phone"])
        .returning(Contact.id)
    )
    new_id = db.execute(stmt).scalar_one_or_none()
    db.commit()
    return new_id


def _insert_catching_integrity(db: Session, values: dict) -> Optional[int]:
    contact = Contact(**values)
    db.add(contact)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return None
    db.refresh(contact)
    return contact.id


def insert_contact(
    db: Session,
    *,
    name: str,
    phone: str,
    country_code: str,
    created_at: str,
) -> InsertResult:
    """
    Atomically insert a contact unless (country_code, phone) is already stored.

    A duplicate key is not an error: it comes back as ``inserted=False``.
    A write that changed nothing although the key is absent is reported
    as StorageError instead of being taken for a duplicate.
    """
    values = {
        "name": name,
        "phone": phone,
        "country_code": country_code,
        "created_at": created_at,
    }
    try:
        if db.get_bind().dialect.name in _UPSERT_INSERTS:
            new_id = _insert_ignoring_conflict(db, values)
        else:
            new_id = _insert_catching_integrity(db, values)

        if new_id is not None:
            return InsertResult(inserted=True, id=new_id)

        if not contact_exists(db, phone=phone, country_code=country_code):
            raise StorageError("insert wrote no row and no existing contact was found")
        return InsertResult(inserted=False)
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError(f"DB error: {e}") from e


def contact_exists(db: Session, *, phone: str, country_code: str) -> bool:
    try:
        row = db.execute(
            select(Contact.id)
            .where(Contact.phone == phone, Contact.country_code == country_code)
            .limit(1)
        ).first()
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError(f"DB error: {e}") from e
    return row is not None


def list_contacts(db: Session) -> List[Contact]:
    """All contacts, newest first."""
    try:
        return (
            db.query(Contact)
            .order_by(Contact.created_at.desc(), Contact.id.desc())
            .all()
        )
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError(f"DB error: {e}") from e


def list_contacts_for_export(db: Session) -> List[Contact]:
    # insertion order
    try:
        return db.query(Contact).order_by(Contact.id.asc()).all()
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError(f"DB error: {e}") from e
