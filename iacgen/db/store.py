from __future__ import annotations
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from iacgen.core.errors import PersistError
from iacgen.db.models import RequestRecord


class RequestStore:
    """Append-only audit records of finished generation runs."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def save(self, external_id: str, storage_path: str, status_code: int, message: str) -> RequestRecord:
        record = RequestRecord(
            external_id=external_id,
            storage_path=storage_path,
            status_code=status_code,
            message=message,
        )
        try:
            with self.session_factory() as db:
                db.add(record)
                db.commit()
                db.refresh(record)
        except SQLAlchemyError as e:
            raise PersistError(f"Failed to save request to database: {e}") from e
        return record

    def find_latest_by_external_id(self, external_id: str) -> RequestRecord | None:
        stmt = (
            select(RequestRecord)
            .where(RequestRecord.external_id == external_id)
            .order_by(RequestRecord.created_at.desc(), RequestRecord.id.desc())
            .limit(1)
        )
        with self.session_factory() as db:
            return db.scalars(stmt).first()
