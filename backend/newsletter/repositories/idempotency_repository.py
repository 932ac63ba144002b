"""Repository for IdempotencyRecord rows."""

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from newsletter.models.idempotency_record import IdempotencyRecord
from newsletter.models.shared import utc_now


class IdempotencyRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_key(self, user_id: UUID, idempotency_key: str) -> IdempotencyRecord | None:
        return (
            self.db.query(IdempotencyRecord)
            .filter(
                IdempotencyRecord.user_id == user_id,
                IdempotencyRecord.idempotency_key == idempotency_key,
            )
            .first()
        )

    def try_insert_placeholder(self, user_id: UUID, idempotency_key: str) -> bool:
        """Insert an empty record for the key inside the current transaction.

        Returns ``False`` when a record for the key already exists. On
        PostgreSQL a concurrent insert of the same key waits on the unique
        index until the other transaction commits or rolls back.
        """
        dialect = self.db.bind.dialect.name if self.db.bind else "sqlite"
        dialect_insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
        stmt = (
            dialect_insert(IdempotencyRecord.__table__)
            .values(user_id=user_id, idempotency_key=idempotency_key, created_at=utc_now())
            .on_conflict_do_nothing(index_elements=["user_id", "idempotency_key"])
        )
        result: Any = self.db.execute(stmt)
        return int(result.rowcount) == 1

    def save_response(
        self,
        user_id: UUID,
        idempotency_key: str,
        response_status_code: int,
        response_headers: list[list[str]],
        response_body: bytes,
    ) -> None:
        """Fill in the placeholder record. The caller commits."""
        self.db.query(IdempotencyRecord).filter(
            IdempotencyRecord.user_id == user_id,
            IdempotencyRecord.idempotency_key == idempotency_key,
        ).update(
            {
                IdempotencyRecord.response_status_code: response_status_code,
                IdempotencyRecord.response_headers: response_headers,
                IdempotencyRecord.response_body: response_body,
            },
            synchronize_session=False,
        )

    def delete_expired(self, max_age_hours: int = 48) -> int:
        cutoff = datetime.now(UTC) - timedelta(hours=max_age_hours)
        count = (
            self.db.query(IdempotencyRecord)
            .filter(IdempotencyRecord.created_at < cutoff)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return int(count)
