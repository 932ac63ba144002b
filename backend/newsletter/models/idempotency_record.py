"""IdempotencyRecord model for replaying publish responses."""

from sqlalchemy import JSON, Column, DateTime, Integer, LargeBinary, String, func

from newsletter.core.database import Base
from newsletter.models.shared import UUIDType


class IdempotencyRecord(Base):
    """Stores the response produced for a (user, idempotency key) pair.

    ``response_status_code`` is NULL between the placeholder insert and the
    commit of the request that owns the key.
    """

    __tablename__ = "idempotency"

    user_id = Column(UUIDType, primary_key=True)
    idempotency_key = Column(String(50), primary_key=True)
    response_status_code = Column(Integer, nullable=True)
    # [[name, base64(value)], ...] in emission order
    response_headers = Column(JSON, nullable=True)
    response_body = Column(LargeBinary, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
