"""Request-level idempotency for side-effecting endpoints.

A caller-supplied ``Idempotency-Key`` is claimed by inserting a placeholder
row in the same transaction that performs the side effects. The response is
written into that row before the commit, so the ledger entry, the side
effects and the stored response become visible together or not at all.

``begin_or_replay`` returns either the stored response of an earlier,
committed attempt (``ReturnSavedResponse``) or the open session in which the
new attempt must run (``StartProcessing``).
"""

import base64
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy.orm import Session

from newsletter.repositories.idempotency_repository import IdempotencyRepository

MAX_IDEMPOTENCY_KEY_LENGTH = 50


class InvalidIdempotencyKeyError(ValueError):
    pass


class IdempotencyRecordMissingResponseError(RuntimeError):
    """A ledger row exists for the key but carries no response yet."""


class IdempotencyKey(str):
    @classmethod
    def parse(cls, raw: str | None) -> "IdempotencyKey":
        if not raw:
            raise InvalidIdempotencyKeyError("The idempotency key cannot be empty")
        if len(raw) > MAX_IDEMPOTENCY_KEY_LENGTH:
            raise InvalidIdempotencyKeyError(
                f"The idempotency key must be at most {MAX_IDEMPOTENCY_KEY_LENGTH} characters long"
            )
        return cls(raw)


@dataclass(frozen=True)
class StoredResponse:
    """An HTTP response captured as raw status, header pairs and body bytes."""

    status_code: int
    headers: list[tuple[str, bytes]] = field(default_factory=list)
    body: bytes = b""


@dataclass
class ReturnSavedResponse:
    response: StoredResponse


@dataclass
class StartProcessing:
    db: Session


NextAction = ReturnSavedResponse | StartProcessing


def _encode_headers(headers: list[tuple[str, bytes]]) -> list[list[str]]:
    return [[name, base64.b64encode(value).decode("ascii")] for name, value in headers]


def _decode_headers(encoded: list[list[str]] | None) -> list[tuple[str, bytes]]:
    return [(name, base64.b64decode(value)) for name, value in encoded or []]


def get_saved_response(db: Session, user_id: UUID, key: IdempotencyKey) -> StoredResponse | None:
    record = IdempotencyRepository(db).get_by_key(user_id, key)
    if record is None or record.response_status_code is None:
        return None
    return StoredResponse(
        status_code=int(record.response_status_code),
        headers=_decode_headers(record.response_headers),  # type: ignore[arg-type]
        body=bytes(record.response_body or b""),
    )


def begin_or_replay(db: Session, user_id: UUID, key: IdempotencyKey) -> NextAction:
    """Claim ``key`` for ``user_id`` or fetch the response it already produced.

    On ``StartProcessing`` the placeholder row is part of ``db``'s open
    transaction; the caller must ``save_response`` and commit, or roll back.
    """
    repo = IdempotencyRepository(db)
    if repo.try_insert_placeholder(user_id, key):
        return StartProcessing(db)

    saved = get_saved_response(db, user_id, key)
    if saved is None:
        raise IdempotencyRecordMissingResponseError(
            f"Expected a saved response for idempotency key {key!r}, found none"
        )
    return ReturnSavedResponse(saved)


def save_response(
    db: Session,
    user_id: UUID,
    key: IdempotencyKey,
    response: StoredResponse,
) -> None:
    """Record ``response`` for the key claimed by ``begin_or_replay``. Does not commit."""
    IdempotencyRepository(db).save_response(
        user_id,
        key,
        response_status_code=response.status_code,
        response_headers=_encode_headers(response.headers),
        response_body=response.body,
    )
