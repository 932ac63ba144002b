from uuid import UUID

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import Response
from sqlalchemy.orm import Session

from newsletter.core.auth import get_current_user
from newsletter.core.database import get_db
from newsletter.core.idempotency import (
    IdempotencyRecordMissingResponseError,
    InvalidIdempotencyKeyError,
    StoredResponse,
)
from newsletter.repositories.issue_delivery_queue_repository import IssueDeliveryQueueRepository
from newsletter.repositories.newsletter_issue_repository import NewsletterIssueRepository
from newsletter.schemas.newsletter_issue import (
    NewsletterIssueCreate,
    NewsletterIssueResponse,
    NewsletterPublishResponse,
)
from newsletter.services.newsletter_publication import NewsletterPublicationService

router = APIRouter()


def _to_http_response(stored: StoredResponse) -> Response:
    """Rebuild the stored response with its headers byte for byte."""
    response = Response(content=stored.body, status_code=stored.status_code)
    response.raw_headers.extend(
        (name.lower().encode("latin-1"), value) for name, value in stored.headers
    )
    return response


@router.post(
    "/",
    response_model=NewsletterPublishResponse,
    summary="Publish newsletter issue",
    responses={
        400: {"description": "Missing or invalid Idempotency-Key header"},
        401: {"description": "Unauthorized – missing or invalid caller id"},
        409: {"description": "A request with this Idempotency-Key is still in progress"},
        422: {"description": "Validation error"},
        503: {"description": "Database unavailable, retry with the same Idempotency-Key"},
    },
)
def publish_newsletter(
    data: NewsletterIssueCreate,
    idempotency_key: str | None = Header(default=None),
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user),
) -> Response:
    """Publish an issue to every confirmed subscriber.

    Retrying with the same ``Idempotency-Key`` returns the original response
    without publishing again.
    """
    if idempotency_key is None:
        raise HTTPException(status_code=400, detail="Idempotency-Key header is required")

    service = NewsletterPublicationService(db)
    try:
        stored = service.publish(user_id, idempotency_key, data)
    except InvalidIdempotencyKeyError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from None
    except IdempotencyRecordMissingResponseError:
        raise HTTPException(
            status_code=409,
            detail="A request with this Idempotency-Key is still in progress",
        ) from None

    return _to_http_response(stored)


@router.get(
    "/{issue_id}",
    response_model=NewsletterIssueResponse,
    summary="Get newsletter issue delivery status",
    responses={
        401: {"description": "Unauthorized – missing or invalid caller id"},
        404: {"description": "Newsletter issue not found"},
    },
)
def get_newsletter_issue(
    issue_id: UUID,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user),
) -> NewsletterIssueResponse:
    """Get an issue and the number of deliveries still queued for it."""
    issue = NewsletterIssueRepository(db).get_by_id(issue_id)
    if not issue:
        raise HTTPException(status_code=404, detail="Newsletter issue not found")
    pending = IssueDeliveryQueueRepository(db).count_pending(issue_id)
    return NewsletterIssueResponse(
        id=issue.id,  # type: ignore[arg-type]
        title=str(issue.title),
        published_at=issue.published_at,  # type: ignore[arg-type]
        pending_deliveries=pending,
    )
