"""Publishing a newsletter issue.

One transaction writes the idempotency record, the issue and one delivery
task per confirmed subscriber. Delivery itself happens later, in the
dispatcher, independently of this request.
"""

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from newsletter.core.idempotency import (
    IdempotencyKey,
    ReturnSavedResponse,
    StoredResponse,
    begin_or_replay,
    save_response,
)
from newsletter.repositories.issue_delivery_queue_repository import IssueDeliveryQueueRepository
from newsletter.repositories.newsletter_issue_repository import NewsletterIssueRepository
from newsletter.repositories.subscriber_repository import SubscriberRepository
from newsletter.schemas.newsletter_issue import NewsletterIssueCreate, NewsletterPublishResponse

logger = logging.getLogger(__name__)


class NewsletterPublicationService:
    def __init__(self, db: Session):
        self.db = db

    def publish(
        self,
        user_id: UUID,
        idempotency_key: str,
        content: NewsletterIssueCreate,
    ) -> StoredResponse:
        """Publish ``content`` once per (user, idempotency key).

        A repeated call with the same key returns the stored response of the
        first successful call and performs no writes.

        Raises:
            InvalidIdempotencyKeyError: The key is empty or too long.
            sqlalchemy.exc.SQLAlchemyError: The store failed; nothing was written.
        """
        key = IdempotencyKey.parse(idempotency_key)

        try:
            action = begin_or_replay(self.db, user_id, key)
            if isinstance(action, ReturnSavedResponse):
                self.db.rollback()
                logger.info("Replaying stored publish response for key %s", key)
                return action.response

            issue = NewsletterIssueRepository(self.db).create(
                title=content.title,
                text_content=content.text_content,
                html_content=content.html_content,
            )
            recipients = SubscriberRepository(self.db).list_confirmed_emails()
            enqueued = IssueDeliveryQueueRepository(self.db).enqueue_batch(
                issue.id,  # type: ignore[arg-type]
                recipients,
            )

            body = NewsletterPublishResponse(
                newsletter_issue_id=issue.id,  # type: ignore[arg-type]
                title=content.title,
                recipients_enqueued=enqueued,
            )
            response = StoredResponse(
                status_code=200,
                headers=[("content-type", b"application/json")],
                body=body.model_dump_json().encode("utf-8"),
            )
            save_response(self.db, user_id, key, response)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Published newsletter issue %s to %d recipients",
            body.newsletter_issue_id,
            enqueued,
        )
        return response
