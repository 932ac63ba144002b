"""Issue delivery dispatcher.

Each cycle runs in its own session/transaction:

    claim one task (skip-locked) -> send the email -> delete the task, commit

If the send fails the transaction is rolled back, which releases the row lock
and leaves the task queued for any dispatcher to pick up later. The
dispatcher that failed sets the task aside for the rest of its pass, so one
undeliverable recipient at the head of the queue does not hold up the
recipients behind it. If the
process dies mid-cycle the database aborts the transaction with the same
effect. A crash after the email API accepted a message but before the commit
means that recipient is sent the issue again; delivery is at-least-once.

Dispatchers share nothing in-process. Mutual exclusion comes entirely from
the row lock taken by ``IssueDeliveryQueueRepository.claim_one``, so they can
run as threads, as separate processes, or both.
"""

import logging
import threading
from enum import Enum

from pydantic import EmailStr, TypeAdapter, ValidationError
from sqlalchemy.orm import Session, sessionmaker

from newsletter.core.config import settings
from newsletter.core.database import get_session_factory
from newsletter.repositories.issue_delivery_queue_repository import (
    IssueDeliveryQueueRepository,
    TaskKey,
)
from newsletter.repositories.newsletter_issue_repository import NewsletterIssueRepository
from newsletter.services.email_client import EmailClient, EmailDeliveryError

logger = logging.getLogger(__name__)

_email_address = TypeAdapter(EmailStr)


class ExecutionOutcome(str, Enum):
    TASK_COMPLETED = "task_completed"
    TASK_FAILED = "task_failed"
    TASK_ABANDONED = "task_abandoned"
    EMPTY_QUEUE = "empty_queue"


def is_valid_email(address: str) -> bool:
    try:
        _email_address.validate_python(address)
    except ValidationError:
        return False
    return True


class IssueDeliveryDispatcher:
    def __init__(
        self,
        email_client: EmailClient,
        session_factory: sessionmaker[Session] | None = None,
        idle_seconds: float | None = None,
        failure_backoff_seconds: float | None = None,
    ):
        self.email_client = email_client
        self.session_factory = session_factory or get_session_factory()
        self.idle_seconds = (
            settings.DISPATCHER_IDLE_SECONDS if idle_seconds is None else idle_seconds
        )
        self.failure_backoff_seconds = (
            settings.DISPATCHER_FAILURE_BACKOFF_SECONDS
            if failure_backoff_seconds is None
            else failure_backoff_seconds
        )

    def try_execute_task(self, skip: set[TaskKey] | None = None) -> ExecutionOutcome:
        """Run one claim/send/complete cycle.

        Tasks keyed in ``skip`` are not claimed; a task whose send fails is
        added to it, so the next cycle of the same pass moves on to another
        recipient instead of retrying the same one.
        """
        db = self.session_factory()
        try:
            queue = IssueDeliveryQueueRepository(db)
            task = queue.claim_one(skip or ())
            if task is None:
                db.rollback()
                return ExecutionOutcome.EMPTY_QUEUE

            issue_id = task.newsletter_issue_id
            email = str(task.subscriber_email)
            log_extra = {"newsletter_issue_id": str(issue_id), "subscriber_email": email}

            if not is_valid_email(email):
                # Retrying can never succeed; drop the task.
                logger.error(
                    "Abandoning delivery of issue %s to %s: invalid stored address",
                    issue_id,
                    email,
                    extra=log_extra,
                )
                queue.complete(task)
                db.commit()
                return ExecutionOutcome.TASK_ABANDONED

            # The foreign key keeps the issue alive while tasks reference it.
            issue = NewsletterIssueRepository(db).get_by_id(issue_id)  # type: ignore[arg-type]
            try:
                self.email_client.send_email(
                    recipient=email,
                    subject=str(issue.title),  # type: ignore[union-attr]
                    html_body=str(issue.html_content),  # type: ignore[union-attr]
                    text_body=str(issue.text_content),  # type: ignore[union-attr]
                )
            except EmailDeliveryError as exc:
                db.rollback()
                if skip is not None:
                    skip.add((issue_id, email))  # type: ignore[arg-type]
                logger.warning(
                    "Failed to deliver issue %s to %s (%s); task stays queued",
                    issue_id,
                    email,
                    exc.kind,
                    extra=log_extra,
                )
                return ExecutionOutcome.TASK_FAILED

            queue.complete(task)
            db.commit()
            logger.info("Delivered issue %s to %s", issue_id, email, extra=log_extra)
            return ExecutionOutcome.TASK_COMPLETED
        finally:
            db.close()

    def drain(self, max_tasks: int | None = None) -> int:
        """Make one pass over the queue, trying each pending task at most once.

        Failed tasks stay queued for the next pass. The pass ends when nothing
        untried is left or after ``max_tasks`` cycles. Returns the number of
        emails delivered.
        """
        tried: set[TaskKey] = set()
        delivered = 0
        attempts = 0
        while max_tasks is None or attempts < max_tasks:
            attempts += 1
            outcome = self.try_execute_task(tried)
            if outcome is ExecutionOutcome.TASK_COMPLETED:
                delivered += 1
            elif outcome is ExecutionOutcome.EMPTY_QUEUE:
                break
        if tried:
            logger.info("%d deliveries failed and stay queued for the next pass", len(tried))
        return delivered

    def run_until_stopped(self, stop_event: threading.Event) -> None:
        """Loop over cycles until ``stop_event`` is set.

        Failed tasks are set aside until every other pending task has been
        tried, then retried after ``failure_backoff_seconds``. An empty queue
        backs off for ``idle_seconds``.
        """
        tried: set[TaskKey] = set()
        while not stop_event.is_set():
            try:
                outcome = self.try_execute_task(tried)
            except Exception:
                logger.exception("Issue delivery cycle failed")
                stop_event.wait(self.failure_backoff_seconds)
                continue

            if outcome is ExecutionOutcome.EMPTY_QUEUE:
                if tried:
                    tried.clear()
                    stop_event.wait(self.failure_backoff_seconds)
                else:
                    stop_event.wait(self.idle_seconds)


def run_dispatcher_pool(
    concurrency: int,
    stop_event: threading.Event,
    email_client: EmailClient | None = None,
    session_factory: sessionmaker[Session] | None = None,
) -> list[threading.Thread]:
    """Start ``concurrency`` dispatcher threads and return them.

    The threads exit once ``stop_event`` is set; join them to wait.
    """
    client = email_client or EmailClient.from_settings()
    threads = []
    for index in range(concurrency):
        dispatcher = IssueDeliveryDispatcher(client, session_factory=session_factory)
        thread = threading.Thread(
            target=dispatcher.run_until_stopped,
            args=(stop_event,),
            name=f"issue-dispatcher-{index}",
        )
        thread.start()
        threads.append(thread)
    logger.info("Started %d issue delivery dispatchers", concurrency)
    return threads
