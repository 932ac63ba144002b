"""Repository for the issue delivery queue.

Rows are claimed with ``SELECT ... FOR UPDATE SKIP LOCKED`` so any number of
dispatchers, in any number of processes, can drain the queue concurrently.
A claimed row stays locked until the claiming transaction ends: commit after
``complete`` removes it for good, rollback (explicit, or implicit when the
session or process dies) hands it back to the queue.
"""

from collections.abc import Collection, Iterable
from uuid import UUID

from sqlalchemy import Select, and_, func, insert, or_, select
from sqlalchemy.orm import Session

from newsletter.models.issue_delivery_task import IssueDeliveryTask


TaskKey = tuple[UUID, str]


def claim_statement(skip: Collection[TaskKey] = ()) -> Select[tuple[IssueDeliveryTask]]:
    """Select one pending task, skipping rows locked by other transactions.

    ``skip`` holds (issue id, email) keys the caller has already tried in the
    current pass; they are left for a later pass.
    """
    stmt = select(IssueDeliveryTask)
    if skip:
        stmt = stmt.where(
            ~or_(
                *(
                    and_(
                        IssueDeliveryTask.newsletter_issue_id == issue_id,
                        IssueDeliveryTask.subscriber_email == email,
                    )
                    for issue_id, email in skip
                )
            )
        )
    return (
        stmt.order_by(IssueDeliveryTask.enqueued_at.asc())
        .limit(1)
        .with_for_update(skip_locked=True)
    )


class IssueDeliveryQueueRepository:
    def __init__(self, db: Session):
        self.db = db

    def enqueue_batch(self, newsletter_issue_id: UUID, recipients: Iterable[str]) -> int:
        """Insert one task per distinct recipient without committing.

        Returns the number of rows inserted.
        """
        rows = [
            {"newsletter_issue_id": newsletter_issue_id, "subscriber_email": email}
            for email in dict.fromkeys(recipients)
        ]
        if not rows:
            return 0
        self.db.execute(insert(IssueDeliveryTask), rows)
        return len(rows)

    def claim_one(self, skip: Collection[TaskKey] = ()) -> IssueDeliveryTask | None:
        """Lock and return a pending task, or ``None`` if none is claimable.

        Never waits on a row held by another claimant. Tasks keyed in ``skip``
        are not returned.
        """
        return self.db.execute(claim_statement(skip)).scalars().first()

    def complete(self, task: IssueDeliveryTask) -> None:
        """Delete the claimed task. The caller commits."""
        self.db.delete(task)
        self.db.flush()

    def count_pending(self, newsletter_issue_id: UUID | None = None) -> int:
        query = self.db.query(func.count()).select_from(IssueDeliveryTask)
        if newsletter_issue_id is not None:
            query = query.filter(IssueDeliveryTask.newsletter_issue_id == newsletter_issue_id)
        return int(query.scalar() or 0)
