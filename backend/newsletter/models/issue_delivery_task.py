"""IssueDeliveryTask model: one pending send of an issue to one subscriber.

The table carries no status column. A row that exists is pending; a row that
is gone has been delivered (or abandoned). Claiming a row locks it for the
lifetime of the claiming transaction without changing it.
"""

from sqlalchemy import Column, DateTime, ForeignKey, String, func

from newsletter.core.database import Base
from newsletter.models.shared import UUIDType


class IssueDeliveryTask(Base):
    __tablename__ = "issue_delivery_queue"

    newsletter_issue_id = Column(
        UUIDType,
        ForeignKey("newsletter_issues.id", ondelete="RESTRICT"),
        primary_key=True,
    )
    subscriber_email = Column(String(255), primary_key=True)
    enqueued_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
