"""Subscriber repository: the confirmed-recipient source for publishing."""

from sqlalchemy.orm import Session

from newsletter.models.subscriber import Subscriber, SubscriberStatus


class SubscriberRepository:
    def __init__(self, db: Session):
        self.db = db

    def list_confirmed_emails(self) -> list[str]:
        """Snapshot of confirmed addresses, read inside the caller's transaction."""
        rows = (
            self.db.query(Subscriber.email)
            .filter(Subscriber.status == SubscriberStatus.CONFIRMED.value)
            .order_by(Subscriber.subscribed_at.asc(), Subscriber.email.asc())
            .all()
        )
        return [str(row.email) for row in rows]
