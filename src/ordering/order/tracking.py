"""Order tracking trail: one append-only entry per lifecycle step."""

from datetime import UTC, datetime

from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering


@ordering.aggregate(schema_name="order_tracking")
class TrackingEvent:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=100)  # Display label, e.g. "Order Shipped"
    message = Text(required=True)
    created_at = DateTime()

    @classmethod
    def record(cls, order_id, status, message):
        return cls(
            order_id=str(order_id),
            status=status,
            message=message,
            created_at=datetime.now(UTC),
        )


def append_tracking(order_id, status, message) -> TrackingEvent:
    """Record a tracking entry inside the caller's unit of work."""
    entry = TrackingEvent.record(order_id, status, message)
    current_domain.repository_for(TrackingEvent).add(entry)
    return entry


def tracking_for(order_id) -> list[TrackingEvent]:
    """Tracking entries for an order, oldest first."""
    return (
        current_domain.repository_for(TrackingEvent)
        ._dao.query.filter(order_id=str(order_id))
        .order_by("created_at")
        .all()
        .items
    )
