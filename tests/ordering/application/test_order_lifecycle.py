"""Application tests for status updates, cancellation and deletion of orders."""

import pytest
from ordering.notification.notification import Notification
from ordering.order.deletion import DeleteOrder
from ordering.order.order import CUSTOMER_CANCELLATION_MESSAGE, ActorNotPermitted, Order, OrderItem
from ordering.order.status import CancelOrder, UpdateOrderStatus
from ordering.order.tracking import tracking_for
from ordering.projections.order_rows import rows_for_order
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError


def _update(order_id, status):
    return current_domain.process(UpdateOrderStatus(order_id=order_id, new_status=status), asynchronous=False)


def _cancel(order_id, requested_by="user-001", is_admin=False):
    return current_domain.process(
        CancelOrder(order_id=order_id, requested_by=requested_by, is_admin=is_admin),
        asynchronous=False,
    )


def _delete(order_id, requested_by="user-001", is_admin=False):
    return current_domain.process(
        DeleteOrder(order_id=order_id, requested_by=requested_by, is_admin=is_admin),
        asynchronous=False,
    )


def _deliver(order_id):
    for status in ("processing", "shipped", "delivered"):
        _update(order_id, status)


class TestUpdateOrderStatus:
    def test_persists_new_status(self, place_order):
        order_id = place_order()
        assert _update(order_id, "processing") == "processing"
        assert current_domain.repository_for(Order).get(order_id).status == "processing"

    def test_appends_one_tracking_entry_per_change(self, place_order):
        order_id = place_order()
        _deliver(order_id)
        labels = [entry.status for entry in tracking_for(order_id)]
        assert labels == ["Order Confirmed", "Order Processing", "Order Shipped", "Order Delivered"]

    def test_tracking_message_names_actor(self, place_order):
        order_id = place_order()
        _update(order_id, "processing")
        assert tracking_for(order_id)[-1].message == "Order status updated to processing by admin."

    def test_invalid_transition_changes_nothing(self, place_order):
        order_id = place_order()
        with pytest.raises(ValidationError):
            _update(order_id, "delivered")
        assert current_domain.repository_for(Order).get(order_id).status == "confirmed"
        assert len(tracking_for(order_id)) == 1

    def test_read_rows_follow(self, place_order):
        order_id = place_order()
        _update(order_id, "processing")
        assert {row.status for row in rows_for_order(order_id)} == {"processing"}

    def test_buyer_notified(self, place_order):
        order_id = place_order()
        _update(order_id, "processing")
        titles = [n.title for n in current_domain.repository_for(Notification).for_user("user-001")]
        assert "Order Processing" in titles

    def test_unknown_order(self):
        with pytest.raises(ObjectNotFoundError):
            _update("no-such-order", "processing")


class TestCancelOrder:
    def test_customer_cancels_own_order(self, place_order):
        order_id = place_order()
        assert _cancel(order_id) == "cancelled"
        entry = tracking_for(order_id)[-1]
        assert entry.status == "Order Cancelled"
        assert entry.message == CUSTOMER_CANCELLATION_MESSAGE

    def test_customer_notification(self, place_order):
        order_id = place_order()
        _cancel(order_id)
        latest = current_domain.repository_for(Notification).for_user("user-001")[0]
        assert latest.title == "Order Cancelled Successfully"
        assert "Refund will be processed within 5-7 business days" in latest.message

    def test_admin_cancels_any_order(self, place_order):
        order_id = place_order()
        assert _cancel(order_id, requested_by="admin-001", is_admin=True) == "cancelled"
        assert tracking_for(order_id)[-1].message == "Order status updated to cancelled by admin."

    def test_stranger_cannot_cancel(self, place_order):
        order_id = place_order()
        with pytest.raises(ActorNotPermitted):
            _cancel(order_id, requested_by="user-002")
        assert current_domain.repository_for(Order).get(order_id).status == "confirmed"

    def test_cannot_cancel_after_processing_starts(self, place_order):
        order_id = place_order()
        _update(order_id, "processing")
        with pytest.raises(ValidationError):
            _cancel(order_id)


class TestDeleteOrder:
    def test_live_order_cannot_be_deleted(self, place_order):
        order_id = place_order()
        with pytest.raises(ValidationError):
            _delete(order_id)
        assert current_domain.repository_for(Order).get(order_id) is not None

    def test_cancelled_order_removed_completely(self, place_order):
        order_id = place_order()
        _cancel(order_id)
        assert _delete(order_id) == order_id

        with pytest.raises(ObjectNotFoundError):
            current_domain.repository_for(Order).get(order_id)
        assert tracking_for(order_id) == []
        assert rows_for_order(order_id) == []
        remaining_items = current_domain.repository_for(OrderItem)._dao.query.filter(order_id=order_id).all().items
        assert remaining_items == []

    def test_delivered_order_can_be_deleted_by_admin(self, place_order):
        order_id = place_order()
        _deliver(order_id)
        assert _delete(order_id, requested_by="admin-001", is_admin=True) == order_id

    def test_stranger_cannot_delete(self, place_order):
        order_id = place_order()
        _cancel(order_id)
        with pytest.raises(ActorNotPermitted):
            _delete(order_id, requested_by="user-002")

    def test_other_orders_untouched(self, place_order):
        keep = place_order()
        drop = place_order()
        _cancel(drop)
        _delete(drop)
        assert len(rows_for_order(keep)) == 1
        assert len(tracking_for(keep)) == 1
