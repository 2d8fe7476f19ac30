"""Notification aggregate: an in-app message to a shopper."""

from datetime import UTC, datetime
from enum import Enum

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering


class NotificationType(Enum):
    ORDER = "order"
    SYSTEM = "system"


@ordering.aggregate(schema_name="notifications")
class Notification:
    user_id = Identifier(required=True)
    notification_type = String(choices=NotificationType, default=NotificationType.ORDER.value)
    title = String(required=True, max_length=255)
    message = Text(required=True)
    action_url = String(max_length=255)
    is_read = Boolean(default=False)
    created_at = DateTime()
    read_at = DateTime()

    @classmethod
    def create(cls, user_id, title, message, action_url=None, notification_type=NotificationType.ORDER.value):
        return cls(
            user_id=str(user_id),
            notification_type=notification_type,
            title=title,
            message=message,
            action_url=action_url,
            created_at=datetime.now(UTC),
        )

    def mark_read(self):
        if self.is_read:
            return
        self.is_read = True
        self.read_at = datetime.now(UTC)


@ordering.repository(part_of=Notification)
class NotificationRepository:
    def for_user(self, user_id, unread_only=False) -> list[Notification]:
        query = self._dao.query.filter(user_id=str(user_id))
        if unread_only:
            query = query.filter(is_read=False)
        return query.order_by("-created_at").all().items


@ordering.command(part_of="Notification")
class MarkNotificationRead:
    user_id = Identifier(required=True)
    notification_id = Identifier(required=True)


@ordering.command_handler(part_of=Notification)
class NotificationCommandHandler:
    @handle(MarkNotificationRead)
    def mark_read(self, command):
        repo = current_domain.repository_for(Notification)
        notification = repo.get(command.notification_id)
        if str(notification.user_id) != str(command.user_id):
            raise ObjectNotFoundError(f"Notification {command.notification_id} not found")
        notification.mark_read()
        repo.add(notification)
