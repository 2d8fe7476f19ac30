"""Reconciliation cases: things that went wrong after money changed hands.

A case is opened whenever the system knows its records disagree with
reality and a person has to look: an order that could not be fully written
after a verified payment, a sale that took stock below zero, or a stock
update that could not be applied at all. Cases are resolved by an admin.
"""

import json
from datetime import UTC, datetime
from enum import Enum

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering

logger = structlog.get_logger(__name__)


class ReconciliationKind(Enum):
    PARTIAL_WRITE = "partial_write"
    OVERSOLD = "oversold"
    STOCK_UPDATE_FAILED = "stock_update_failed"


class ReconciliationStatus(Enum):
    OPEN = "open"
    RESOLVED = "resolved"


@ordering.aggregate
class ReconciliationCase:
    kind = String(required=True, choices=ReconciliationKind)
    status = String(choices=ReconciliationStatus, default=ReconciliationStatus.OPEN.value)
    order_id = Identifier()
    payment_id = String(max_length=255)
    product_id = Identifier()
    details = Text()  # JSON: whatever the reporter knew
    resolution_note = Text()
    created_at = DateTime()
    resolved_at = DateTime()

    @classmethod
    def open(cls, kind, order_id=None, payment_id=None, product_id=None, details=None):
        return cls(
            kind=ReconciliationKind(kind).value,
            order_id=order_id,
            payment_id=payment_id,
            product_id=product_id,
            details=json.dumps(details or {}),
            created_at=datetime.now(UTC),
        )

    def resolve(self, note):
        if ReconciliationStatus(self.status) == ReconciliationStatus.RESOLVED:
            raise ValidationError({"status": ["Case is already resolved"]})
        if not note:
            raise ValidationError({"resolution_note": ["A resolution note is required"]})
        self.status = ReconciliationStatus.RESOLVED.value
        self.resolution_note = note
        self.resolved_at = datetime.now(UTC)


def flag_for_reconciliation(kind, order_id=None, payment_id=None, product_id=None, **details) -> ReconciliationCase:
    """Open a case and persist it straight away."""
    case = ReconciliationCase.open(
        kind,
        order_id=str(order_id) if order_id else None,
        payment_id=payment_id,
        product_id=str(product_id) if product_id else None,
        details=details,
    )
    current_domain.repository_for(ReconciliationCase).add(case)
    logger.error(
        "Reconciliation case opened",
        case_id=str(case.id),
        kind=case.kind,
        order_id=case.order_id,
        payment_id=payment_id,
        product_id=case.product_id,
    )
    return case


def open_cases(kind=None) -> list[ReconciliationCase]:
    query = current_domain.repository_for(ReconciliationCase)._dao.query.filter(
        status=ReconciliationStatus.OPEN.value
    )
    if kind:
        query = query.filter(kind=ReconciliationKind(kind).value)
    return query.order_by("created_at").all().items


@ordering.command(part_of="ReconciliationCase")
class ResolveReconciliationCase:
    case_id = Identifier(required=True)
    resolution_note = Text(required=True)


@ordering.command_handler(part_of=ReconciliationCase)
class ReconciliationCaseHandler:
    @handle(ResolveReconciliationCase)
    def resolve_case(self, command):
        repo = current_domain.repository_for(ReconciliationCase)
        case = repo.get(command.case_id)
        case.resolve(command.resolution_note)
        repo.add(case)
        logger.info("Reconciliation case resolved", case_id=str(case.id), kind=case.kind)
