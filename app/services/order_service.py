"""
Order service: CRUD, comments and the field-level audit trail
"""

from sqlalchemy.orm import Session
from typing import Any, Optional
import logging

from app.models.order import (
    Order, ORDER_STATUSES, ORDER_TYPES, DEFAULT_STATUS, DEFAULT_ORDER_TYPE
)
from app.models.comment import Comment
from app.models.order_history import OrderHistory
from app.schemas.order import OrderCreate, OrderUpdate, CommentCreate
from app.utils.dates import is_valid_due_date
from app.utils.error_handler import DatabaseManager, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# Audited fields, in the order their history rows are written
AUDITED_FIELDS = ("patient_name", "patient_rx", "due_date", "status", "order_type")

def normalize_order_type(value: Any, fallback: Optional[str] = None) -> str:
    """Return value if it is a known order type, else fallback (or Stock)"""
    if value in ORDER_TYPES:
        return value
    return fallback or DEFAULT_ORDER_TYPE

def _check_status(status: str):
    if status not in ORDER_STATUSES:
        raise ValidationError(f"Status must be one of: {', '.join(ORDER_STATUSES)}")

def _text_or_fallback(value: Any, current: str, label: str) -> str:
    """Falsy values (missing, null, "", 0, false) keep the current value"""
    if not value:
        return current
    if not isinstance(value, str):
        raise ValidationError(f"{label} must be a string")
    return value

def _check_due_date(due_date: str):
    if not is_valid_due_date(due_date):
        raise ValidationError("Due date must be an ISO 8601 date, e.g. 2024-05-01")

class OrderService:
    """Order operations bound to one database session"""

    def __init__(self, db: Session):
        self.db = db

    def _get_or_404(self, order_id: int) -> Order:
        order = self.db.query(Order).filter(Order.id == order_id).first()
        if not order:
            raise NotFoundError("Order not found")
        return order

    async def list_orders(self) -> list[Order]:
        """All orders, newest first, with creator and comments loaded"""
        return (
            self.db.query(Order)
            .order_by(Order.date_created.desc(), Order.id.desc())
            .all()
        )

    async def get_order(self, order_id: int) -> Order:
        return self._get_or_404(order_id)

    async def create_order(self, actor_id: int, order_data: OrderCreate) -> Order:
        """Persist a new order together with its initial status history entry"""
        if not order_data.patient_name or not order_data.due_date:
            raise ValidationError("Patient name and due date are required")
        _check_due_date(order_data.due_date)

        status = order_data.status or DEFAULT_STATUS
        _check_status(status)

        with DatabaseManager(self.db):
            db_order = Order(
                patient_name=order_data.patient_name,
                patient_rx=order_data.patient_rx,
                due_date=order_data.due_date,
                status=status,
                order_type=normalize_order_type(order_data.order_type),
                created_by=actor_id,
            )
            self.db.add(db_order)
            self.db.flush()

            self.db.add(OrderHistory(
                order_id=db_order.id,
                user_id=actor_id,
                field_name="status",
                old_value=None,
                new_value=status,
            ))

        self.db.refresh(db_order)
        logger.info(f"Created order with ID: {db_order.id}")
        return db_order

    def resolve_changes(self, db_order: Order, provided: dict[str, Any]) -> list[tuple[str, Any, Any]]:
        """Work out (field, old, new) for every field whose effective value changes.

        patient_name and due_date fall back to the stored value when the
        incoming value is falsy; the remaining fields only when the key is
        absent. An unknown order_type silently keeps the stored one.
        """
        effective = {}

        effective["patient_name"] = _text_or_fallback(provided.get("patient_name"), db_order.patient_name, "Patient name")

        effective["due_date"] = _text_or_fallback(provided.get("due_date"), db_order.due_date, "Due date")
        if effective["due_date"] != db_order.due_date:
            _check_due_date(effective["due_date"])

        effective["patient_rx"] = provided["patient_rx"] if "patient_rx" in provided else db_order.patient_rx

        if provided.get("status") is not None:
            _check_status(provided["status"])
            effective["status"] = provided["status"]
        else:
            effective["status"] = db_order.status

        if "order_type" in provided:
            effective["order_type"] = normalize_order_type(provided["order_type"], db_order.order_type)
        else:
            effective["order_type"] = db_order.order_type

        changes = []
        for field in AUDITED_FIELDS:
            old_value = getattr(db_order, field)
            if effective[field] != old_value:
                changes.append((field, old_value, effective[field]))
        return changes

    async def update_order(self, actor_id: int, order_id: int, order_update: OrderUpdate) -> Order:
        """Apply a partial update and its history rows in one transaction"""
        db_order = self._get_or_404(order_id)
        changes = self.resolve_changes(db_order, order_update.model_dump(exclude_unset=True))

        with DatabaseManager(self.db):
            for field, old_value, new_value in changes:
                setattr(db_order, field, new_value)
                self.db.add(OrderHistory(
                    order_id=db_order.id,
                    user_id=actor_id,
                    field_name=field,
                    old_value=old_value,
                    new_value=new_value,
                ))

        self.db.refresh(db_order)
        if changes:
            logger.info(f"Updated order {order_id}: {', '.join(field for field, _, _ in changes)}")
        return db_order

    async def delete_order(self, order_id: int) -> dict:
        """Delete an order; comments and history go with it"""
        db_order = self._get_or_404(order_id)

        with DatabaseManager(self.db):
            self.db.delete(db_order)

        logger.info(f"Deleted order with ID: {order_id}")
        return {"message": "Order deleted successfully"}

    async def add_comment(self, actor_id: int, order_id: int, comment_data: CommentCreate) -> Comment:
        if not comment_data.comment:
            raise ValidationError("Comment is required")
        self._get_or_404(order_id)

        with DatabaseManager(self.db):
            db_comment = Comment(order_id=order_id, user_id=actor_id, comment=comment_data.comment)
            self.db.add(db_comment)

        self.db.refresh(db_comment)
        logger.info(f"Added comment {db_comment.id} to order {order_id}")
        return db_comment
