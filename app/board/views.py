"""
Kanban and list views computed from an in-memory snapshot of orders
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional
import logging

from app.models.order import ORDER_STATUSES, DEFAULT_ORDER_TYPE
from app.utils.dates import parse_due_date

logger = logging.getLogger(__name__)

ALL = "All"
DUE_SOON_DAYS = 3

def days_until_due(due_date: str, today: Optional[date] = None) -> int:
    """Whole calendar days from today to the due date (negative when overdue)"""
    today = today or date.today()
    return (parse_due_date(due_date) - today).days

def is_due_soon(due_date: str, today: Optional[date] = None) -> bool:
    """True when the order is due today or within the next three days"""
    try:
        days = days_until_due(due_date, today)
    except ValueError:
        logger.warning(f"Unparseable due date: {due_date!r}")
        return False
    return 0 <= days <= DUE_SOON_DAYS

def effective_order_type(order: dict) -> str:
    return order.get("order_type") or DEFAULT_ORDER_TYPE

def kanban_columns(orders: list[dict]) -> dict[str, list[dict]]:
    """Partition orders into the five status columns, in workflow order.

    Orders whose status is not part of the workflow are left out.
    """
    columns = {status: [] for status in ORDER_STATUSES}
    for order in orders:
        if order.get("status") in columns:
            columns[order["status"]].append(order)
    return columns

@dataclass
class OrderFilter:
    """Conjunctive list filter; empty fields and "All" match everything"""
    name: str = ""
    status: str = ALL
    order_type: str = ALL
    due_from: Optional[str] = None
    due_to: Optional[str] = None

    def matches(self, order: dict) -> bool:
        if self.name and self.name.lower() not in (order.get("patient_name") or "").lower():
            return False

        if self.status != ALL and order.get("status") != self.status:
            return False

        if self.order_type != ALL and effective_order_type(order) != self.order_type:
            return False

        if self.due_from or self.due_to:
            try:
                due = parse_due_date(order.get("due_date"))
            except ValueError:
                return False
            if self.due_from and due < parse_due_date(self.due_from):
                return False
            if self.due_to and due > parse_due_date(self.due_to):
                return False

        return True

def filter_orders(orders: list[dict], order_filter: OrderFilter) -> list[dict]:
    return [order for order in orders if order_filter.matches(order)]
