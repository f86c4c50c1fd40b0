"""
Order model for database operations
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base
from app.models.comment import Comment
from app.models.order_history import OrderHistory

ORDER_STATUSES = ["Open", "Order Placed", "In Progress", "Ready for Pickup", "Delivered"]
ORDER_TYPES = ["Stock", "Purchase", "Special"]
DEFAULT_STATUS = "Open"
DEFAULT_ORDER_TYPE = "Stock"

class Order(Base):
    """Pharmacy fulfillment request tracked through the status workflow"""
    __tablename__ = "orders"
    
    id = Column(Integer, primary_key=True, index=True)
    patient_name = Column(String(255), nullable=False, index=True)
    patient_rx = Column(Text, nullable=True)
    status = Column(String(30), default=DEFAULT_STATUS, nullable=False)
    order_type = Column(String(20), default=DEFAULT_ORDER_TYPE, nullable=False)
    date_created = Column(DateTime(timezone=True), server_default=func.now())
    due_date = Column(String(40), nullable=False)  # kept exactly as the client sent it
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    
    creator = relationship("User", lazy="joined")
    comments = relationship(
        "Comment",
        lazy="selectin",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by=lambda: [Comment.created_at.desc(), Comment.id.desc()],
    )
    history = relationship(
        "OrderHistory",
        lazy="select",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by=lambda: [OrderHistory.created_at.desc(), OrderHistory.id.desc()],
    )
    
    @property
    def created_by_name(self):
        return self.creator.name if self.creator else None
    
    def __repr__(self):
        return f"<Order(id={self.id}, patient_name='{self.patient_name}', status='{self.status}')>"
