"""
Order history model: append-only audit log of field changes
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base

class OrderHistory(Base):
    """One changed field on one order, recorded at the time of the change"""
    __tablename__ = "order_history"
    
    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    field_name = Column(String(50), nullable=False)
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    
    actor = relationship("User", lazy="joined")
    
    @property
    def user_name(self):
        return self.actor.name if self.actor else None
    
    def __repr__(self):
        return f"<OrderHistory(order_id={self.order_id}, field='{self.field_name}', '{self.old_value}' -> '{self.new_value}')>"
