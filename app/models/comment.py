"""
Comment model: free text notes attached to an order
"""

from sqlalchemy import Column, Integer, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base

class Comment(Base):
    """Immutable comment left on an order by a user"""
    __tablename__ = "comments"
    
    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    comment = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    
    author = relationship("User", lazy="joined")
    
    @property
    def user_name(self):
        return self.author.name if self.author else None
    
    def __repr__(self):
        return f"<Comment(id={self.id}, order_id={self.order_id}, user_id={self.user_id})>"
