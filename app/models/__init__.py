from app.models.user import User
from app.models.comment import Comment
from app.models.order_history import OrderHistory
from app.models.order import Order

__all__ = ["User", "Comment", "OrderHistory", "Order"]
