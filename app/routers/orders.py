"""
Order management endpoints
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
import logging

from app.database import get_db
from app.schemas.order import (
    OrderCreate, OrderUpdate, OrderResponse, OrderWithComments, OrderDetailResponse,
    CommentCreate, CommentResponse, MessageResponse
)
from app.services.order_service import OrderService
from app.auth.auth_handler import AuthContext, get_current_user
from app.utils.error_handler import AppError, DatabaseError
from app.utils.rate_limit import limiter

logger = logging.getLogger(__name__)

router = APIRouter()

# Responses are validated inside the handlers so lazy relationships load
# while the request's session is still open.

@router.get("", response_model=list[OrderWithComments])
@limiter.limit("60/minute")
async def list_orders(
    request: Request,
    current_user: AuthContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get all orders, newest first, each with its comments"""
    try:
        orders = await OrderService(db).list_orders()
        return [OrderWithComments.model_validate(order) for order in orders]

    except AppError:
        raise
    except Exception as e:
        logger.error(f"Failed to get orders: {e}")
        raise DatabaseError("Failed to retrieve orders", e)

@router.get("/{order_id}", response_model=OrderDetailResponse)
@limiter.limit("60/minute")
async def get_order(
    request: Request,
    order_id: int,
    current_user: AuthContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get a specific order with comments and history"""
    order = await OrderService(db).get_order(order_id)
    return OrderDetailResponse.model_validate(order)

@router.post("", response_model=OrderResponse, status_code=201)
@limiter.limit("30/minute")
async def create_order(
    request: Request,
    order: OrderCreate,
    current_user: AuthContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a new order"""
    db_order = await OrderService(db).create_order(current_user.user_id, order)
    return OrderResponse.model_validate(db_order)

@router.put("/{order_id}", response_model=OrderResponse)
@limiter.limit("60/minute")
async def update_order(
    request: Request,
    order_id: int,
    order_update: OrderUpdate,
    current_user: AuthContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update any subset of an order's fields"""
    db_order = await OrderService(db).update_order(current_user.user_id, order_id, order_update)
    return OrderResponse.model_validate(db_order)

@router.delete("/{order_id}", response_model=MessageResponse)
@limiter.limit("30/minute")
async def delete_order(
    request: Request,
    order_id: int,
    current_user: AuthContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete an order together with its comments and history"""
    return await OrderService(db).delete_order(order_id)

@router.post("/{order_id}/comments", response_model=CommentResponse, status_code=201)
@limiter.limit("30/minute")
async def add_comment(
    request: Request,
    order_id: int,
    comment: CommentCreate,
    current_user: AuthContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Add a comment to an order"""
    db_comment = await OrderService(db).add_comment(current_user.user_id, order_id, comment)
    return CommentResponse.model_validate(db_comment)
