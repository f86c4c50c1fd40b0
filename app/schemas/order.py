"""
Pydantic schemas for Order, Comment and history operations
"""

from pydantic import BaseModel, Field
from typing import Any, Optional, Union
from datetime import datetime

class OrderCreate(BaseModel):
    """Schema for creating a new order; required fields are enforced by the service"""
    patient_name: Optional[str] = Field(None, max_length=255, description="Patient's full name")
    patient_rx: Optional[str] = Field(None, description="Prescription details")
    due_date: Optional[str] = Field(None, description="Due date (ISO 8601, e.g. 2024-05-01)")
    status: Optional[str] = Field(None, description="Initial status, defaults to Open")
    order_type: Optional[Any] = Field(None, description="Stock, Purchase or Special; anything else becomes Stock")

class OrderUpdate(BaseModel):
    """Schema for updating an existing order; only keys present in the body are considered"""
    # Any JSON scalar is accepted here; falsy values mean "keep the stored value"
    patient_name: Optional[Union[str, int, float, bool]] = Field(None)
    patient_rx: Optional[str] = Field(None)
    due_date: Optional[Union[str, int, float, bool]] = Field(None)
    status: Optional[str] = Field(None)
    order_type: Optional[Any] = Field(None)

class CommentCreate(BaseModel):
    """Schema for adding a comment to an order"""
    comment: Optional[str] = Field(None, description="Comment text")

class CommentResponse(BaseModel):
    """Comment joined with its author's name"""
    id: int
    order_id: int
    user_id: int
    comment: str
    created_at: Optional[datetime]
    user_name: Optional[str] = None

    class Config:
        from_attributes = True

class HistoryEntryResponse(BaseModel):
    """One audited field change"""
    id: int
    order_id: int
    user_id: int
    field_name: str
    old_value: Optional[str]
    new_value: Optional[str]
    created_at: Optional[datetime]
    user_name: Optional[str] = None

    class Config:
        from_attributes = True

class OrderResponse(BaseModel):
    """Schema for a stored order row"""
    id: int
    patient_name: str
    patient_rx: Optional[str]
    status: str
    order_type: str
    date_created: Optional[datetime]
    due_date: str
    created_by: Optional[int]
    created_by_name: Optional[str] = None

    class Config:
        from_attributes = True

class OrderWithComments(OrderResponse):
    """Order as returned by the list endpoint"""
    comments: list[CommentResponse] = []

class OrderDetailResponse(OrderWithComments):
    """Order as returned by the detail endpoint"""
    history: list[HistoryEntryResponse] = []

class MessageResponse(BaseModel):
    message: str
