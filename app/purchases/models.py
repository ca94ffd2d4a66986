from enum import Enum
from pydantic import BaseModel


class PurchaseStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PurchaseCreate(BaseModel):
    course_id: str


class CheckoutResponse(BaseModel):
    purchase_id: str
    order_id: str
    amount: int
    currency: str
    key_id: str
