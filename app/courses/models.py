from pydantic import BaseModel, Field
from typing import Optional

# ==================== COURSE MODELS ====================


class CourseCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    thumbnail_url: Optional[str] = None  # already hosted on the asset CDN
    price: int = Field(..., ge=0)  # minor units
    discount: int = Field(0, ge=0, le=100)  # percent
    currency: Optional[str] = None
    is_published: bool = True


class CourseUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    price: Optional[int] = Field(None, ge=0)
    discount: Optional[int] = Field(None, ge=0, le=100)
    is_published: Optional[bool] = None


def discounted_price(course: dict) -> int:
    """Price after percentage discount, rounded down to a whole minor unit"""
    price = course.get("price", 0)
    discount = course.get("discount", 0)
    return price - (price * discount) // 100
