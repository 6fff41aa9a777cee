"""
carmart/models/listing.py

Car listing model.
"""

from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


ListingStatus = Literal["available", "sold"]


class CarListing(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    seller_id: str
    title: str
    make: str
    model: str
    year: int
    price: int
    mileage: int = 0
    status: ListingStatus = "available"
    is_featured: bool = False
    images: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
