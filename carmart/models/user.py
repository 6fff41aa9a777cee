from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict


class UserRole(str, Enum):
    ADMIN = "admin"
    SELLER = "seller"
    BUYER = "buyer"


class User(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    username: str
    role: UserRole = UserRole.BUYER
    created_at: datetime
    display_name: Optional[str] = None

    @staticmethod
    def normalized_display_name(username: str, display_name: Optional[str] = None) -> str:
        if display_name and display_name.strip():
            return display_name.strip()
        return username
