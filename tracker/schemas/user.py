from pydantic import BaseModel, EmailStr
from typing import Optional
from tracker.models.user import UserRole


class UserOut(BaseModel):
    id: int
    full_name: str
    email: EmailStr
    role: UserRole
    is_active: Optional[bool] = True

    class Config:
        from_attributes = True
