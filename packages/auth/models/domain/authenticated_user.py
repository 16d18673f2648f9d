from typing import Optional
from pydantic import BaseModel


class AuthenticatedUser(BaseModel):
    """User context passed through authentication dependencies"""

    user_id: int
    email: Optional[str] = None
    is_admin: bool = False

    class Config:
        from_attributes = True
