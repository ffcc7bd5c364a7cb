from pydantic import BaseModel
from typing import Optional

class User(BaseModel):
    """Represents a user account"""
    id: Optional[str] = None
    name: str
    email: str
    password: str
    isAdmin: bool = False
    isActive: bool = True
    createdAt: Optional[str] = None

    def public(self) -> dict:
        """User data without the password hash"""
        return self.model_dump(exclude={"password"})
