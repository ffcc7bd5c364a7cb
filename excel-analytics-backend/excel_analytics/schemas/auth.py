from pydantic import BaseModel

from excel_analytics.schemas.responses import UserOut

class LoginRequest(BaseModel):
    """Login request schema"""
    email: str
    password: str

class RegisterRequest(BaseModel):
    """Register request schema"""
    name: str
    email: str
    password: str

class AuthResponse(BaseModel):
    """Token plus public user data"""
    token: str
    user: UserOut
