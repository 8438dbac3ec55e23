from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional

class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

class UserResponse(BaseModel):
    id: int
    email: EmailStr
    is_active: bool
    name: Optional[str]
    department_id: Optional[int]
    roles: List[str]

class Token(BaseModel):
    access_token: str
    token_type: str
    user: UserResponse
