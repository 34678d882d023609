from typing import Optional

from pydantic import BaseModel


class Token(BaseModel):
    access_token: str
    token_type: str


class SessionUser(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    image: Optional[str] = None
    username: Optional[str] = None
    role: Optional[str] = None


class Session(BaseModel):
    user: SessionUser
    expires: str
    access_token: Optional[str] = None
