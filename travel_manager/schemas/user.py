"""User Pydantic schemas — registration, login, the signed-in user view."""

from pydantic import BaseModel, EmailStr


class UserCreate(BaseModel):
    """Fields submitted on the registration form."""
    email: EmailStr
    name: str
    password: str


class UserLogin(BaseModel):
    """Fields submitted on the login form."""
    email: str
    password: str


class CurrentUser(BaseModel):
    """The signed-in user as seen by handlers and templates (no password hash)."""
    id: int
    email: str
    name: str

    model_config = {"from_attributes": True}
