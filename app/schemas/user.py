from typing import Annotated

from pydantic import BaseModel, EmailStr, ConfigDict, Field, StringConstraints

Username = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=150)]


class UserBase(BaseModel):
    username: Username


class UserCreate(UserBase):
    email: EmailStr
    password: str = Field(min_length=1)


class UserLogin(UserBase):
    password: str


class OwnerRead(BaseModel):
    id: int
    username: str

    model_config = ConfigDict(from_attributes=True)
