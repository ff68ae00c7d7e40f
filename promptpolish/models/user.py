"""User SQLModel definition for locally registered accounts."""
from typing import Optional

from sqlmodel import Field, SQLModel


class User(SQLModel, table=True):
    """
    Locally registered user.

    Only the bcrypt hash of the password is stored. Users issued by an
    external identity provider never get a row here; their provider uid is
    used directly as the owner id of prompts and conversations.
    """
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, unique=True, nullable=False, max_length=255)
    email: str = Field(index=True, unique=True, nullable=False, max_length=255)
    password: str = Field(nullable=False)
