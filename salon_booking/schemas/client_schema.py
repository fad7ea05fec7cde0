"""Client records and the acting-user session."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class Role(str, Enum):
    CLIENT = "client"
    OWNER = "owner"


class Client(BaseModel):
    """Client record owned by the registration subsystem."""
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    owner_notes: Optional[str] = None


@dataclass(frozen=True)
class Actor:
    """
    The authenticated user an operation runs on behalf of.

    Supplied by the identity provider and trusted as already authorised.
    """
    id: str
    name: str
    role: Role = Role.CLIENT

    @property
    def is_owner(self) -> bool:
        return self.role == Role.OWNER
