from datetime import datetime

from beanie import Document, Indexed
from pydantic import BaseModel, Field


class IdentityProfile(BaseModel):
    """Profile fields carried by a verified identity event."""
    external_id: str
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    photo_url: str = ""


class UserRecord(BaseModel):
    external_id: str
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    photo_url: str = ""
    credit_balance: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class User(Document):
    external_id: Indexed(str, unique=True)
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    photo_url: str = ""
    credit_balance: int = 0  # mutated only via $inc on reconciliation
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "users"

    def to_record(self) -> UserRecord:
        return UserRecord(
            external_id=self.external_id,
            email=self.email,
            first_name=self.first_name,
            last_name=self.last_name,
            photo_url=self.photo_url,
            credit_balance=self.credit_balance,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
