from typing import Protocol, Optional
from datetime import datetime

class UserDto:
    def __init__(self, id: str, name: Optional[str], phone: str, email: Optional[str], status: str,
                 is_verified: bool, is_admin: bool, created_at: datetime, updated_at: datetime):
        self.id = id
        self.name = name
        self.phone = phone
        self.email = email
        self.status = status
        self.is_verified = is_verified
        self.is_admin = is_admin
        self.created_at = created_at
        self.updated_at = updated_at

class UserRepository(Protocol):
    def get_by_phone(self, phone: str) -> Optional[UserDto]:
        ...

    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        ...

    def get_or_create_by_phone(self, phone: str) -> UserDto:
        ...

    def mark_verified(self, user_id: str) -> None:
        ...
