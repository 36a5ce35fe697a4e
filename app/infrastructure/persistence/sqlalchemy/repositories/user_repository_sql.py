from datetime import datetime
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .....db.models import User
from .....application.ports.user_repo import UserRepository, UserDto

class SqlUserRepository(UserRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, user: User) -> UserDto:
        return UserDto(
            id=user.id,
            name=getattr(user, 'name', None),
            phone=user.phone,
            email=user.email,
            status=user.status,
            is_verified=bool(getattr(user, 'is_verified', False)),
            is_admin=bool(getattr(user, 'is_admin', False)),
            created_at=user.created_at,
            updated_at=user.updated_at,
        )

    def get_by_phone(self, phone: str) -> Optional[UserDto]:
        user = self.session.exec(select(User).where(User.phone == phone)).first()
        return self._to_dto(user) if user else None

    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        user = self.session.exec(select(User).where(User.id == user_id)).first()
        return self._to_dto(user) if user else None

    def get_or_create_by_phone(self, phone: str) -> UserDto:
        existing = self.get_by_phone(phone)
        if existing:
            return existing
        user = User(name=f"User {phone}", phone=phone, status="active")
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError:
            # Another request created the same phone first
            self.session.rollback()
            return self.get_by_phone(phone)
        self.session.refresh(user)
        return self._to_dto(user)

    def mark_verified(self, user_id: str) -> None:
        user = self.session.exec(select(User).where(User.id == user_id)).first()
        if not user:
            return
        user.is_verified = True
        user.updated_at = datetime.utcnow()
        self.session.add(user)
        self.session.commit()
