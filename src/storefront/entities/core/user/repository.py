from sqlalchemy import func
from sqlmodel import Session, select

from src.storefront.entities.core._base import utcnow
from src.storefront.entities.core.user.entity import User, UserRole
from src.storefront.entities.core.user.table import UserTable


class UserRepository:
    """Data-access layer for users."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, user_id: str) -> User | None:
        row = self._session.get(UserTable, user_id)
        if row is None:
            return None
        return User.model_validate(row, from_attributes=True)

    def get_by_clerk_id(self, clerk_id: str) -> User | None:
        statement = select(UserTable).where(UserTable.clerk_id == clerk_id)
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return User.model_validate(row, from_attributes=True)

    def get_by_email(self, email: str) -> User | None:
        statement = select(UserTable).where(
            func.lower(UserTable.email) == email.strip().lower()
        )
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return User.model_validate(row, from_attributes=True)

    def list_all(self) -> list[User]:
        statement = select(UserTable).order_by(UserTable.created_at.desc())
        rows = self._session.exec(statement).all()
        return [User.model_validate(row, from_attributes=True) for row in rows]

    def count(self) -> int:
        return self._session.exec(select(func.count()).select_from(UserTable)).one()

    def admin_exists(self) -> bool:
        statement = select(UserTable.id).where(UserTable.role == UserRole.ADMIN.value)
        return self._session.exec(statement).first() is not None

    def create(self, user: User) -> User:
        row = UserTable(**user.model_dump())
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return User.model_validate(row, from_attributes=True)

    def update(self, user: User) -> User:
        row = self._session.get(UserTable, user.id)
        if row is None:
            raise ValueError(f"User with id {user.id} not found")

        for field, value in user.model_dump(exclude={"id", "created_at"}).items():
            setattr(row, field, value)
        row.updated_at = utcnow()

        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return User.model_validate(row, from_attributes=True)

    def delete(self, user_id: str) -> bool:
        row = self._session.get(UserTable, user_id)
        if row is None:
            return False
        self._session.delete(row)
        self._session.flush()
        return True
