from enum import Enum

from sqlmodel import Field, SQLModel


class UserRole(str, Enum):
    STUDENT = "student"
    INSTRUCTOR = "instructor"


class UserBase(SQLModel):
    email: str = Field(unique=True, index=True)
    full_name: str | None = None
    role: UserRole = UserRole.STUDENT
    title: str | None = None
    hourly_rate: float | None = None  # used to price the default template


class User(UserBase, table=True):
    __tablename__ = "users"
    id: int | None = Field(default=None, primary_key=True)

    @property
    def is_instructor(self) -> bool:
        return self.role == UserRole.INSTRUCTOR
