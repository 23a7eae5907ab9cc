from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from odportal.models.user import UserRole


def _trim_or_none(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


class UserBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    role: UserRole
    registration_number: str | None = Field(default=None, max_length=50)
    year: str | None = Field(default=None, max_length=20)
    department: str | None = Field(default=None, max_length=100)
    section: str | None = Field(default=None, max_length=20)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Name cannot be empty")
        return trimmed

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("registration_number", "year", "department", "section")
    @classmethod
    def normalize_profile_text(cls, value: str | None) -> str | None:
        return _trim_or_none(value)


class UserCreate(UserBase):
    password: str = Field(min_length=8, max_length=128)

    @model_validator(mode="after")
    def validate_role_specific_requirements(self) -> "UserCreate":
        if self.role == UserRole.student:
            missing = [
                name
                for name in ("registration_number", "year", "department", "section")
                if not getattr(self, name)
            ]
            if missing:
                raise ValueError(f"{', '.join(missing)} required for student registration")
        elif self.role in {UserRole.hod, UserRole.faculty}:
            # Only students and class in-charges are tied to a single class.
            self.year = None
            self.section = None
        return self


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)
    role: UserRole | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class UserOut(UserBase):
    id: str
    class_label: str | None = None

    model_config = {"from_attributes": True}


class Token(BaseModel):
    access_token: str
    token_type: str
    user: UserOut
    home_path: str


class PasswordChange(BaseModel):
    current_password: str = Field(min_length=1, max_length=128)
    new_password: str = Field(min_length=8, max_length=128)
