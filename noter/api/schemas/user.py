"""
Pydantic schemas for `/user` requests and responses.

Key rules:
- `emailAddress` is always stored lower-cased.
- Names, emails and passwords follow the same rules as the sign-up forms;
  each failure reports which field is wrong.
"""
import re
from typing import Annotated, Any, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import AfterValidator, field_validator, model_validator
from pydantic.alias_generators import to_camel

from noter.api.schemas.common import ApiModel

# Words of letters separated by ". ", ", ", "-", "'" or a single space
NAME_PATTERN = re.compile(r"^\s*[A-Za-z]+(?:(?:[.,] |[-' ])[A-Za-z]+)*\.?\s*$")
PASSWORD_PATTERN = re.compile(r"^(?=.*[0-9])(?=.*[A-Z])(?=.*[a-z])(?=.*[!@#$%^&*\-_.?]).{8,50}$")


def check_name(value: str) -> str:
    if not NAME_PATTERN.match(value) or sum(c.isalpha() for c in value) < 2:
        raise ValueError("Invalid name")
    return value.strip()


def check_email(value: str) -> str:
    try:
        validate_email(value.strip(), check_deliverability=False)
    except EmailNotValidError:
        raise ValueError("Invalid email address")
    return value.strip().lower()


def check_password(value: str) -> str:
    if not PASSWORD_PATTERN.match(value):
        raise ValueError("Invalid password")
    return value


Name = Annotated[str, AfterValidator(check_name)]
EmailAddress = Annotated[str, AfterValidator(check_email)]
Password = Annotated[str, AfterValidator(check_password)]


def _require(data: Any, *names: str) -> Any:
    """Reject payloads with a missing or blank required field."""
    if not isinstance(data, dict):
        return data
    for name in names:
        value = data.get(to_camel(name), data.get(name))
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("Missing credentials")
    return data


def _check_confirmation(password: Optional[str], confirm_password: Optional[str]) -> None:
    if (password or "") != (confirm_password or ""):
        raise ValueError("Confirm password does not match with password")


class SignupPayload(ApiModel):
    name: Name
    email_address: EmailAddress
    password: Password
    confirm_password: str

    @model_validator(mode="before")
    @classmethod
    def _required(cls, data: Any) -> Any:
        return _require(data, "name", "email_address", "password", "confirm_password")

    @model_validator(mode="after")
    def _confirm(self):
        _check_confirmation(self.password, self.confirm_password)
        return self


class LoginPayload(ApiModel):
    email_address: EmailAddress
    password: Password

    @model_validator(mode="before")
    @classmethod
    def _required(cls, data: Any) -> Any:
        return _require(data, "email_address", "password")


class ResetPasswordPayload(ApiModel):
    email_address: EmailAddress
    password: Password
    confirm_password: str

    @model_validator(mode="before")
    @classmethod
    def _required(cls, data: Any) -> Any:
        return _require(data, "email_address", "password", "confirm_password")

    @model_validator(mode="after")
    def _confirm(self):
        _check_confirmation(self.password, self.confirm_password)
        return self


class UserUpdatePayload(ApiModel):
    """
    Partial profile update. Blank strings mean "leave unchanged".
    """
    id: Optional[str] = None
    name: Optional[str] = None
    email_address: Optional[str] = None
    password: Optional[str] = None
    confirm_password: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _name(cls, v: Optional[str]) -> Optional[str]:
        return check_name(v) if v and v.strip() else None

    @field_validator("email_address")
    @classmethod
    def _email(cls, v: Optional[str]) -> Optional[str]:
        return check_email(v) if v and v.strip() else None

    @field_validator("password")
    @classmethod
    def _password(cls, v: Optional[str]) -> Optional[str]:
        return check_password(v) if v else None

    @model_validator(mode="after")
    def _confirm(self):
        if self.password:
            _check_confirmation(self.password, self.confirm_password)
        return self


class UserBrief(ApiModel):
    id: str
    name: str


class UserOut(UserBrief):
    email_address: str


class UserEnvelope(ApiModel):
    user: UserOut


class UserUpdateOut(ApiModel):
    message: str
    user: UserOut


class LoginOut(ApiModel):
    message: str
    token: str
    user: UserBrief


class RefreshOut(ApiModel):
    token: str
    user: UserBrief
