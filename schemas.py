"""
Database Schemas for FocusFlow

Collection models describe what is stored in MongoDB ("habits" and "users").
The *In models validate request bodies; their validators share the rules in
validation.py so the API and the stores reject the same input.
"""
from typing import Optional, Union

from pydantic import BaseModel, EmailStr, Field, field_validator
from pydantic_core import PydanticCustomError

import validation
from errors import FieldError


def _checked(check, *args):
    try:
        return check(*args)
    except FieldError as exc:
        raise PydanticCustomError("invalid_field", exc.message)


class Habit(BaseModel):
    """
    Habits collection schema
    Collection name: "habits"
    """
    id: Union[int, str] = Field(..., description="Sequential integer id, or ObjectId hex string")
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    category: str = Field("General", description="One of validation.CATEGORIES")
    frequency: str = Field("Daily", description="One of validation.FREQUENCIES")
    priority: str = Field("Medium", description="One of validation.PRIORITIES")
    status: str = Field("Active", description="One of validation.STATUSES")
    target_date: Optional[str] = Field(None, description="YYYY-MM-DD")
    streak: int = Field(0, ge=0)
    notes: str = ""
    created_at: str = Field(..., description="UTC ISO-8601 timestamp")
    updated_at: Optional[str] = None


class User(BaseModel):
    """
    Users collection schema
    Collection name: "users"
    """
    username: str = Field(..., description="Unique login name")
    email: EmailStr = Field(..., description="Unique, lowercased")
    password: str = Field(..., description="BCrypt password hash")
    created_at: Optional[str] = None


class HabitIn(BaseModel):
    title: Optional[str] = Field(None, validate_default=True)
    description: Optional[str] = Field(None, validate_default=True)
    category: Optional[str] = None
    frequency: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    target_date: Optional[str] = None
    streak: Optional[int] = None
    notes: Optional[str] = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def _required_text(cls, value, info):
        return _checked(validation.require_text, info.field_name, value)

    @field_validator("category", "frequency", "priority", "status", mode="before")
    @classmethod
    def _choice(cls, value, info):
        return _checked(validation.check_choice, info.field_name, value)

    @field_validator("target_date", mode="before")
    @classmethod
    def _target_date(cls, value):
        return _checked(validation.parse_target_date, value)

    @field_validator("streak", mode="before")
    @classmethod
    def _streak(cls, value):
        return _checked(validation.parse_streak, value)

    @field_validator("notes", mode="before")
    @classmethod
    def _notes(cls, value):
        return _checked(validation.clean_notes, value)


class LoginIn(BaseModel):
    username: Optional[str] = Field(None, validate_default=True)
    password: Optional[str] = Field(None, validate_default=True)

    @field_validator("username", mode="before")
    @classmethod
    def _username(cls, value):
        return _checked(validation.require_text, "username", value)

    @field_validator("password", mode="before")
    @classmethod
    def _password(cls, value):
        return _checked(validation.check_password, value)


class RegisterIn(BaseModel):
    username: Optional[str] = Field(None, validate_default=True)
    email: Optional[EmailStr] = Field(None, validate_default=True)
    password: Optional[str] = Field(None, validate_default=True)

    @field_validator("username", "email", mode="before")
    @classmethod
    def _required_text(cls, value, info):
        return _checked(validation.require_text, info.field_name, value)

    @field_validator("password", mode="before")
    @classmethod
    def _password(cls, value):
        return _checked(validation.check_new_password, value)


class UserSummary(BaseModel):
    username: str
    email: Optional[str] = None


class AuthMessage(BaseModel):
    message: str
    user: UserSummary


class AuthStatus(BaseModel):
    authenticated: bool
    user: Optional[UserSummary] = None
