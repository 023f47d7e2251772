import pytest
from pydantic import ValidationError

import validation
from errors import FieldError
from schemas import HabitIn, LoginIn, RegisterIn


def errors_of(model, data):
    with pytest.raises(ValidationError) as excinfo:
        model.model_validate(data)
    return validation.first_error_message(excinfo.value.errors())


def test_require_text():
    assert validation.require_text("title", "  Run  ") == "Run"
    with pytest.raises(FieldError, match="Title is required"):
        validation.require_text("title", "   ")
    with pytest.raises(FieldError, match="Description is required"):
        validation.require_text("description", None)
    with pytest.raises(FieldError, match="Invalid title"):
        validation.require_text("title", 5)


def test_check_choice():
    assert validation.check_choice("priority", "High") == "High"
    assert validation.check_choice("priority", "") is None
    assert validation.check_choice("priority", None) is None
    with pytest.raises(FieldError, match="Invalid priority"):
        validation.check_choice("priority", "high")


@pytest.mark.parametrize("value, expected", [(None, 0), ("", 0), (4, 4), ("12", 12), (3.0, 3), (2 ** 63 - 1, 2 ** 63 - 1)])
def test_parse_streak(value, expected):
    assert validation.parse_streak(value) == expected


@pytest.mark.parametrize("value", [-1, "abc", "-3", 2.5, True, [1], 2 ** 63, "99999999999999999999", 1e20])
def test_parse_streak_rejects(value):
    with pytest.raises(FieldError, match="Invalid streak"):
        validation.parse_streak(value)


def test_parse_target_date():
    assert validation.parse_target_date("2025-03-01") == "2025-03-01"
    assert validation.parse_target_date("") is None
    for bad in ("2025-02-30", "tomorrow", "2025/03/01", 20250301):
        with pytest.raises(FieldError, match="Invalid target_date"):
            validation.parse_target_date(bad)


def test_habit_in_cleans_fields():
    habit = HabitIn.model_validate({"title": " Run ", "description": "5k", "category": "", "streak": "2"})
    assert habit.title == "Run"
    assert habit.category is None
    assert habit.streak == 2


def test_blank_title_reported_before_enum_errors():
    message = errors_of(HabitIn, {"title": " ", "description": "d", "category": "Nope", "status": "Nope"})
    assert message == "Title is required"


def test_enum_errors_reported_in_fixed_order():
    data = {"title": "t", "description": "d", "status": "Nope", "priority": "Nope", "category": "Nope"}
    assert errors_of(HabitIn, data) == "Invalid category"
    del data["category"]
    assert errors_of(HabitIn, data) == "Invalid priority"


def test_login_messages():
    assert errors_of(LoginIn, {"password": "x"}) == "Username is required"
    assert errors_of(LoginIn, {"username": "bob"}) == "Password is required"


def test_register_messages():
    assert errors_of(RegisterIn, {"username": "bob", "password": "secret1"}) == "Email is required"
    assert errors_of(RegisterIn, {"username": "bob", "email": "not-an-email", "password": "secret1"}) == "Invalid email"
    assert errors_of(RegisterIn, {"username": "bob", "email": "bob@example.com", "password": "123"}) == (
        "Password must be at least 6 characters"
    )


def test_new_password_fits_bcrypt_input():
    assert validation.check_new_password("x" * 72) == "x" * 72
    with pytest.raises(FieldError, match="at most 72 bytes"):
        validation.check_new_password("x" * 73)
    # counted in encoded bytes, not characters
    with pytest.raises(FieldError, match="at most 72 bytes"):
        validation.check_new_password("\u00e9" * 40)
    data = {"username": "bob", "email": "bob@example.com", "password": "p" * 80}
    assert errors_of(RegisterIn, data) == "Password must be at most 72 bytes"


def test_first_error_message_for_body_errors():
    assert validation.first_error_message([{"type": "json_invalid", "loc": ("body", 3), "msg": "x"}]) == (
        "Invalid JSON body"
    )
    assert validation.first_error_message([{"type": "missing", "loc": ("body",), "msg": "x"}]) == (
        "Request body is required"
    )
    assert validation.first_error_message([{"type": "dict_type", "loc": ("body",), "msg": "x"}]) == (
        "Invalid request body"
    )
    assert validation.first_error_message([]) == "Invalid request"
