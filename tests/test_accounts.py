"""
Signup/login validation and the SQL-backed account flow.
"""

import pytest

from accounts.service import AccountError, clean_username, log_in, sign_up, validate_login, validate_signup


def test_signup_validation_messages():
    errors = validate_signup("a", "not-an-email", "abc", "")
    assert "username" in errors
    assert errors["email"] == ["Invalid email address."]
    assert "Password must be at least 6 characters." in errors["password"]
    assert "Password must contain at least one number." in errors["password"]
    assert "Password must contain at least one special character." in errors["password"]
    assert errors["confirmPassword"] == ["Please confirm your password."]


def test_signup_validation_mismatch_and_success():
    assert validate_signup("ash", "ash@example.com", "pika1!", "pika2!") == {
        "confirmPassword": ["Passwords do not match."]
    }
    assert validate_signup("ash", "ash@example.com", "pika1!", "pika1!") == {}


def test_login_validation():
    assert set(validate_login("", "")) == {"emailusername", "password"}
    assert validate_login("ash", "pika1!") == {}


def test_clean_username_strips_markup():
    assert clean_username("  <b>Ash</b> ") == "ash"


def test_sql_signup_then_login_by_username_or_email(app):
    with app.test_request_context():
        user = sign_up("Ash", "Ash@Example.com", "pika1!", "pika1!")
        assert user["username"] == "ash"
        assert user["email"] == "ash@example.com"

        with pytest.raises(AccountError) as excinfo:
            sign_up("ash", "other@example.com", "pika1!", "pika1!")
        assert excinfo.value.errors == {"username": ["Username is already taken."]}

        assert log_in("ASH", "pika1!")["id"] == user["id"]
        assert log_in("ash@example.com", "pika1!")["id"] == user["id"]

        with pytest.raises(AccountError) as excinfo:
            log_in("ash", "wrong1!")
        assert excinfo.value.status_code == 401
        assert excinfo.value.errors == {"emailusername": ["Invalid email/username or password."]}


def test_login_route_sets_session_and_logout_keeps_device(client):
    client.post(
        "/signup",
        data={"username": "misty", "email": "misty@example.com", "password": "star1!", "confirmPassword": "star1!"},
    )
    resp = client.post("/login", data={"emailusername": "misty", "password": "star1!"})
    assert resp.status_code == 302
    with client.session_transaction() as sess:
        assert sess["user"]["username"] == "misty"
        sess["device_id"] = "device-1"

    client.post("/logout")
    with client.session_transaction() as sess:
        assert "user" not in sess
        assert sess["device_id"] == "device-1"


def test_bad_login_rerenders_form(client):
    resp = client.post("/login", data={"emailusername": "nobody", "password": "x1!aaa"})
    assert resp.status_code == 401
    assert b"Invalid email/username or password." in resp.data
