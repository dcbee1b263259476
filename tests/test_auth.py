import jwt
import pytest

from core.auth import create_access_token, decode_access_token, hash_password, parse_expires_in, verify_password
from core.config import JWT_TOKEN_NAME

SIGNUP = {"fullName": "Ada Merchant", "email": "Ada@Example.com", "password": "secret123"}


@pytest.mark.parametrize("value, expected", [
    ("7d", 7 * 24 * 60 * 60 * 1000),
    ("12h", 12 * 60 * 60 * 1000),
    ("30m", 30 * 60 * 1000),
    ("45s", 45 * 1000),
    ("500ms", 500),
    ("1000", 1000),
    ("soon", 7 * 24 * 60 * 60 * 1000),
    ("", 7 * 24 * 60 * 60 * 1000),
])
def test_parse_expires_in(value, expected):
    assert parse_expires_in(value) == expected


def test_password_hashing():
    hashed = hash_password("secret123")
    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("secret123", None)


def test_token_round_trip():
    token = create_access_token("user-1")
    assert decode_access_token(token) == "user-1"
    assert decode_access_token("garbage") is None

    forged = jwt.encode({"sub": "user-1"}, "another-secret", algorithm="HS256")
    assert decode_access_token(forged) is None


def test_register_sets_cookie(client):
    r = client.post("/auth/register", json=SIGNUP)
    assert r.status_code == 201
    body = r.json()
    assert body["email"] == "ada@example.com"
    assert body["role"] == "ADMIN"
    assert body["planType"] == "FREE"
    assert JWT_TOKEN_NAME in r.cookies

    me = client.get("/auth/me")
    assert me.status_code == 200
    assert me.json()["id"] == body["userId"]
    assert "passwordHash" not in me.json()


def test_second_account_is_regular_user(client):
    client.post("/auth/register", json=SIGNUP)
    client.cookies.clear()
    r = client.post("/auth/register", json={**SIGNUP, "email": "bob@example.com"})
    assert r.json()["role"] == "USER"


def test_register_duplicate_email(client):
    client.post("/auth/register", json=SIGNUP)
    r = client.post("/auth/register", json={**SIGNUP, "email": "ada@example.com"})
    assert r.status_code == 409
    assert r.json() == {"error": "User with this email already exists"}


def test_register_validation(client):
    r = client.post("/auth/register", json={"fullName": "A", "email": "nope", "password": "123"})
    assert r.status_code == 400
    assert set(r.json()["fields"]) == {"fullName", "email", "password"}


def test_login_and_logout(client):
    client.post("/auth/register", json=SIGNUP)
    client.cookies.clear()
    assert client.get("/auth/me").status_code == 401

    r = client.post("/auth/login", json={"email": "ADA@example.com", "password": "secret123"})
    assert r.status_code == 200
    assert r.json()["email"] == "ada@example.com"
    assert client.get("/auth/me").status_code == 200

    r = client.post("/auth/logout")
    assert r.status_code == 200
    assert client.get("/auth/me").status_code == 401


def test_login_invalid_credentials(client):
    client.post("/auth/register", json=SIGNUP)
    client.cookies.clear()

    r = client.post("/auth/login", json={"email": "ada@example.com", "password": "wrong-password"})
    assert r.status_code == 401
    assert r.json() == {"error": "Invalid credentials"}

    r = client.post("/auth/login", json={"email": "ghost@example.com", "password": "secret123"})
    assert r.status_code == 401


def test_bearer_token_is_accepted(client, merchant):
    r = client.get("/auth/me", headers=merchant["headers"])
    assert r.status_code == 200
    assert r.json()["id"] == merchant["id"]


def test_token_for_deleted_user(client):
    token = create_access_token("no-such-user")
    r = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
