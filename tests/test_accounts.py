from app.core.security import get_password_hash, verify_password
from app.models.user import User


def test_signup_creates_user_and_logs_in(client, signup, messages, db):
    resp = signup(client, "alice")

    assert resp.status_code == 303
    assert resp.headers["location"] == "/listings"

    body = messages(client)
    assert body["success"] == ["Welcome! You are a new user."]
    assert body["current_user"]["username"] == "alice"

    user = db.query(User).filter(User.username == "alice").one()
    assert user.email == "alice@example.com"
    assert user.hashed_password != "s3cret!"
    assert verify_password("s3cret!", user.hashed_password)


def test_signup_rejects_duplicate_email(make_client, signup, messages, db):
    signup(make_client(), "alice", email="shared@example.com")
    other = make_client()

    resp = signup(other, "bob", email="shared@example.com")

    assert resp.headers["location"] == "/account/signup"
    assert messages(other)["error"] == ["E-mail already exists"]
    assert db.query(User).count() == 1


def test_signup_rejects_duplicate_username(make_client, signup, messages):
    signup(make_client(), "alice")
    other = make_client()

    resp = signup(other, "alice", email="another@example.com")

    assert resp.headers["location"] == "/account/signup"
    assert messages(other)["error"] == ["A user with the given username is already registered"]


def test_signup_rejects_malformed_email(client, signup, db):
    resp = signup(client, "alice", email="not-an-email")

    assert resp.headers["location"] == "/account/signup"
    assert db.query(User).count() == 0


def test_login_with_wrong_password(make_client, signup, messages):
    signup(make_client(), "alice")
    client = make_client()

    resp = client.post(
        "/account/login",
        data={"username": "alice", "password": "wrong"},
        follow_redirects=False,
    )

    assert resp.headers["location"] == "/account/login"
    body = messages(client)
    assert body["error"] == ["Password or username is incorrect"]
    assert body["current_user"] is None


def test_login_and_logout(make_client, signup, messages):
    signup(make_client(), "alice")
    client = make_client()

    resp = client.post(
        "/account/login",
        data={"username": "alice", "password": "s3cret!"},
        follow_redirects=False,
    )
    assert resp.headers["location"] == "/listings"
    body = messages(client)
    assert body["success"] == ["Welcome to TravelTide You are logged in"]
    assert body["current_user"]["username"] == "alice"

    resp = client.get("/account/logout", follow_redirects=False)
    assert resp.headers["location"] == "/listings"
    body = messages(client)
    assert body["success"] == ["you are logged out"]
    assert body["current_user"] is None


def test_password_hashes_are_salted():
    first = get_password_hash("same")
    second = get_password_hash("same")

    assert first != second
    assert verify_password("same", first)
    assert verify_password("same", second)
    assert not verify_password("other", first)
    assert not verify_password("same", "garbage")
