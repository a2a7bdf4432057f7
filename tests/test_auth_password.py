from storefront import models
from conftest import login


def test_register_then_login_flow(client, db_session):
    r = client.post("/register", data={"email": "pw@example.com", "password": "secret"}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"

    # wrong password
    r2 = client.post("/login", data={"email": "pw@example.com", "password": "wrong"})
    assert r2.status_code == 200
    assert "Invalid credentials" in r2.text

    # correct password
    r3 = login(client, "pw@example.com", "secret")
    assert r3.status_code == 303
    assert "pw@example.com" in client.get("/").text


def test_password_is_hashed(client, db_session):
    client.post("/register", data={"email": "hash@example.com", "password": "secret"})
    user = db_session.query(models.User).filter_by(email="hash@example.com").one()
    assert user.password != "secret"
    assert user.role == "customer"


def test_duplicate_email_rerenders_form(client, db_session):
    client.post("/register", data={"email": "dup@example.com", "password": "one"})
    r = client.post("/register", data={"email": "dup@example.com", "password": "two"})
    assert r.status_code == 200
    assert "Email already in use" in r.text
    assert db_session.query(models.User).filter_by(email="dup@example.com").count() == 1


def test_missing_fields(client):
    r = client.post("/register", data={"email": "x@example.com"})
    assert r.status_code == 200
    assert "Missing fields" in r.text
    r = client.post("/login", data={})
    assert r.status_code == 200
    assert "Missing fields" in r.text


def test_registration_cannot_choose_role(client, db_session):
    client.post("/register", data={"email": "sneaky@example.com", "password": "pw", "role": "admin"})
    user = db_session.query(models.User).filter_by(email="sneaky@example.com").one()
    assert user.role == "customer"


def test_logout_clears_session(client, db_session):
    client.post("/register", data={"email": "bye@example.com", "password": "pw"})
    login(client, "bye@example.com", "pw")
    r = client.post("/logout", follow_redirects=False)
    assert r.status_code == 303
    assert "bye@example.com" not in client.get("/").text
