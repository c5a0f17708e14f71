import pytest

from app.core.security import verify_password
from app.models.user import User


@pytest.fixture
def admin(db, staff_user):
    staff_user.role = "ADMIN"
    db.commit()
    return staff_user


def new_user(**overrides):
    body = {
        "email": "Clerk@BandOffice.example.com",
        "password": "long-enough",
        "first_name": "Mary",
        "last_name": "Clerk",
        "department": "HOUSING",
    }
    body.update(overrides)
    return body


def test_staff_cannot_manage_users(client):
    assert client.get("/api/users").status_code == 403
    assert client.post("/api/users", json=new_user()).status_code == 403


def test_create_user(client, db, admin):
    response = client.post("/api/users", json=new_user())

    assert response.status_code == 201
    user = response.json()["user"]
    assert user["email"] == "clerk@bandoffice.example.com"
    assert user["role"] == "STAFF"
    assert "hashed_password" not in user
    stored = db.query(User).filter(User.id == user["id"]).one()
    assert verify_password("long-enough", stored.hashed_password)


def test_create_user_duplicate_email(client, admin):
    client.post("/api/users", json=new_user())
    response = client.post("/api/users", json=new_user())
    assert response.status_code == 400


@pytest.mark.parametrize("override", [
    {"email": "not-an-email"},
    {"department": "PARKS"},
    {"role": "OWNER"},
    {"password": "short"},
])
def test_create_user_validation(client, admin, override):
    assert client.post("/api/users", json=new_user(**override)).status_code == 422


def test_list_and_get(client, admin):
    user_id = client.post("/api/users", json=new_user()).json()["user"]["id"]

    assert len(client.get("/api/users").json()["users"]) == 2
    assert client.get(f"/api/users/{user_id}").json()["user"]["first_name"] == "Mary"
    assert client.get("/api/users/missing").status_code == 404


def test_update_user(client, db, admin):
    user_id = client.post("/api/users", json=new_user()).json()["user"]["id"]

    response = client.patch(f"/api/users/{user_id}", json={"role": "STAFF_ADMIN", "password": "another-secret"})

    assert response.status_code == 200
    assert response.json()["user"]["role"] == "STAFF_ADMIN"
    stored = db.query(User).filter(User.id == user_id).one()
    assert verify_password("another-secret", stored.hashed_password)
    assert stored.last_name == "Clerk"


def test_update_user_email_in_use(client, admin):
    client.post("/api/users", json=new_user(email="taken@example.com"))
    user_id = client.post("/api/users", json=new_user()).json()["user"]["id"]
    response = client.patch(f"/api/users/{user_id}", json={"email": "taken@example.com"})
    assert response.status_code == 400


def test_deactivate_user(client, db, admin):
    user_id = client.post("/api/users", json=new_user()).json()["user"]["id"]

    assert client.delete(f"/api/users/{user_id}").status_code == 200
    assert db.query(User).filter(User.id == user_id).one().is_active is False


def test_cannot_deactivate_self(client, admin):
    assert client.delete(f"/api/users/{admin.id}").status_code == 400
    assert client.patch(f"/api/users/{admin.id}", json={"is_active": False}).status_code == 400
