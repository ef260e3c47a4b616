import pytest

from storefront.core.config import settings
from storefront.security.utils import TokenConfigError, create_access_token, decode_token

from conftest import PASSWORD, headers_for


def test_token_carries_identity():
    token, _ = create_access_token(7, "a@example.com", "A", "admin")
    payload = decode_token(token)
    assert payload["sub"] == "a@example.com"
    assert payload["role"] == "admin"
    assert payload["type"] == "access"


def test_token_requires_configured_secret(monkeypatch):
    monkeypatch.setattr(settings, "JWT_SECRET", "")
    with pytest.raises(TokenConfigError):
        create_access_token(1, "a@example.com", "A", "user")


def test_signup_returns_user_and_token(client):
    resp = client.post("/api/v1/auth/signup", json={"name": "Mona", "email": "mona@example.com", "password": "long-enough"})
    assert resp.status_code == 201
    body = resp.json()
    assert body["user"]["email"] == "mona@example.com"
    assert body["user"]["role"] == "user"
    assert decode_token(body["token"])["sub"] == "mona@example.com"


def test_signup_duplicate_email(client, user):
    resp = client.post("/api/v1/auth/signup", json={"name": "Again", "email": user.email, "password": "long-enough"})
    assert resp.status_code == 409


def test_signup_validates_payload(client):
    resp = client.post("/api/v1/auth/signup", json={"name": "M", "email": "not-an-email", "password": "x"})
    assert resp.status_code == 422


def test_signin(client, user):
    resp = client.post("/api/v1/auth/signin", json={"email": user.email, "password": PASSWORD})
    assert resp.status_code == 200
    assert resp.json()["token_type"] == "bearer"


def test_signin_bad_password(client, user):
    resp = client.post("/api/v1/auth/signin", json={"email": user.email, "password": "wrong-pass"})
    assert resp.status_code == 401


def test_missing_and_garbage_tokens(client):
    assert client.get("/api/v1/carts/").status_code == 401
    resp = client.get("/api/v1/carts/", headers={"Authorization": "Bearer not.a.jwt"})
    assert resp.status_code == 401


def test_role_is_enforced(client, user):
    assert client.get("/api/v1/users/", headers=headers_for(user)).status_code == 403


def test_password_change_invalidates_older_tokens(client, user, admin):
    old = headers_for(user)
    resp = client.patch(f"/api/v1/users/{user.id}/change-password", json={"password": "brand-new-pass"},
                        headers=headers_for(admin))
    assert resp.status_code == 200

    resp = client.get("/api/v1/wishlist/", headers=old)
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Token issued before password change"

    signin = client.post("/api/v1/auth/signin", json={"email": user.email, "password": "brand-new-pass"})
    fresh = {"Authorization": f"Bearer {signin.json()['token']}"}
    assert client.get("/api/v1/wishlist/", headers=fresh).status_code == 200


def test_admin_user_management(client, admin):
    auth = headers_for(admin)
    resp = client.post("/api/v1/users/", json={"name": "Clerk", "email": "clerk@example.com",
                                               "password": "long-enough", "role": "admin"}, headers=auth)
    assert resp.status_code == 201
    uid = resp.json()["id"]

    resp = client.put(f"/api/v1/users/{uid}", json={"name": "Head Clerk"}, headers=auth)
    assert resp.json()["name"] == "Head Clerk"
    assert len(client.get("/api/v1/users/", headers=auth).json()) == 2

    assert client.delete(f"/api/v1/users/{uid}", headers=auth).status_code == 204
    assert client.get(f"/api/v1/users/{uid}", headers=auth).status_code == 404


def test_user_with_orders_cannot_be_deleted(client, user, admin, make_product, make_cart):
    cart_id = make_cart(user, [(make_product(), 1)]).id
    address = {"street": "1 Nile St", "city": "Cairo", "phone": "0100000000"}
    client.post(f"/api/v1/orders/{cart_id}", json={"shipping_address": address}, headers=headers_for(user))
    assert client.delete(f"/api/v1/users/{user.id}", headers=headers_for(admin)).status_code == 409
