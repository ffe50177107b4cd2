"""Tests for account endpoints: registration, provisioning, password lock, deletion."""
from tests.conftest import (
    DEFAULT_PASSWORD,
    STORE_PASSWORD,
    TEMP_PASSWORD,
    auth,
    create_venue,
    provision_store,
    register_user,
    seed_admin,
    setup_marketplace,
    submit_request,
)


class TestRegistration:

    def test_register_creates_plain_user(self, client):
        data = register_user(client, email="alice@example.com", first_name="Alice")
        assert data["role"] == "user"
        assert data["first_name"] == "Alice"
        assert data["password_changed"] is True
        assert "password_hash" not in data

    def test_duplicate_email(self, client):
        register_user(client)
        resp = client.post("/api/users/", json={
            "email": "user@example.com",
            "first_name": "Copy",
            "last_name": "Cat",
            "password": DEFAULT_PASSWORD,
        })
        assert resp.status_code == 409

    def test_invalid_email(self, client):
        resp = client.post("/api/users/", json={
            "email": "not-an-email",
            "first_name": "A",
            "last_name": "B",
            "password": DEFAULT_PASSWORD,
        })
        assert resp.status_code == 422

    def test_short_password(self, client):
        resp = client.post("/api/users/", json={
            "email": "a@example.com",
            "first_name": "A",
            "last_name": "B",
            "password": "short",
        })
        assert resp.status_code == 422


    def test_multibyte_password_over_72_bytes(self, client):
        resp = client.post("/api/users/", json={
            "email": "a@example.com",
            "first_name": "A",
            "last_name": "B",
            "password": "é" * 40,  # 40 characters, 80 bytes
        })
        assert resp.status_code == 422

    def test_multibyte_password_at_72_bytes(self, client):
        resp = client.post("/api/users/", json={
            "email": "a@example.com",
            "first_name": "A",
            "last_name": "B",
            "password": "é" * 36,
        })
        assert resp.status_code == 201

    def test_new_password_over_72_bytes(self, client):
        user = register_user(client)
        resp = client.post("/api/users/me/password", headers=auth(user["user_id"]), json={
            "current_password": DEFAULT_PASSWORD,
            "new_password": "ü" * 37,
        })
        assert resp.status_code == 422

    def test_overlong_current_password_is_just_wrong(self, client):
        user = register_user(client)
        resp = client.post("/api/users/me/password", headers=auth(user["user_id"]), json={
            "current_password": "x" * 100,
            "new_password": "another-pass",
        })
        assert resp.status_code == 422
        assert resp.json()["error"] == "ValidationError"


class TestProfile:

    def test_get_me(self, client):
        user = register_user(client)
        resp = client.get("/api/users/me", headers=auth(user["user_id"]))
        assert resp.status_code == 200
        assert resp.json()["email"] == "user@example.com"

    def test_get_me_requires_caller(self, client):
        assert client.get("/api/users/me").status_code == 401

    def test_unknown_caller(self, client):
        resp = client.get("/api/users/me", headers=auth("00000000-0000-0000-0000-000000000000"))
        assert resp.status_code == 401

    def test_update_me(self, client):
        user = register_user(client)
        resp = client.patch("/api/users/me", headers=auth(user["user_id"]), json={
            "first_name": "Updated",
            "phone_number": "555-0111",
        })
        assert resp.status_code == 200
        assert resp.json()["first_name"] == "Updated"
        assert resp.json()["phone_number"] == "555-0111"
        assert resp.json()["last_name"] == "User"

    def test_update_me_cannot_clear_name(self, client):
        user = register_user(client)
        resp = client.patch("/api/users/me", headers=auth(user["user_id"]), json={"first_name": None})
        assert resp.status_code == 422
        assert resp.json()["error"] == "ValidationError"
        assert "first_name" in resp.json()["context"]["fields"]
        me = client.get("/api/users/me", headers=auth(user["user_id"])).json()
        assert me["first_name"] == "Una"

    def test_update_me_can_clear_phone(self, client):
        user = register_user(client)
        resp = client.patch("/api/users/me", headers=auth(user["user_id"]), json={"phone_number": None})
        assert resp.status_code == 200
        assert resp.json()["phone_number"] is None

    def test_notification_preferences(self, client):
        user = register_user(client)
        assert user["notifications_enabled"] is True
        assert user["email_notifications"] is True
        assert user["push_notifications"] is True

        resp = client.patch("/api/users/me", headers=auth(user["user_id"]), json={
            "email_notifications": False,
            "push_notifications": False,
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["notifications_enabled"] is True
        assert data["email_notifications"] is False
        assert data["push_notifications"] is False

        resp = client.patch("/api/users/me", headers=auth(user["user_id"]), json={"notifications_enabled": None})
        assert resp.status_code == 422

    def test_change_password(self, client):
        user = register_user(client)
        resp = client.post("/api/users/me/password", headers=auth(user["user_id"]), json={
            "current_password": DEFAULT_PASSWORD,
            "new_password": "another-pass",
        })
        assert resp.status_code == 200

    def test_change_password_wrong_current(self, client):
        user = register_user(client)
        resp = client.post("/api/users/me/password", headers=auth(user["user_id"]), json={
            "current_password": "wrong-password",
            "new_password": "another-pass",
        })
        assert resp.status_code == 422
        assert resp.json()["error"] == "ValidationError"

    def test_other_user_profile_hidden(self, client, db):
        admin_id = seed_admin(db)
        alice = register_user(client, email="alice@example.com")
        bob = register_user(client, email="bob@example.com")
        assert client.get(f"/api/users/{bob['user_id']}", headers=auth(alice["user_id"])).status_code == 403
        assert client.get(f"/api/users/{bob['user_id']}", headers=auth(bob["user_id"])).status_code == 200
        assert client.get(f"/api/users/{bob['user_id']}", headers=auth(admin_id)).status_code == 200


class TestStoreProvisioning:

    def test_store_locked_until_password_changed(self, client, db):
        admin_id = seed_admin(db)
        store = provision_store(client, admin_id, activate=False)
        assert store["role"] == "store"
        assert store["password_changed"] is False

        resp = client.get("/api/requests/incoming", headers=auth(store["user_id"]))
        assert resp.status_code == 403
        assert resp.json()["context"]["redirect"] == "change-password"

        resp = client.post("/api/users/me/password", headers=auth(store["user_id"]), json={
            "current_password": TEMP_PASSWORD,
            "new_password": STORE_PASSWORD,
        })
        assert resp.status_code == 200
        assert resp.json()["password_changed"] is True

        resp = client.get("/api/requests/incoming", headers=auth(store["user_id"]))
        assert resp.status_code == 200

    def test_new_password_must_differ(self, client, db):
        admin_id = seed_admin(db)
        store = provision_store(client, admin_id, activate=False)
        resp = client.post("/api/users/me/password", headers=auth(store["user_id"]), json={
            "current_password": TEMP_PASSWORD,
            "new_password": TEMP_PASSWORD,
        })
        assert resp.status_code == 422

    def test_only_admin_provisions(self, client, db):
        user = register_user(client)
        resp = client.post("/api/users/provision", headers=auth(user["user_id"]), json={
            "email": "store@example.com",
            "first_name": "Sam",
            "last_name": "Store",
            "password": TEMP_PASSWORD,
        })
        assert resp.status_code == 403

    def test_provision_admin_account(self, client, db):
        admin_id = seed_admin(db)
        resp = client.post("/api/users/provision", headers=auth(admin_id), json={
            "email": "second-admin@example.com",
            "first_name": "Second",
            "last_name": "Admin",
            "password": TEMP_PASSWORD,
            "role": "admin",
        })
        assert resp.status_code == 201
        assert resp.json()["password_changed"] is True


class TestAdminUserManagement:

    def test_list_users_by_role(self, client, db):
        admin_id = seed_admin(db)
        provision_store(client, admin_id)
        register_user(client, email="alice@example.com")
        register_user(client, email="bob@example.com")

        everyone = client.get("/api/users/", headers=auth(admin_id)).json()
        assert len(everyone) == 4
        stores = client.get("/api/users/?role=store", headers=auth(admin_id)).json()
        assert [u["email"] for u in stores] == ["store@example.com"]

    def test_list_users_requires_admin(self, client):
        user = register_user(client)
        assert client.get("/api/users/", headers=auth(user["user_id"])).status_code == 403

    def test_delete_user(self, client, db):
        admin_id = seed_admin(db)
        user = register_user(client)
        resp = client.delete(f"/api/users/{user['user_id']}", headers=auth(admin_id))
        assert resp.status_code == 204
        assert client.get(f"/api/users/{user['user_id']}", headers=auth(admin_id)).status_code == 404

    def test_cannot_delete_store_with_venues(self, client, db):
        admin_id = seed_admin(db)
        store = provision_store(client, admin_id)
        create_venue(client, admin_id, store["user_id"])
        resp = client.delete(f"/api/users/{store['user_id']}", headers=auth(admin_id))
        assert resp.status_code == 409

    def test_cannot_delete_user_with_open_requests(self, client, db):
        admin_id, store, venue, customer = setup_marketplace(client, db)
        rid = submit_request(client, venue["venue_id"], customer["user_id"]).json()["request_id"]
        resp = client.delete(f"/api/users/{customer['user_id']}", headers=auth(admin_id))
        assert resp.status_code == 409

        client.post(f"/api/requests/{rid}/reject", headers=auth(store["user_id"]))
        resp = client.delete(f"/api/users/{customer['user_id']}", headers=auth(admin_id))
        assert resp.status_code == 204

    def test_admin_cannot_delete_self(self, client, db):
        admin_id = seed_admin(db)
        resp = client.delete(f"/api/users/{admin_id}", headers=auth(admin_id))
        assert resp.status_code == 409
