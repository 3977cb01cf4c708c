from datetime import datetime, timedelta

from sqlmodel import select

from app.models.manual_order_key import ManualOrderKey
from app.models.order import Order
from app.models.user import UserProfile
from app.utils.token import token_for

SINHALA_NOTE = {"unitId": "BD-M01", "itemType": "sinhalaNote"}


def place(client, headers, identity, items=(SINHALA_NOTE,)):
    response = client.post("/orders", json={"items": list(items)}, headers=headers(identity))
    assert response.status_code == 201, response.text
    return response.json()["order"]


def item_body(order_id, unit_id="BD-M01", item_type="sinhalaNote"):
    return {"orderId": order_id, "unitId": unit_id, "itemType": item_type}


def test_health(client):
    response = client.get("/health/check")
    assert response.status_code == 200
    assert response.json()["database"] == "ok"


def test_units_listing(client, units):
    response = client.get("/units")
    assert response.status_code == 200
    assert [u["id"] for u in response.json()] == ["BD-M01", "BD-M02"]


def test_missing_token_is_401(client):
    response = client.post("/content/download-link", json=item_body("o1"))
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_invalid_token_is_401(client):
    response = client.get("/orders/me", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401


def test_place_order_and_list(client, units, headers, buyer):
    order = place(client, headers, buyer)

    assert order["orderCode"] == "ORD-1001"
    assert order["status"] == "pending"
    assert order["completedAt"] is None
    assert order["items"][0]["price"] == 300.0

    mine = client.get("/orders/me", headers=headers(buyer)).json()
    assert [o["id"] for o in mine] == [order["id"]]


def test_order_detail_hidden_from_other_users(client, units, headers, buyer, other_user, admin):
    order = place(client, headers, buyer)

    assert client.get(f"/orders/{order['id']}", headers=headers(other_user)).status_code == 403
    assert client.get(f"/orders/{order['id']}", headers=headers(admin)).status_code == 200


def test_role_in_body_is_ignored(client, units, headers, buyer):
    order = place(client, headers, buyer)

    response = client.post(
        "/admin/orders/fulfill",
        json={"orderId": order["id"], "role": "admin"},
        headers=headers(buyer),
    )
    assert response.status_code == 403


def test_fulfill_endpoint_errors(client, headers, admin):
    assert client.post("/admin/orders/fulfill", json={}, headers=headers(admin)).status_code == 400
    assert client.post("/admin/orders/fulfill", json={"orderId": "nope"},
                       headers=headers(admin)).status_code == 404


def test_full_purchase_flow(client, db, blob, units, headers, buyer, admin):
    blob.put("units/BD-M01/sinhala-note.pdf")
    order = place(client, headers, buyer)

    # not completed yet
    early = client.post("/content/download-link", json=item_body(order["id"]), headers=headers(buyer))
    assert early.status_code == 403

    fulfilled = client.post("/admin/orders/fulfill", json={"orderId": order["id"]}, headers=headers(admin))
    assert fulfilled.status_code == 200, fulfilled.text
    assert fulfilled.json()["materialized"] == 1
    assert fulfilled.json()["order"]["status"] == "completed"

    content = client.get("/content", headers=headers(buyer)).json()
    assert content["items"][0]["accessible"] is True
    assert 0 < content["items"][0]["secondsRemaining"] <= 6 * 3600

    link = client.post("/content/download-link", json=item_body(order["id"]), headers=headers(buyer))
    assert link.status_code == 200
    assert link.json()["downloadUrl"].startswith("https://signed.example/units/BD-M01/sinhala-note.pdf")
    assert link.json()["expiresIn"] == 900

    for _ in range(2):
        consumed = client.post("/content/consume", json=item_body(order["id"]), headers=headers(buyer))
        assert consumed.status_code == 200

    with db() as s:
        stored = s.get(Order, order["id"])
        assert stored.items[0].downloaded is True
    assert not any(k.startswith("user-content/") for k in blob.objects)

    detail = client.get(f"/orders/{order['id']}", headers=headers(buyer)).json()
    assert detail["items"][0]["userFileUrl"] is None


def test_download_link_after_window_is_403(client, db, blob, units, headers, buyer, admin):
    blob.put("units/BD-M01/sinhala-note.pdf")
    order = place(client, headers, buyer)
    client.post("/admin/orders/fulfill", json={"orderId": order["id"]}, headers=headers(admin))

    # move completion back past the window
    with db() as s:
        stored = s.get(Order, order["id"])
        stored.completed_at = datetime.utcnow() - timedelta(hours=6, minutes=1)
        s.add(stored)
        s.commit()

    response = client.post("/content/download-link", json=item_body(order["id"]), headers=headers(buyer))
    assert response.status_code == 403
    assert "expired" in response.json()["detail"]


def test_download_link_request_errors(client, blob, units, headers, buyer, other_user, admin):
    order = place(client, headers, buyer)
    client.post("/admin/orders/fulfill", json={"orderId": order["id"]}, headers=headers(admin))
    url = "/content/download-link"

    assert client.post(url, json={"orderId": order["id"]}, headers=headers(buyer)).status_code == 400
    assert client.post(url, json=item_body(order["id"], item_type="poster"),
                       headers=headers(buyer)).status_code == 400
    assert client.post(url, json=item_body(order["id"]), headers=headers(other_user)).status_code == 403
    assert client.post(url, json=item_body(order["id"], unit_id="BD-M02"),
                       headers=headers(buyer)).status_code == 404
    # master file never uploaded
    assert client.post(url, json=item_body(order["id"]), headers=headers(buyer)).status_code == 404


def test_consume_errors(client, units, headers, buyer, other_user):
    order = place(client, headers, buyer)
    url = "/content/consume"

    assert client.post(url, json=item_body(order["id"])).status_code == 401
    assert client.post(url, json=item_body(order["id"]), headers=headers(other_user)).status_code == 403
    assert client.post(url, json=item_body("missing"), headers=headers(buyer)).status_code == 404
    assert client.post(url, json=item_body(order["id"], unit_id="BD-M02"),
                       headers=headers(buyer)).status_code == 404


def test_manual_key_flow(client, db, blob, units, headers, buyer, other_user, admin):
    blob.put("units/BD-M02/english-note.pdf")
    created = client.post(
        "/admin/keys",
        json={"items": [{"unitId": "BD-M02", "itemType": "englishNote"}]},
        headers=headers(admin),
    )
    assert created.status_code == 201
    key = created.json()["key"]
    assert created.json()["orderCode"] == "MAN-1001"

    redeemed = client.post("/keys/redeem", json={"key": key}, headers=headers(buyer))
    assert redeemed.status_code == 200, redeemed.text
    order = redeemed.json()["order"]
    assert order["status"] == "completed"
    assert order["completedAt"] is not None
    assert redeemed.json()["materialized"] == 1

    again = client.post("/keys/redeem", json={"key": key}, headers=headers(other_user))
    assert again.status_code == 409

    unknown = client.post("/keys/redeem", json={"key": "NOPE"}, headers=headers(buyer))
    assert unknown.status_code == 404

    history = client.get("/admin/keys?redeemed=true", headers=headers(admin)).json()
    assert history[0]["redeemedBy"] == "u1"

    with db() as s:
        stored = s.exec(select(ManualOrderKey)).one()
        assert stored.order_id == order["id"]


def test_admin_status_changes(client, units, headers, buyer, admin):
    order = place(client, headers, buyer)
    url = f"/admin/orders/{order['id']}/status"

    processing = client.patch(url, json={"status": "processing"}, headers=headers(admin))
    assert processing.json()["order"]["status"] == "processing"

    completed = client.patch(url, json={"status": "completed"}, headers=headers(admin))
    completed_at = completed.json()["order"]["completedAt"]
    assert completed_at is not None

    reopened = client.patch(url, json={"status": "pending"}, headers=headers(admin))
    assert reopened.status_code == 409

    again = client.patch(url, json={"status": "completed"}, headers=headers(admin))
    assert again.json()["order"]["completedAt"] == completed_at

    events = client.get(f"/admin/orders/{order['id']}/events", headers=headers(admin)).json()
    assert [e["event_type"] for e in events] == ["order_placed", "order_processing", "order_completed"]


def test_admin_order_listing(client, units, headers, buyer, admin):
    place(client, headers, buyer)
    place(client, headers, buyer)

    page = client.get("/admin/orders?limit=1&status=pending", headers=headers(admin)).json()
    assert page["total_items"] == 2
    assert page["total_pages"] == 2
    assert len(page["results"]) == 1

    assert client.get("/admin/orders", headers=headers(buyer)).status_code == 403


def test_unit_admin_and_receipt_snapshot(client, units, headers, buyer, admin):
    order = place(client, headers, buyer)

    updated = client.put("/admin/units/BD-M01", json={"price_sinhala_note": 500.0}, headers=headers(admin))
    assert updated.status_code == 200
    assert updated.json()["price_sinhala_note"] == 500.0

    detail = client.get(f"/orders/{order['id']}", headers=headers(buyer)).json()
    assert detail["items"][0]["price"] == 300.0

    receipt = client.get(f"/orders/{order['id']}/receipt", headers=headers(buyer))
    assert receipt.status_code == 200
    assert receipt.headers["content-type"] == "application/pdf"
    assert receipt.content.startswith(b"%PDF")


def test_create_unit(client, headers, admin):
    body = {"id": "HC-M01", "code": "HC-M01", "title": "Hair Cutting", "category": "hair",
            "price_sinhala_note": 200.0}
    assert client.post("/admin/units", json=body, headers=headers(admin)).status_code == 201
    assert client.post("/admin/units", json=body, headers=headers(admin)).status_code == 400


def test_role_change_takes_effect_after_user_refreshes(client, db, units, headers, buyer, admin):
    place(client, headers, buyer)

    response = client.patch("/admin/users/u1/role", json={"role": "admin"}, headers=headers(admin))
    assert response.status_code == 200
    assert response.json() == {"uid": "u1", "role": "admin"}

    with db() as s:
        assert s.get(UserProfile, "u1").role == "admin"

    # old token still carries the user claim, the claim wins
    assert client.get("/admin/orders", headers=headers(buyer)).status_code == 403

    refreshed = client.post("/users/me/token", headers=headers(buyer))
    assert refreshed.status_code == 200
    new_token = refreshed.json()["access_token"]
    assert client.get("/admin/orders", headers={"Authorization": f"Bearer {new_token}"}).status_code == 200


def test_admin_cannot_act_as_another_user(client, blob, units, headers, buyer, admin):
    blob.put("units/BD-M01/sinhala-note.pdf")
    order = place(client, headers, buyer)
    client.post("/admin/orders/fulfill", json={"orderId": order["id"]}, headers=headers(admin))

    assert client.post("/content/download-link", json=item_body(order["id"]),
                       headers=headers(admin)).status_code == 403

    # a role write hands the admin nothing usable as the buyer
    changed = client.patch("/admin/users/u1/role", json={"role": "user"}, headers=headers(admin))
    assert "access_token" not in changed.json()

    # refreshing only ever reissues the caller's own identity
    own = client.post("/users/me/token", headers=headers(admin)).json()["access_token"]
    assert client.post("/content/download-link", json=item_body(order["id"]),
                       headers={"Authorization": f"Bearer {own}"}).status_code == 403
    assert client.post("/content/consume", json=item_body(order["id"]),
                       headers={"Authorization": f"Bearer {own}"}).status_code == 403


def test_profile_self_update(client, headers, buyer):
    assert client.get("/users/me").status_code == 401

    me = client.get("/users/me", headers=headers(buyer)).json()
    assert me["uid"] == "u1"
    assert me["photoURL"] is None

    response = client.put(
        "/users/update-profile",
        json={"displayName": "Nimali P.", "photoURL": "https://img.example/n.png", "role": "admin"},
        headers=headers(buyer),
    )
    assert response.status_code == 200
    user = response.json()["user"]
    assert user["displayName"] == "Nimali P."
    assert user["photoURL"] == "https://img.example/n.png"
    assert user["role"] == "user"


def test_admin_order_list_end_date_covers_whole_day(client, units, headers, buyer, admin):
    order = place(client, headers, buyer)
    today = datetime.utcnow().date()

    page = client.get(f"/admin/orders?start_date={today}&end_date={today}", headers=headers(admin)).json()
    assert [o["id"] for o in page["results"]] == [order["id"]]

    tomorrow = today + timedelta(days=1)
    page = client.get(f"/admin/orders?start_date={tomorrow}", headers=headers(admin)).json()
    assert page["results"] == []


def test_expired_token_rejected(client):
    token = token_for("u1", expires_delta=timedelta(seconds=-1))
    response = client.get("/orders/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
