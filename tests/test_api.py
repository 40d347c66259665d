API = "/api/v1"
PASSWORD = "secret123"


def test_health(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["success"] is True


# ---- auth ----


def test_register_sets_cookie_and_rejects_duplicates(client):
    payload = {"name": "Ayu", "email": "Ayu@Example.com", "password": "secret123"}

    response = client.post(f"{API}/auth/register", json=payload)
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["token"]
    assert body["user"]["email"] == "ayu@example.com"
    assert body["user"]["role"] == "customer"
    assert response.cookies.get("token") == body["token"]

    again = client.post(f"{API}/auth/register", json=payload)
    assert again.status_code == 409
    assert again.json()["success"] is False


def test_login(client, make_user):
    user = make_user(email="budi@example.com")

    ok = client.post(
        f"{API}/auth/login", json={"email": user.email, "password": PASSWORD}
    )
    assert ok.status_code == 200
    assert ok.json()["user"]["id"] == user.id

    bad = client.post(
        f"{API}/auth/login", json={"email": user.email, "password": "wrong-one"}
    )
    assert bad.status_code == 401
    assert bad.json() == {
        "success": False,
        "message": "Invalid credentials",
        "code": "Unauthorized",
    }


def test_me_requires_token(client, make_user, auth_headers):
    assert client.get(f"{API}/auth/me").status_code == 401

    bogus = client.get(f"{API}/auth/me", headers={"Authorization": "Bearer nope"})
    assert bogus.status_code == 401

    user = make_user()
    response = client.get(f"{API}/auth/me", headers=auth_headers(user))
    assert response.status_code == 200
    assert response.json()["user"]["email"] == user.email


# ---- catalog ----


def test_product_list_envelope(client, catalog):
    response = client.get(f"{API}/products", params={"limit": 5})
    assert response.status_code == 200
    body = response.json()

    assert body["success"] is True
    assert body["count"] == 1
    assert body["totalPages"] == 1
    assert body["currentPage"] == 1

    (product,) = body["products"]
    assert product["category"] == "dresses"
    assert product["brand"] == "Batik Nusantara"
    assert product["final_price"] == 80000
    assert product["image_url"] == "https://cdn.example/k.jpg"


def test_product_list_filters(client, catalog):
    def count(**params):
        return client.get(f"{API}/products", params=params).json()["count"]

    assert count(search="batik") == 1
    assert count(search="songket") == 0
    assert count(min_price=90000) == 0
    assert count(max_price=80000) == 1
    assert count(on_sale="true") == 1
    assert count(category=catalog["category"].id) == 1


def test_product_detail_counts_views_and_prices_variants(client, catalog):
    product_id = catalog["product"].id

    first = client.get(f"{API}/products/{product_id}").json()["product"]
    second = client.get(f"{API}/products/{product_id}").json()["product"]

    assert second["view_count"] == first["view_count"] + 1
    (variant,) = second["variants"]
    assert variant["sku"] == "KEB-RED-M"
    assert variant["final_price"] == 85000


def test_missing_product_is_404_envelope(client):
    response = client.get(f"{API}/products/999")
    assert response.status_code == 404
    assert response.json()["success"] is False
    assert response.json()["code"] == "NotFound"


def test_only_admins_manage_products(client, make_user, auth_headers):
    payload = {"name": "Tenun Ikat Scarf", "price": 120000, "stock_quantity": 4}

    customer = client.post(
        f"{API}/products", json=payload, headers=auth_headers(make_user())
    )
    assert customer.status_code == 403
    assert customer.json()["success"] is False

    admin = client.post(
        f"{API}/products", json=payload, headers=auth_headers(make_user(role="admin"))
    )
    assert admin.status_code == 201
    assert admin.json()["product"]["slug"] == "tenun-ikat-scarf"


# ---- cart ----


def test_guest_cart_issues_session_cookie_once(client, catalog):
    first = client.get(f"{API}/cart")
    assert first.status_code == 200
    token = first.cookies.get("sessionId")
    assert token

    added = client.post(
        f"{API}/cart/items",
        json={"product_id": catalog["product"].id, "quantity": 2},
    )
    assert added.status_code == 200
    assert "set-cookie" not in added.headers
    cart = added.json()["cart"]
    assert cart["total_quantity"] == 2
    assert cart["subtotal"] == 160000


def test_invalid_payload_is_422_envelope(client, catalog):
    response = client.post(
        f"{API}/cart/items",
        json={"product_id": catalog["product"].id, "quantity": 0},
    )
    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "ValidationError"
    assert body["errors"][0]["field"] == "quantity"


def test_adding_beyond_stock_reports_availability(client, catalog):
    response = client.post(
        f"{API}/cart/items",
        json={"product_id": catalog["product"].id, "quantity": 11},
    )
    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "InsufficientStock"
    assert body["message"] == "Insufficient stock for Kebaya Modern"
    assert body["available"] == 10


# ---- orders ----


def _place_order(client, headers, product_id, quantity=2):
    address = client.post(
        f"{API}/addresses",
        json={
            "recipient_name": "Siti",
            "phone": "08123456789",
            "address_line": "Jl. Merdeka 1",
            "city": "Jakarta",
            "province": "DKI Jakarta",
        },
        headers=headers,
    )
    assert address.status_code == 201
    assert address.json()["address"]["is_default"] is True

    client.post(
        f"{API}/cart/items",
        json={"product_id": product_id, "quantity": quantity},
        headers=headers,
    )
    return client.post(
        f"{API}/orders",
        json={
            "shipping_address_id": address.json()["address"]["id"],
            "payment_method": "bank_transfer",
        },
        headers=headers,
    )


def test_order_flow(client, catalog, make_user, auth_headers):
    headers = auth_headers(make_user())
    product_id = catalog["product"].id

    placed = _place_order(client, headers, product_id)
    assert placed.status_code == 201
    order = placed.json()["order"]
    assert order["subtotal"] == 160000
    assert order["shipping_cost"] == 15000
    assert order["tax_amount"] == 17600
    assert order["total_amount"] == 192600
    assert order["items"][0]["image_url"] == "https://cdn.example/k.jpg"

    cart = client.get(f"{API}/cart", headers=headers).json()["cart"]
    assert cart["items"] == []

    listed = client.get(f"{API}/orders", headers=headers).json()
    assert listed["count"] == 1
    assert listed["orders"][0]["item_count"] == 1

    stock = client.get(f"{API}/products/{product_id}").json()["product"]["stock_quantity"]
    assert stock == 8

    cancelled = client.put(f"{API}/orders/{order['id']}/cancel", headers=headers)
    assert cancelled.status_code == 200
    assert cancelled.json()["order"]["status"] == "cancelled"

    stock = client.get(f"{API}/products/{product_id}").json()["product"]["stock_quantity"]
    assert stock == 10

    again = client.put(f"{API}/orders/{order['id']}/cancel", headers=headers)
    assert again.status_code == 400
    assert again.json()["code"] == "InvalidTransition"


def test_empty_cart_checkout_fails(client, make_user, make_address, auth_headers):
    user = make_user()
    address = make_address(user)
    response = client.post(
        f"{API}/orders",
        json={"shipping_address_id": address.id, "payment_method": "cod"},
        headers=auth_headers(user),
    )
    assert response.status_code == 400
    assert response.json()["code"] == "EmptyCart"


def test_orders_of_others_are_hidden(client, catalog, make_user, auth_headers):
    order = _place_order(client, auth_headers(make_user()), catalog["product"].id).json()
    other = auth_headers(make_user())

    response = client.get(f"{API}/orders/{order['order']['id']}", headers=other)
    assert response.status_code == 404


def test_admin_moves_order_and_reads_stats(client, catalog, make_user, auth_headers):
    customer = auth_headers(make_user())
    admin = auth_headers(make_user(role="admin"))
    order_id = _place_order(client, customer, catalog["product"].id).json()["order"]["id"]

    assert client.get(f"{API}/orders/admin/all", headers=customer).status_code == 403

    listed = client.get(
        f"{API}/orders/admin/all", params={"status": "pending"}, headers=admin
    ).json()
    assert listed["count"] == 1

    bad = client.patch(
        f"{API}/orders/admin/{order_id}/status",
        json={"status": "completed"},
        headers=admin,
    )
    assert bad.status_code == 400

    shipped = client.patch(
        f"{API}/orders/admin/{order_id}/status",
        json={"status": "shipped"},
        headers=admin,
    )
    assert shipped.status_code == 400

    confirmed = client.patch(
        f"{API}/orders/admin/{order_id}/status",
        json={"status": "confirmed"},
        headers=admin,
    )
    assert confirmed.json()["order"]["status"] == "confirmed"

    stats = client.get(f"{API}/admin/stats", headers=admin)
    assert stats.status_code == 200
    body = stats.json()["stats"]
    assert body["total_customers"] == 1
    assert body["total_orders"] == 1
    assert body["total_products"] == 1
    assert body["total_sales"] == 192600
    assert body["top_products"][0]["total_quantity"] == 2
    assert body["latest_orders"][0]["id"] == order_id
    assert body["orders_by_status"]["confirmed"] == 1
    assert body["orders_by_status"]["pending"] == 0
    assert len(body["daily_sales"]) == 1

    assert client.get(
        f"{API}/admin/stats", params={"month": 13}, headers=admin
    ).status_code == 400
