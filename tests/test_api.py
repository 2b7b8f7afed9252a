"""HTTP surface: status codes, envelopes and role checks."""
from conftest import auth_headers, ledger_rows, order_count, stock_of


def _order_body(product_id, quantity=1, **overrides):
    body = {
        "items": [{"product": {"id": product_id}, "quantity": quantity}],
        "customerName": "Siti Rahma",
        "address": "Jl. Merdeka 1, Bandung",
        "phone": "+62 812 0000 0000",
        "paymentMethod": "cod",
    }
    body.update(overrides)
    return body


class TestOrdersApi:

    def test_place_order(self, client, db, make_product, customer):
        product = make_product(price=5000, stock=10)

        r = client.post("/api/orders", json=_order_body(product.id, 3), headers=auth_headers(customer))

        assert r.status_code == 201, r.text
        data = r.json()
        assert data["status"] == "success"
        assert data["order"]["totalAmount"] == 15000
        assert data["order"]["status"] == "pending"
        assert data["order"]["userId"] == customer.id
        assert data["order"]["items"][0]["productName"] == "Batik Shirt"
        assert stock_of(db, product.id) == 7

    def test_guest_checkout(self, client, db, make_product):
        product = make_product(stock=10)
        r = client.post("/api/orders", json=_order_body(product.id))
        assert r.status_code == 201, r.text
        assert r.json()["order"]["userId"] is None

    def test_client_price_is_ignored(self, client, db, make_product):
        product = make_product(price=5000, stock=10)
        body = _order_body(product.id, 2)
        body["items"][0]["price"] = 1
        body["items"][0]["product"]["price"] = 1

        r = client.post("/api/orders", json=body)

        assert r.json()["order"]["totalAmount"] == 10000

    def test_insufficient_stock(self, client, db, make_product):
        product = make_product(price=5000, stock=2)

        r = client.post("/api/orders", json=_order_body(product.id, 3))

        assert r.status_code == 400
        data = r.json()
        assert data["status"] == "error"
        assert "Available: 2" in data["message"]
        assert data["productId"] == product.id
        assert data["available"] == 2
        assert stock_of(db, product.id) == 2
        assert order_count(db) == 0

    def test_unknown_product(self, client, db):
        r = client.post("/api/orders", json=_order_body(404))
        assert r.status_code == 404
        assert r.json()["status"] == "error"

    def test_missing_fields(self, client, db, make_product):
        product = make_product()
        r = client.post("/api/orders", json=_order_body(product.id, customerName=""))
        assert r.status_code == 400
        assert "customerName" in r.json()["message"]

    def test_empty_cart(self, client, db):
        r = client.post("/api/orders", json=_order_body(1, items=[]))
        assert r.status_code == 400

    def test_malformed_body(self, client, db, make_product):
        product = make_product()
        r = client.post("/api/orders", json=_order_body(product.id, quantity="lots"))
        assert r.status_code == 400
        assert r.json()["status"] == "error"

    def test_rejected_order_is_audited(self, client, db, make_product):
        from models.log import Log

        product = make_product(stock=1)
        client.post("/api/orders", json=_order_body(product.id, 5))

        db.expire_all()
        entry = db.query(Log).filter(Log.action == "ORDER_CREATE").one()
        assert entry.status == "FAIL"

    def test_order_survives_failed_audit_write(self, client, db, make_product):
        from conftest import engine
        from models.log import Log

        product = make_product(stock=10)
        Log.__table__.drop(bind=engine)

        r = client.post("/api/orders", json=_order_body(product.id, 2))

        assert r.status_code == 201, r.text
        assert r.json()["order"]["totalAmount"] == 10000
        assert stock_of(db, product.id) == 8
        assert order_count(db) == 1

    def test_invalid_token_rejected(self, client, db, make_product):
        product = make_product()
        r = client.post("/api/orders", json=_order_body(product.id), headers={"Authorization": "Bearer nope"})
        assert r.status_code == 401
        assert r.json()["status"] == "error"

    def test_listing_requires_login(self, client, db):
        assert client.get("/api/orders").status_code == 401

    def test_listing_scoped_to_customer(self, client, db, make_product, make_user, admin):
        alice = make_user(email="alice@umistore.test")
        bob = make_user(email="bob@umistore.test")
        product = make_product(stock=10)
        client.post("/api/orders", json=_order_body(product.id), headers=auth_headers(alice))
        client.post("/api/orders", json=_order_body(product.id), headers=auth_headers(bob))

        mine = client.get("/api/orders", headers=auth_headers(alice)).json()["orders"]
        everything = client.get("/api/orders", headers=auth_headers(admin)).json()["orders"]

        assert [o["userId"] for o in mine] == [alice.id]
        assert len(everything) == 2

    def test_order_detail_of_other_customer_is_hidden(self, client, db, make_product, make_user):
        alice = make_user(email="alice@umistore.test")
        bob = make_user(email="bob@umistore.test")
        product = make_product(stock=10)
        order_id = client.post("/api/orders", json=_order_body(product.id), headers=auth_headers(alice)).json()["order"]["id"]

        assert client.get(f"/api/orders/{order_id}", headers=auth_headers(alice)).status_code == 200
        assert client.get(f"/api/orders/{order_id}", headers=auth_headers(bob)).status_code == 404

    def test_cancel_via_api(self, client, db, make_product, admin):
        product = make_product(price=5000, stock=10)
        order_id = client.post("/api/orders", json=_order_body(product.id, 3)).json()["order"]["id"]

        r = client.put(f"/api/orders/{order_id}/status", json={"status": "cancelled"}, headers=auth_headers(admin))

        assert r.status_code == 200, r.text
        assert r.json()["order"]["status"] == "cancelled"
        assert stock_of(db, product.id) == 10
        assert len(ledger_rows(db, product.id, "return")) == 1

    def test_status_change_requires_admin(self, client, db, make_product, customer):
        product = make_product(stock=10)
        order_id = client.post("/api/orders", json=_order_body(product.id)).json()["order"]["id"]

        r = client.put(f"/api/orders/{order_id}/status", json={"status": "cancelled"}, headers=auth_headers(customer))

        assert r.status_code == 403
        assert r.json()["status"] == "error"
        assert stock_of(db, product.id) == 9

    def test_status_validation(self, client, db, make_product, admin):
        product = make_product(stock=10)
        order_id = client.post("/api/orders", json=_order_body(product.id)).json()["order"]["id"]

        bad = client.put(f"/api/orders/{order_id}/status", json={"status": "lost"}, headers=auth_headers(admin))
        missing = client.put("/api/orders/999/status", json={"status": "cancelled"}, headers=auth_headers(admin))

        assert bad.status_code == 400
        assert missing.status_code == 404


class TestInventoryApi:

    def test_set_adjustment(self, client, db, make_product, admin):
        product = make_product(stock=7)

        r = client.post(
            "/api/inventory/update",
            json={"productId": product.id, "quantity": 12, "type": "set"},
            headers=auth_headers(admin),
        )

        assert r.status_code == 200, r.text
        data = r.json()
        assert data["product"]["stock"] == 12
        assert data["message"] == "Product stock set to 12 units"
        assert [row.quantity for row in ledger_rows(db, product.id, "manual-add")] == [5]

    def test_remove_too_many(self, client, db, make_product, admin):
        product = make_product(stock=2)
        r = client.post(
            "/api/inventory/update",
            json={"productId": product.id, "quantity": 5, "type": "remove"},
            headers=auth_headers(admin),
        )
        assert r.status_code == 400
        assert stock_of(db, product.id) == 2

    def test_admin_only(self, client, db, make_product, customer):
        product = make_product(stock=2)
        body = {"productId": product.id, "quantity": 5, "type": "add"}

        assert client.post("/api/inventory/update", json=body).status_code == 401
        assert client.post("/api/inventory/update", json=body, headers=auth_headers(customer)).status_code == 403
        assert client.get("/api/inventory/low-stock", headers=auth_headers(customer)).status_code == 403
        assert stock_of(db, product.id) == 2

    def test_low_stock(self, client, db, make_product, admin):
        make_product(name="Plenty", stock=40)
        make_product(name="Few", stock=4)
        make_product(name="None", stock=0)

        r = client.get("/api/inventory/low-stock", params={"threshold": 5}, headers=auth_headers(admin))

        assert r.status_code == 200
        assert [p["name"] for p in r.json()["products"]] == ["None", "Few"]

    def test_history(self, client, db, make_product, admin):
        product = make_product(stock=10, actor_id=admin.id)
        client.post("/api/orders", json=_order_body(product.id, 3))

        r = client.get(f"/api/inventory/product/{product.id}", headers=auth_headers(admin))

        assert r.status_code == 200
        data = r.json()
        assert [t["transactionType"] for t in data["inventoryTransactions"]] == ["sale", "initial"]
        assert data["inventoryTransactions"][1]["createdByName"] == "Store Admin"
        assert data["ledgerBalance"] == data["product"]["stock"] == 7

    def test_history_missing_product(self, client, db, admin):
        assert client.get("/api/inventory/product/12345", headers=auth_headers(admin)).status_code == 404


class TestCatalogApi:

    def test_create_and_edit_product(self, client, db, make_category, admin):
        category = make_category()

        created = client.post(
            "/api/products",
            json={"name": "Kebaya", "price": 25000, "categoryId": category.id, "stock": 6},
            headers=auth_headers(admin),
        )
        assert created.status_code == 201, created.text
        product = created.json()["product"]
        assert product["categoryName"] == "Batik"

        edited = client.put(
            f"/api/products/{product['id']}", json={"stock": 9, "discountPrice": 20000}, headers=auth_headers(admin)
        )
        assert edited.status_code == 200
        assert edited.json()["product"]["stock"] == 9
        assert edited.json()["product"]["discountPrice"] == 20000
        assert [r.transaction_type for r in ledger_rows(db, product["id"])] == ["initial", "adjustment-add"]

    def test_null_price_on_edit_is_a_bad_request(self, client, db, make_product, admin):
        product = make_product(price=5000)

        r = client.put(f"/api/products/{product.id}", json={"price": None}, headers=auth_headers(admin))

        assert r.status_code == 400
        data = r.json()
        assert data["status"] == "error"
        assert "price" in data["message"]
        assert "retryable" not in data
        assert client.get(f"/api/products/{product.id}").json()["product"]["price"] == 5000

    def test_negative_price_rejected(self, client, db, admin):
        r = client.post("/api/products", json={"name": "Bad", "price": -1}, headers=auth_headers(admin))
        assert r.status_code == 400

    def test_public_listing_and_filters(self, client, db, make_category, make_product):
        batik = make_category("Batik")
        make_product(name="Batik Shirt", category_id=batik.id)
        make_product(name="Sarong")

        everything = client.get("/api/products").json()["products"]
        only_batik = client.get("/api/products", params={"category": batik.id}).json()["products"]
        searched = client.get("/api/products", params={"search": "saro"}).json()["products"]

        assert len(everything) == 2
        assert [p["name"] for p in only_batik] == ["Batik Shirt"]
        assert [p["name"] for p in searched] == ["Sarong"]

    def test_product_detail_includes_related(self, client, db, make_category, make_product):
        batik = make_category("Batik")
        shirt = make_product(name="Batik Shirt", category_id=batik.id)
        dress = make_product(name="Batik Dress", category_id=batik.id)

        data = client.get(f"/api/products/{shirt.id}").json()

        assert data["product"]["name"] == "Batik Shirt"
        assert [p["id"] for p in data["relatedProducts"]] == [dress.id]

    def test_delete_category_detaches_products(self, client, db, make_category, make_product, admin):
        category = make_category()
        product = make_product(category_id=category.id)

        r = client.delete(f"/api/categories/{category.id}", headers=auth_headers(admin))

        assert r.status_code == 200
        assert client.get(f"/api/products/{product.id}").json()["product"]["categoryId"] is None
        assert client.get("/api/categories").json()["categories"] == []

    def test_category_crud(self, client, db, admin):
        created = client.post("/api/categories", json={"name": "Songket"}, headers=auth_headers(admin))
        assert created.status_code == 201
        category_id = created.json()["category"]["id"]

        renamed = client.put(f"/api/categories/{category_id}", json={"name": "Tenun"}, headers=auth_headers(admin))
        assert renamed.json()["category"]["name"] == "Tenun"

        nameless = client.post("/api/categories", json={}, headers=auth_headers(admin))
        assert nameless.status_code == 400
