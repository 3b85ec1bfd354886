from decimal import Decimal


def test_list_products_requires_auth(client, products):
    assert client.get("/api/products").status_code == 401


def test_list_products(client, employee_headers, products):
    response = client.get("/api/products", headers=employee_headers)
    assert response.status_code == 200
    names = [p["name"] for p in response.json()]
    assert sorted(names) == ["Gadget", "Widget"]


def test_list_products_low_stock_filter(client, employee_headers, products):
    client.put(f"/api/products/{products['p1']}", json={"quantity": 5}, headers=employee_headers)
    response = client.get("/api/products", params={"low_stock": True}, headers=employee_headers)
    assert [p["id"] for p in response.json()] == [products["p1"]]


def test_list_products_search(client, employee_headers, products):
    response = client.get("/api/products", params={"search": "gad"}, headers=employee_headers)
    assert [p["name"] for p in response.json()] == ["Gadget"]


def test_create_product(client, employee_headers):
    response = client.post(
        "/api/products",
        json={"name": "Cable", "sku": "C-1", "price": "4.50", "quantity": 20, "threshold": 4},
        headers=employee_headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["id"]
    assert body["quantity"] == 20
    assert Decimal(str(body["price"])) == Decimal("4.50")

    fetched = client.get(f"/api/products/{body['id']}", headers=employee_headers)
    assert fetched.json()["name"] == "Cable"


def test_create_product_rejects_negative_threshold(client, employee_headers):
    response = client.post(
        "/api/products", json={"name": "Bad", "threshold": -1}, headers=employee_headers
    )
    assert response.status_code == 422


def test_get_unknown_product(client, employee_headers):
    response = client.get("/api/products/does-not-exist", headers=employee_headers)
    assert response.status_code == 404
    assert response.json()["error"]["message"] == "Produit non trouvé"


def test_update_product_partial(client, employee_headers, products):
    response = client.put(
        f"/api/products/{products['p2']}", json={"threshold": 1}, headers=employee_headers
    )
    assert response.status_code == 200
    body = response.json()
    assert body["threshold"] == 1
    assert body["name"] == "Gadget"
    assert body["quantity"] == 3


def test_delete_product_requires_admin(client, employee_headers, products):
    response = client.delete(f"/api/products/{products['p1']}", headers=employee_headers)
    assert response.status_code == 403


def test_delete_product_as_admin(client, admin_headers, products):
    response = client.delete(f"/api/products/{products['p1']}", headers=admin_headers)
    assert response.status_code == 204

    missing = client.get(f"/api/products/{products['p1']}", headers=admin_headers)
    assert missing.status_code == 404


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["environment"] == "test"
