import uuid

from backoffice.domain.models import OrderLine, Product

def product_payload(title="Smoke Pellet", description="Pellet for quick escapes", slug="smoke-pellet", price=49.99):
    return {"title": title, "description": description, "slug": slug, "price": price}

def test_create_then_get_round_trip(client):
    resp = client.post('/v1/products', json=product_payload())
    assert resp.status_code == 201
    created = resp.json()
    assert created["price"] == 49.99

    fetched = client.get(f"/v1/products/{created['id']}")
    assert fetched.status_code == 200
    assert fetched.json() == created

def test_get_missing_product_is_not_found(client):
    assert client.get(f"/v1/products/{uuid.uuid4()}").status_code == 404

def test_update_replaces_all_fields(client):
    created = client.post('/v1/products', json=product_payload()).json()

    resp = client.put(
        f"/v1/products/{created['id']}",
        json=product_payload(title="Revised Title", description="Revised", slug="revised-slug", price=800),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["title"] == "Revised Title"
    assert body["slug"] == "revised-slug"
    assert body["price"] == 800.0

def test_update_missing_product_is_not_found(client):
    assert client.put(f"/v1/products/{uuid.uuid4()}", json=product_payload()).status_code == 404

def test_search_by_slug_and_description(client):
    client.post('/v1/products', json=product_payload(title="Grappling Gun", description="Portable", slug="grappling-gun"))
    client.post('/v1/products', json=product_payload(title="Batarang", description="Standard set", slug="batarang"))

    by_slug = client.get('/v1/products', params={"term": "GRAPPLING-"}).json()
    assert [p["title"] for p in by_slug["items"]] == ["Grappling Gun"]

    by_description = client.get('/v1/products', params={"term": "standard"}).json()
    assert [p["title"] for p in by_description["items"]] == ["Batarang"]

def test_default_sort_is_title_and_price_sort_breaks_ties_by_title(client):
    client.post('/v1/products', json=product_payload(title="Grappling Gun", slug="g", price=10))
    client.post('/v1/products', json=product_payload(title="Batarang", slug="b", price=30))
    client.post('/v1/products', json=product_payload(title="Antidote", slug="a", price=10))

    default = client.get('/v1/products').json()
    assert [p["title"] for p in default["items"]] == ["Antidote", "Batarang", "Grappling Gun"]

    by_price_desc = client.get('/v1/products', params={"sortBy": "price", "sortOrder": "desc"}).json()
    assert [p["title"] for p in by_price_desc["items"]] == ["Batarang", "Antidote", "Grappling Gun"]

def test_delete_unreferenced_product(client):
    created = client.post('/v1/products', json=product_payload()).json()
    assert client.delete(f"/v1/products/{created['id']}").status_code == 204
    assert client.get(f"/v1/products/{created['id']}").status_code == 404

def test_delete_missing_product_is_not_found(client):
    assert client.delete(f"/v1/products/{uuid.uuid4()}").status_code == 404

def test_delete_referenced_product_is_conflict_and_keeps_data(client, db, make_customer, make_product, make_order):
    customer = make_customer()
    product = make_product(title="Explosive Gel", price="25.00")
    order = make_order(customer.id, [(product.id, 2, "50.00")])

    resp = client.delete(f"/v1/products/{product.id}")
    assert resp.status_code == 409
    assert "detail" in resp.json()

    db.expire_all()
    assert db.get(Product, product.id) is not None
    lines = db.query(OrderLine).filter(OrderLine.order_id == order.id).all()
    assert len(lines) == 1
    assert lines[0].product_id == product.id

    rendered = client.get(f"/v1/orders/{order.id}").json()
    assert rendered["lines"][0]["productTitle"] == "Explosive Gel"
