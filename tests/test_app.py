def test_root_redirects_to_index(client):
    resp = client.get("/", follow_redirects=False)

    assert resp.status_code == 303
    assert resp.headers["location"] == "/listings"


def test_unknown_route_returns_error_document(client):
    resp = client.get("/nowhere")

    assert resp.status_code == 404
    assert resp.json() == {"status": 404, "message": "Page Not Found!"}


def test_method_override_only_applies_to_known_methods(user_client, post_listing, latest_listing_id):
    client = user_client("alice")
    post_listing(client)
    listing_id = latest_listing_id()

    resp = client.post(f"/listings/{listing_id}?_method=TRACE", follow_redirects=False)

    assert resp.status_code == 405


def test_delete_through_method_override(user_client, post_listing, latest_listing_id):
    client = user_client("alice")
    post_listing(client)
    listing_id = latest_listing_id()

    resp = client.post(f"/listings/{listing_id}?_method=DELETE", follow_redirects=False)

    assert resp.headers["location"] == "/listings"
    assert client.get("/listings").json() == []


def test_messages_are_cleared_once_read(client):
    client.get("/listings/77", follow_redirects=False)

    assert client.get("/messages").json()["error"] == ["Listing does not exist"]
    assert client.get("/messages").json()["error"] == []


def test_new_listing_form_requires_login(client, user_client):
    resp = client.get("/listings/new", follow_redirects=False)
    assert resp.headers["location"] == "/account/login"

    body = user_client("alice").get("/listings/new").json()
    assert "title" in body["fields"]
    assert ".jpg" in body["image_extensions"]
