from decimal import Decimal

from app.models.listing import Listing


def test_anonymous_create_redirects_to_login(client, post_listing, db, messages):
    resp = post_listing(client)

    assert resp.status_code == 303
    assert resp.headers["location"] == "/account/login"
    assert messages(client)["error"] == ["Please login to continue"]
    assert db.query(Listing).count() == 0


def test_login_resumes_pending_redirect(client, signup):
    signup(client, "alice")
    client.get("/account/logout", follow_redirects=False)

    resp = client.get("/listings/new", follow_redirects=False)
    assert resp.headers["location"] == "/account/login"

    resp = client.post(
        "/account/login",
        data={"username": "alice", "password": "s3cret!"},
        follow_redirects=False,
    )
    assert resp.status_code == 303
    assert resp.headers["location"] == "/listings/new"

    # consumed by the login above
    client.get("/account/logout", follow_redirects=False)
    resp = client.post(
        "/account/login",
        data={"username": "alice", "password": "s3cret!"},
        follow_redirects=False,
    )
    assert resp.headers["location"] == "/listings"


def test_non_owner_cannot_update(user_client, post_listing, latest_listing_id, db, messages):
    owner = user_client("owner")
    intruder = user_client("intruder")
    post_listing(owner)
    listing_id = latest_listing_id()

    resp = intruder.patch(
        f"/listings/{listing_id}",
        data={"title": "Hijacked", "price": "1"},
        follow_redirects=False,
    )

    assert resp.status_code == 303
    assert resp.headers["location"] == f"/listings/{listing_id}"
    assert messages(intruder)["error"] == ["You don't have permission to edit this listing"]

    db.expire_all()
    listing = db.get(Listing, listing_id)
    assert listing.title == "Cabin"
    assert listing.price == Decimal("100")


def test_non_owner_cannot_delete(user_client, post_listing, latest_listing_id, db):
    owner = user_client("owner")
    intruder = user_client("intruder")
    post_listing(owner)
    listing_id = latest_listing_id()

    resp = intruder.delete(f"/listings/{listing_id}", follow_redirects=False)

    assert resp.headers["location"] == f"/listings/{listing_id}"
    db.expire_all()
    assert db.get(Listing, listing_id) is not None


def test_non_owner_cannot_open_edit_form(user_client, post_listing, latest_listing_id):
    owner = user_client("owner")
    intruder = user_client("intruder")
    post_listing(owner)
    listing_id = latest_listing_id()

    assert owner.get(f"/listings/{listing_id}/update").status_code == 200

    resp = intruder.get(f"/listings/{listing_id}/update", follow_redirects=False)
    assert resp.headers["location"] == f"/listings/{listing_id}"


def test_owner_gate_on_missing_listing_is_not_found(user_client, messages):
    client = user_client("alice")

    resp = client.delete("/listings/999", follow_redirects=False)

    assert resp.status_code == 303
    assert resp.headers["location"] == "/listings"
    assert messages(client)["error"] == ["Listing does not exist"]


def test_anonymous_mutation_remembers_listing_page(client, signup, user_client, post_listing, latest_listing_id):
    owner = user_client("owner")
    post_listing(owner)
    listing_id = latest_listing_id()

    signup(client, "bob")
    client.get("/account/logout", follow_redirects=False)

    resp = client.delete(f"/listings/{listing_id}", follow_redirects=False)
    assert resp.headers["location"] == "/account/login"

    resp = client.post(
        "/account/login",
        data={"username": "bob", "password": "s3cret!"},
        follow_redirects=False,
    )
    assert resp.headers["location"] == f"/listings/{listing_id}"
