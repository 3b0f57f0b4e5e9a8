import uuid

import pytest
from sqlalchemy import update

from app.core.errors import ConflictError
from app.db.models.adoption_request import AdoptionRequest
from app.db.models.chat import Chat
from app.db.models.pet import Pet
from app.services import adoption
from app.services.auth import Identity

from conftest import API, TestingSessionLocal, create_pet, register, regular_payload


def request_adoption(client, headers, pet):
    return client.post(
        f"{API}/adoption-requests",
        json={"petId": pet["id"], "sellerId": pet["sellerId"]},
        headers=headers,
    )


@pytest.fixture
def adoption_request(client, buyer, pet):
    _, headers = buyer
    res = request_adoption(client, headers, pet)
    assert res.status_code == 201, res.text
    return res.json()


@pytest.fixture
def chat(client, buyer, adoption_request):
    _, headers = buyer
    res = client.post(f"{API}/chat/adoption/{adoption_request['id']}", headers=headers)
    assert res.status_code == 201, res.text
    return res.json()


# -------------------------
# Adoption requests
# -------------------------
def test_create_request_leaves_pet_available(client, buyer, pet, adoption_request):
    user, _ = buyer
    assert adoption_request["status"] == "pending"
    assert adoption_request["userId"] == user["id"]
    assert adoption_request["sellerId"] == pet["sellerId"]
    assert client.get(f"{API}/pets/{pet['id']}").json()["status"] == "available"


def test_duplicate_pending_request_is_a_conflict(client, buyer, pet, adoption_request):
    _, headers = buyer
    res = request_adoption(client, headers, pet)
    assert res.status_code == 409
    assert res.json()["message"] == "Adoption request already exists"


def test_different_requesters_may_have_pending_requests_on_same_pet(client, other_buyer, pet, adoption_request):
    _, headers = other_buyer
    assert request_adoption(client, headers, pet).status_code == 201


def test_new_request_allowed_after_rejection(client, buyer, seller, pet, adoption_request):
    _, seller_headers = seller
    _, buyer_headers = buyer
    client.patch(f"{API}/adoption-requests/{adoption_request['id']}", json={"status": "rejected"}, headers=seller_headers)
    assert request_adoption(client, buyer_headers, pet).status_code == 201


def test_business_users_cannot_request(client, seller, pet):
    _, headers = seller
    assert request_adoption(client, headers, pet).status_code == 403


def test_request_must_name_the_pets_seller(client, buyer, pet):
    user, headers = buyer
    res = client.post(
        f"{API}/adoption-requests",
        json={"petId": pet["id"], "sellerId": user["id"]},
        headers=headers,
    )
    assert res.status_code == 400
    assert res.json()["details"]["fields"] == ["sellerId"]


def test_request_for_unavailable_pet_is_a_conflict(client, buyer, seller, pet):
    _, seller_headers = seller
    _, buyer_headers = buyer
    client.put(f"{API}/pets/{pet['id']}", data={"status": "sold"}, headers=seller_headers)
    assert request_adoption(client, buyer_headers, pet).status_code == 409


def test_seller_and_user_listings(client, buyer, seller, other_buyer, pet, adoption_request):
    seller_user, seller_headers = seller
    _, buyer_headers = buyer
    _, other_headers = other_buyer

    res = client.get(f"{API}/adoption-requests", params={"sellerId": seller_user["id"]}, headers=seller_headers)
    assert res.status_code == 200
    [row] = res.json()
    assert row["id"] == adoption_request["id"]
    assert row["pet"]["name"] == pet["name"]
    assert row["user"]["name"] == "Ada Buyer"

    res = client.get(f"{API}/adoption-requests", params={"sellerId": seller_user["id"]}, headers=buyer_headers)
    assert res.status_code == 403

    mine = client.get(f"{API}/adoption-requests/user", headers=buyer_headers).json()
    assert [r["id"] for r in mine] == [adoption_request["id"]]
    assert mine[0]["seller"]["businessName"] == "Happy Tails Shelter"
    assert client.get(f"{API}/adoption-requests/user", headers=other_headers).json() == []


def test_only_seller_can_reject_and_only_rejection_is_allowed(client, buyer, seller, adoption_request):
    _, buyer_headers = buyer
    _, seller_headers = seller
    url = f"{API}/adoption-requests/{adoption_request['id']}"

    assert client.patch(url, json={"status": "rejected"}, headers=buyer_headers).status_code == 403
    assert client.patch(url, json={"status": "approved"}, headers=seller_headers).status_code == 400

    res = client.patch(url, json={"status": "rejected"}, headers=seller_headers)
    assert res.status_code == 200
    assert res.json()["status"] == "rejected"


def test_rejection_does_not_touch_pet(client, seller, pet, adoption_request):
    _, headers = seller
    client.patch(f"{API}/adoption-requests/{adoption_request['id']}", json={"status": "rejected"}, headers=headers)
    assert client.get(f"{API}/pets/{pet['id']}").json()["status"] == "available"


# -------------------------
# Negotiation chat
# -------------------------
def test_chat_binds_buyer_and_seller(client, buyer, seller, chat, adoption_request):
    buyer_user, _ = buyer
    seller_user, seller_headers = seller
    assert chat["adoptionRequest"] == adoption_request["id"]
    assert chat["buyer"]["id"] == buyer_user["id"]
    assert chat["seller"]["id"] == seller_user["id"]
    assert chat["buyerAccepted"] is False and chat["sellerAccepted"] is False
    assert chat["messages"] == []

    res = client.get(f"{API}/chat/adoption/{adoption_request['id']}", headers=seller_headers)
    assert res.status_code == 200
    assert res.json()["id"] == chat["id"]


def test_get_chat_before_creation_is_not_found(client, buyer, adoption_request):
    _, headers = buyer
    assert client.get(f"{API}/chat/adoption/{adoption_request['id']}", headers=headers).status_code == 404


def test_second_chat_for_request_is_a_conflict(client, seller, chat, adoption_request):
    _, headers = seller
    res = client.post(f"{API}/chat/adoption/{adoption_request['id']}", headers=headers)
    assert res.status_code == 409


def test_non_party_cannot_open_or_view_chat(client, other_buyer, adoption_request):
    _, headers = other_buyer
    assert client.post(f"{API}/chat/adoption/{adoption_request['id']}", headers=headers).status_code == 403
    assert client.get(f"{API}/chat/adoption/{adoption_request['id']}", headers=headers).status_code == 403


def test_chat_for_rejected_request_cannot_be_opened(client, buyer, seller, adoption_request):
    _, seller_headers = seller
    _, buyer_headers = buyer
    client.patch(f"{API}/adoption-requests/{adoption_request['id']}", json={"status": "rejected"}, headers=seller_headers)
    assert client.post(f"{API}/chat/adoption/{adoption_request['id']}", headers=buyer_headers).status_code == 409


def test_messages_keep_arrival_order_across_senders(client, buyer, seller, chat):
    buyer_user, buyer_headers = buyer
    seller_user, seller_headers = seller
    script = [
        (buyer_headers, buyer_user, "Hi, is Rex still available?"),
        (seller_headers, seller_user, "Yes he is"),
        (seller_headers, seller_user, "Would you like to visit?"),
        (buyer_headers, buyer_user, "Saturday works"),
        (seller_headers, seller_user, "See you then"),
    ]
    for headers, _, content in script:
        res = client.post(f"{API}/chat/{chat['id']}/messages", json={"content": content}, headers=headers)
        assert res.status_code == 200

    messages = res.json()["messages"]
    assert [m["content"] for m in messages] == [c for _, _, c in script]
    assert [m["sender"]["id"] for m in messages] == [u["id"] for _, u, _ in script]


def test_empty_message_is_rejected(client, buyer, chat):
    _, headers = buyer
    assert client.post(f"{API}/chat/{chat['id']}/messages", json={"content": " "}, headers=headers).status_code == 400


def test_non_party_cannot_message_or_accept(client, other_buyer, chat):
    _, headers = other_buyer
    res = client.post(f"{API}/chat/{chat['id']}/messages", json={"content": "hello"}, headers=headers)
    assert res.status_code == 403
    assert client.post(f"{API}/chat/{chat['id']}/accept", headers=headers).status_code == 403


def test_unknown_chat_is_not_found(client, buyer):
    _, headers = buyer
    res = client.post(f"{API}/chat/00000000-0000-0000-0000-000000000000/accept", headers=headers)
    assert res.status_code == 404


# -------------------------
# Dual acceptance
# -------------------------
@pytest.mark.parametrize("buyer_first", [True, False])
def test_dual_acceptance_approves_request_and_adopts_pet(client, buyer, seller, pet, chat, adoption_request, buyer_first):
    buyer_user, buyer_headers = buyer
    _, seller_headers = seller
    first, second = (buyer_headers, seller_headers) if buyer_first else (seller_headers, buyer_headers)

    res = client.post(f"{API}/chat/{chat['id']}/accept", headers=first)
    assert res.status_code == 200
    assert [res.json()["buyerAccepted"], res.json()["sellerAccepted"]].count(True) == 1
    assert client.get(f"{API}/pets/{pet['id']}").json()["status"] == "available"
    mine = client.get(f"{API}/adoption-requests/user", headers=buyer_headers).json()
    assert mine[0]["status"] == "pending"

    res = client.post(f"{API}/chat/{chat['id']}/accept", headers=second)
    assert res.status_code == 200
    assert res.json()["buyerAccepted"] is True and res.json()["sellerAccepted"] is True

    adopted = client.get(f"{API}/pets/{pet['id']}").json()
    assert adopted["status"] == "adopted"
    assert adopted["adopterId"] == buyer_user["id"]
    mine = client.get(f"{API}/adoption-requests/user", headers=buyer_headers).json()
    assert mine[0]["status"] == "approved"
    assert [p["id"] for p in client.get(f"{API}/pets/adopted", headers=buyer_headers).json()] == [pet["id"]]


def test_accepting_twice_is_a_no_op(client, buyer, seller, pet, chat):
    _, buyer_headers = buyer
    _, seller_headers = seller
    url = f"{API}/chat/{chat['id']}/accept"

    assert client.post(url, headers=buyer_headers).status_code == 200
    assert client.post(url, headers=buyer_headers).status_code == 200
    assert client.post(url, headers=seller_headers).json()["sellerAccepted"] is True

    before = client.get(f"{API}/pets/{pet['id']}").json()
    for headers in (buyer_headers, seller_headers, buyer_headers):
        res = client.post(url, headers=headers)
        assert res.status_code == 200
    after = client.get(f"{API}/pets/{pet['id']}").json()
    assert after == before
    assert after["status"] == "adopted"


def test_accept_on_rejected_request_is_a_conflict(client, buyer, seller, chat, adoption_request):
    _, buyer_headers = buyer
    _, seller_headers = seller
    client.patch(f"{API}/adoption-requests/{adoption_request['id']}", json={"status": "rejected"}, headers=seller_headers)

    res = client.post(f"{API}/chat/{chat['id']}/accept", headers=buyer_headers)
    assert res.status_code == 409


def test_seller_cannot_reject_after_approval(client, buyer, seller, chat, adoption_request):
    _, buyer_headers = buyer
    _, seller_headers = seller
    client.post(f"{API}/chat/{chat['id']}/accept", headers=buyer_headers)
    client.post(f"{API}/chat/{chat['id']}/accept", headers=seller_headers)

    res = client.patch(
        f"{API}/adoption-requests/{adoption_request['id']}", json={"status": "rejected"}, headers=seller_headers
    )
    assert res.status_code == 409


def test_second_negotiation_cannot_adopt_an_adopted_pet(client, buyer, other_buyer, seller, pet, chat):
    buyer_user, buyer_headers = buyer
    _, other_headers = other_buyer
    _, seller_headers = seller

    rival = request_adoption(client, other_headers, pet).json()
    rival_chat = client.post(f"{API}/chat/adoption/{rival['id']}", headers=other_headers).json()

    client.post(f"{API}/chat/{chat['id']}/accept", headers=buyer_headers)
    client.post(f"{API}/chat/{chat['id']}/accept", headers=seller_headers)

    client.post(f"{API}/chat/{rival_chat['id']}/accept", headers=other_headers)
    res = client.post(f"{API}/chat/{rival_chat['id']}/accept", headers=seller_headers)
    assert res.status_code == 409

    pet_now = client.get(f"{API}/pets/{pet['id']}").json()
    assert pet_now["adopterId"] == buyer_user["id"]
    rival_now = client.get(f"{API}/adoption-requests/user", headers=other_headers).json()[0]
    assert rival_now["status"] == "pending"
    # The failed commit is rolled back as a unit, seller flag included.
    rival_chat_now = client.get(f"{API}/chat/adoption/{rival['id']}", headers=other_headers).json()
    assert rival_chat_now["sellerAccepted"] is False


def test_new_requests_refused_once_pet_is_adopted(client, buyer, seller, pet, chat):
    _, buyer_headers = buyer
    _, seller_headers = seller
    client.post(f"{API}/chat/{chat['id']}/accept", headers=buyer_headers)
    client.post(f"{API}/chat/{chat['id']}/accept", headers=seller_headers)

    _, late_headers = register(client, regular_payload(email="late@example.com"))
    assert request_adoption(client, late_headers, pet).status_code == 409


def test_pet_with_a_negotiation_cannot_be_deleted(client, buyer, seller, pet, chat, adoption_request):
    _, buyer_headers = buyer
    _, seller_headers = seller
    client.post(f"{API}/chat/{chat['id']}/accept", headers=buyer_headers)
    client.post(f"{API}/chat/{chat['id']}/accept", headers=seller_headers)

    assert client.delete(f"{API}/pets/{pet['id']}", headers=seller_headers).status_code == 409
    mine = client.get(f"{API}/adoption-requests/user", headers=buyer_headers).json()
    assert [r["status"] for r in mine] == ["approved"]
    assert client.get(f"{API}/chat/adoption/{adoption_request['id']}", headers=buyer_headers).status_code == 200


def test_pet_with_a_pending_request_cannot_be_deleted(client, seller, pet, adoption_request):
    _, seller_headers = seller
    assert client.delete(f"{API}/pets/{pet['id']}", headers=seller_headers).status_code == 409
    assert client.get(f"{API}/pets/{pet['id']}").status_code == 200


def test_pet_with_only_rejected_requests_can_be_deleted(client, buyer, seller, pet, adoption_request):
    _, buyer_headers = buyer
    _, seller_headers = seller
    client.patch(f"{API}/adoption-requests/{adoption_request['id']}", json={"status": "rejected"}, headers=seller_headers)

    assert client.delete(f"{API}/pets/{pet['id']}", headers=seller_headers).status_code == 200
    assert client.get(f"{API}/pets/{pet['id']}").status_code == 404


def test_requests_for_other_pets_are_independent(client, buyer, seller, pet):
    _, buyer_headers = buyer
    _, seller_headers = seller
    other = create_pet(client, seller_headers, name="Bella", gender="female")
    assert request_adoption(client, buyer_headers, pet).status_code == 201
    assert request_adoption(client, buyer_headers, other).status_code == 201


# -------------------------
# Interleaved writers
# -------------------------
def _accept_after_concurrent_change(monkeypatch, chat, seller, new_status):
    """Seller accepts while another writer moves the request after the chat lock."""
    real_get_request = adoption._get_request

    def get_request_then_interleave(db, request_id):
        req = real_get_request(db, request_id)
        db.execute(
            update(AdoptionRequest)
            .where(AdoptionRequest.request_id == request_id)
            .values(status=new_status)
            .execution_options(synchronize_session=False)
        )
        return req

    monkeypatch.setattr(adoption, "_get_request", get_request_then_interleave)
    seller_user, _ = seller
    session = TestingSessionLocal()
    try:
        return adoption.accept_terms(
            session,
            Identity(uuid.UUID(seller_user["id"]), "business"),
            uuid.UUID(chat["id"]),
        )
    finally:
        session.close()


def _reload(model, key):
    session = TestingSessionLocal()
    try:
        return session.get(model, uuid.UUID(key))
    finally:
        session.close()


def test_concurrent_approval_is_not_applied_twice(monkeypatch, client, buyer, seller, pet, chat, adoption_request):
    _, buyer_headers = buyer
    client.post(f"{API}/chat/{chat['id']}/accept", headers=buyer_headers)

    result = _accept_after_concurrent_change(monkeypatch, chat, seller, "approved")
    assert result.seller_accepted is True

    assert _reload(AdoptionRequest, adoption_request["id"]).status == "approved"
    # The winning writer owns the pet transition; this path leaves the pet alone.
    assert _reload(Pet, pet["id"]).status == "available"


def test_concurrent_rejection_rolls_back_the_acceptance(monkeypatch, client, buyer, seller, pet, chat, adoption_request):
    _, buyer_headers = buyer
    client.post(f"{API}/chat/{chat['id']}/accept", headers=buyer_headers)

    with pytest.raises(ConflictError):
        _accept_after_concurrent_change(monkeypatch, chat, seller, "rejected")

    stored = _reload(Chat, chat["id"])
    assert stored.buyer_accepted is True
    assert stored.seller_accepted is False
    assert _reload(Pet, pet["id"]).status == "available"
