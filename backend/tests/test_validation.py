import uuid
from datetime import timedelta

import pytest

from app.core import security
from app.core.errors import ValidationError
from app.services import validation


def test_password_hash_round_trip():
    stored = security.hash_password("secret123")
    assert stored.startswith("pbkdf2_sha256$390000$")
    assert security.verify_password("secret123", stored)
    assert not security.verify_password("secret124", stored)
    assert not security.verify_password("secret123", "secret123")
    assert not security.verify_password("secret123", "pbkdf2_sha256$x$zz$zz")


def test_tokens_are_typed():
    user_id = uuid.uuid4()
    access = security.create_access_token(user_id, "regular")
    claims = security.decode_token(access, security.ACCESS_TOKEN)
    assert claims["sub"] == str(user_id)
    assert claims["role"] == "regular"
    with pytest.raises(security.TokenInvalid):
        security.decode_token(access, security.REFRESH_TOKEN)


def test_expired_and_tampered_tokens():
    user_id = uuid.uuid4()
    expired = security.create_token(user_id, "regular", security.ACCESS_TOKEN, timedelta(seconds=-5))
    with pytest.raises(security.TokenExpired):
        security.decode_token(expired, security.ACCESS_TOKEN)

    token = security.create_access_token(user_id, "regular")
    with pytest.raises(security.TokenInvalid):
        security.decode_token(token[:-2] + ("aa" if not token.endswith("aa") else "bb"), security.ACCESS_TOKEN)
    with pytest.raises(security.TokenInvalid):
        security.decode_token("not-a-token", security.ACCESS_TOKEN)


@pytest.mark.parametrize(
    "current,requested,ok",
    [
        ("available", "available", True),
        ("available", "sold", True),
        ("available", "adopted", False),
        ("available", "pending", False),
        ("sold", "available", False),
        ("adopted", "sold", False),
    ],
)
def test_seller_status_changes(current, requested, ok):
    if ok:
        validation.validate_seller_status_change(current, requested)
    else:
        with pytest.raises(ValidationError):
            validation.validate_seller_status_change(current, requested)


def test_request_status_can_only_be_rejected():
    validation.validate_request_status_change("rejected")
    for value in ("approved", "pending", None):
        with pytest.raises(ValidationError):
            validation.validate_request_status_change(value)


def test_registration_checks_fields_for_role():
    with pytest.raises(ValidationError) as exc:
        validation.validate_registration(
            {"email": "a@b.co", "password": "secret123", "phoneNumber": "1", "userType": "business"}
        )
    assert exc.value.details["fields"] == ["businessName", "businessType", "address"]

    with pytest.raises(ValidationError) as exc:
        validation.validate_registration(
            {"email": "a@b.co", "password": "123", "phoneNumber": "1", "userType": "regular"}
        )
    assert exc.value.details["fields"] == ["password"]


def test_partial_pet_fields_only_check_present_keys():
    assert validation.validate_pet_fields({"price": "12.50"}, partial=True) == {"price": 12.5}
    assert validation.validate_pet_fields({"gender": "Female"}, partial=True) == {"gender": "female"}
    with pytest.raises(ValidationError):
        validation.validate_pet_fields({"name": " "}, partial=True)
