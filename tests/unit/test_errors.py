"""Error taxonomy tests."""

import pytest

from petnet.errors import (
    Conflict,
    DuplicateAction,
    Forbidden,
    InvalidInput,
    NotEligible,
    NotFound,
    PetnetError,
    Unauthenticated,
)


@pytest.mark.parametrize(
    ("error_cls", "kind", "status"),
    [
        (Unauthenticated, "unauthenticated", 401),
        (Forbidden, "forbidden", 403),
        (NotFound, "not_found", 404),
        (InvalidInput, "invalid_input", 400),
        (NotEligible, "not_eligible", 422),
        (DuplicateAction, "duplicate_action", 409),
        (Conflict, "conflict", 409),
    ],
)
def test_kind_and_status(error_cls, kind, status):
    err = error_cls()
    assert isinstance(err, PetnetError)
    assert err.kind == kind
    assert err.status_code == status
    assert err.message


def test_custom_message():
    err = NotFound("Pet not found")
    assert err.message == "Pet not found"
    assert str(err) == "Pet not found"


def test_default_message():
    assert Unauthenticated().message == "Unauthorized"
