import pytest

from papeleria.hashing import check_password_hash, hash_password


@pytest.fixture(scope="module")
def hashed():
    return hash_password("password")


def test_matching_password_checks(hashed):
    assert check_password_hash("password", hashed) is True


def test_wrong_password_fails(hashed):
    assert check_password_hash("secret", hashed) is False


def test_hash_uses_cost_14(hashed):
    assert hashed.startswith("$2")
    assert hashed.split("$")[2] == "14"


def test_hashes_are_salted(hashed):
    assert hash_password("password") != hashed


def test_malformed_hash_never_matches():
    assert check_password_hash("password", "not-a-hash") is False


def test_overlong_password_is_refused():
    with pytest.raises(ValueError):
        hash_password("x" * 73)