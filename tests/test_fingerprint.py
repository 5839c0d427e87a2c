"""
Unit tests for session fingerprinting.
"""

import hashlib

import pytest

from websession.modules.session import SessionInitError, session_name, session_store_id

IP = "198.51.100.20"
UA = "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_5) Safari/605.1.15"


def test_session_name_is_deterministic():
    """Test that the same inputs always produce the same name."""
    assert session_name(IP, UA, "cart") == session_name(IP, UA, "cart")


def test_session_name_matches_documented_layout():
    """Test the exact composition of the hashed fingerprint."""
    expected = hashlib.md5(f"L0j45/{IP}/TMWxD/{UA}/cart".encode()).hexdigest()

    assert session_name(IP, UA, "cart") == expected


def test_session_name_without_id():
    expected = hashlib.md5(f"L0j45/{IP}/TMWxD/{UA}/".encode()).hexdigest()

    assert session_name(IP, UA) == expected
    assert session_name(IP, UA, None) == session_name(IP, UA, "")


@pytest.mark.parametrize(
    "changed",
    [
        ("198.51.100.21", UA, "cart"),
        (IP, "curl/8.5.0", "cart"),
        (IP, UA, "checkout"),
    ],
)
def test_any_input_change_changes_name(changed):
    """Test that IP, user agent and id each affect the name."""
    assert session_name(*changed) != session_name(IP, UA, "cart")


def test_prefix_and_salt_affect_name():
    base = session_name(IP, UA)

    assert session_name(IP, UA, prefix="shop") != base
    assert session_name(IP, UA, salt="pepper") != base


@pytest.mark.parametrize("ip, ua", [(None, UA), ("", UA), (IP, None), (IP, "")])
def test_missing_inputs_raise(ip, ua):
    """Test that fingerprinting fails outside an HTTP request context."""
    with pytest.raises(SessionInitError):
        session_name(ip, ua)


def test_store_id_is_hash_of_name():
    name = session_name(IP, UA)

    assert session_store_id(name) == hashlib.md5(name.encode()).hexdigest()
    assert session_store_id(name) != name
