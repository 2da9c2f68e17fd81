import pytest
from eth_utils import to_checksum_address

from lendrelay.utils.errors import InvalidAddress, ValidationError
from lendrelay.utils.units import (
    UINT256_MAX,
    format_units,
    normalize_address,
    parse_bytes32,
    parse_uint,
    parse_units,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("1", 10**18),
        ("1.5", 15 * 10**17),
        ("0.000000000000000001", 1),
        (" 42 ", 42 * 10**18),
        ("123456789012345678901234567890.5", 1234567890123456789012345678905 * 10**17),
    ],
)
def test_parse_units(text, expected):
    assert parse_units(text) == expected


@pytest.mark.parametrize(
    "text",
    ["", "abc", "1e", "NaN", "Infinity", "0.0000000000000000001", "1" * 80, "1e999999", "-1e999999", "1e-999999"],
)
def test_parse_units_rejects(text):
    with pytest.raises(ValidationError):
        parse_units(text)


def test_format_units():
    assert format_units(15 * 10**17) == "1.5"
    assert format_units(10**18) == "1"
    assert format_units(1) == "0.000000000000000001"


def test_parse_uint():
    assert parse_uint("17", "nonce") == 17
    assert parse_uint(str(UINT256_MAX), "nonce") == UINT256_MAX
    assert parse_uint("007", "nonce") == 7
    for bad in ("-1", "1.5", "0x10", str(UINT256_MAX + 1), True, "1_000", "+5", " 7", "7\n", "", "9" * 5000):
        with pytest.raises(ValidationError):
            parse_uint(bad, "nonce")


def test_normalize_address():
    address = "0x" + "ab" * 20
    assert normalize_address(address) == to_checksum_address(address)
    with pytest.raises(InvalidAddress) as exc:
        normalize_address("0x12", "to")
    assert exc.value.code == "INVALID_ADDRESS"
    with pytest.raises(InvalidAddress):
        normalize_address(None, "to")


def test_parse_bytes32():
    assert parse_bytes32("0x" + "00" * 32, "merkleRoot") == bytes(32)
    with pytest.raises(ValidationError):
        parse_bytes32("0x" + "00" * 31, "merkleRoot")
    with pytest.raises(ValidationError):
        parse_bytes32("0xzz", "merkleRoot")
