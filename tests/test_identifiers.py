"""
Tests for Apprien IAP id helpers.

Includes Hypothesis property tests for the variant id format.
"""

from unittest.mock import patch

import pytest
from hypothesis import given
from hypothesis import strategies as st

from apprien.services.identifiers import (
    VARIANT_SEPARATOR,
    decorate_iap_id,
    get_apprien_identifier,
    get_base_iap_id,
    get_device_unique_identifier,
)

# ============================================================================
# Hypothesis Strategies
# ============================================================================

# Base ids as games use them; they cannot contain the variant separator
base_iap_ids = st.text(
    alphabet=st.sampled_from("abcdefghijklmnopqrstuvwxyz0123456789._-"),
    min_size=1,
    max_size=60,
).filter(lambda x: VARIANT_SEPARATOR not in x)

prices = st.integers(min_value=0, max_value=1_000_000)

hashes = st.text(
    alphabet=st.sampled_from("abcdefghijklmnopqrstuvwxyz0123456789"),
    min_size=4,
    max_size=4,
)


class TestGetBaseIapId:
    """Tests for get_base_iap_id."""

    @pytest.mark.parametrize(
        "variant,expected",
        [
            ("z_base_iap_id.apprien_500_dfa3", "base_iap_id"),
            ("z_loadout_bordkanone_37.apprien_1099_2wkh", "loadout_bordkanone_37"),
            ("z_pack2_gold.apprien_399_abcd", "pack2_gold"),
        ],
    )
    def test_parses_variant(self, variant: str, expected: str):
        """Variant ids are reduced to their base id."""
        assert get_base_iap_id(variant) == expected

    def test_plain_id_passthrough(self):
        """Ids without the separator are returned unchanged."""
        assert get_base_iap_id("plain_sku") == "plain_sku"

    def test_empty_string(self):
        """Empty input stays empty."""
        assert get_base_iap_id("") == ""

    def test_separator_at_start_is_not_a_variant(self):
        """A separator at position 0 leaves the id unchanged."""
        assert get_base_iap_id(".apprien_500_dfa3") == ".apprien_500_dfa3"

    def test_only_literal_separator_is_recognized(self):
        """Similar looking separators are not parsed."""
        assert get_base_iap_id("z_gold.Apprien_500_dfa3") == "z_gold.Apprien_500_dfa3"
        assert get_base_iap_id("z_gold_apprien_500_dfa3") == "z_gold_apprien_500_dfa3"

    @given(base_iap_ids)
    def test_base_ids_are_fixed_points(self, base_iap_id: str):
        """Parsing a base id returns it unchanged."""
        assert get_base_iap_id(base_iap_id) == base_iap_id

    @given(base_iap_ids, prices, hashes)
    def test_decorate_round_trip(self, base_iap_id: str, price_cents: int, price_hash: str):
        """Parsing a decorated id returns the original base id."""
        variant = decorate_iap_id(base_iap_id, price_cents, price_hash)
        assert get_base_iap_id(variant) == base_iap_id


class TestDecorateIapId:
    """Tests for decorate_iap_id."""

    def test_format(self):
        """Variant ids follow the z_<base>.apprien_<price>_<hash> format."""
        assert decorate_iap_id("base_iap_id", 500, "dfa3") == "z_base_iap_id.apprien_500_dfa3"

    def test_hash_length_validated(self):
        """Hashes must be exactly 4 characters."""
        with pytest.raises(ValueError, match="Hash must be 4 characters"):
            decorate_iap_id("gold", 500, "abc")

    def test_negative_price_rejected(self):
        """Prices cannot be negative."""
        with pytest.raises(ValueError, match="Price cannot be negative"):
            decorate_iap_id("gold", -1, "abcd")

    def test_empty_base_rejected(self):
        """Base id is required."""
        with pytest.raises(ValueError, match="Base IAP id required"):
            decorate_iap_id("", 500, "abcd")


class TestGetApprienIdentifier:
    """Tests for the session identifier."""

    def test_first_md5_byte_as_hex(self):
        """The identifier is the first MD5 byte in hex."""
        # md5("abc") = 900150983cd24fb0...
        assert get_apprien_identifier("abc") == "90"

    def test_no_zero_padding(self):
        """Bytes below 0x10 render as one character."""
        # md5("a") = 0cc175b9c0f1b6a8...
        assert get_apprien_identifier("a") == "c"

    def test_default_is_stable(self):
        """The device identifier does not change within a process."""
        first = get_apprien_identifier()
        assert first == get_apprien_identifier()
        assert 1 <= len(first) <= 2
        int(first, 16)

    @given(st.text(alphabet=st.characters(max_codepoint=127), max_size=64))
    def test_always_short_hex(self, device_id: str):
        """Any ASCII device id maps to one or two hex characters."""
        identifier = get_apprien_identifier(device_id)
        assert 1 <= len(identifier) <= 2
        assert int(identifier, 16) < 256


class TestGetDeviceUniqueIdentifier:
    """Tests for the device fingerprint."""

    def test_format(self):
        """MAC address as 12 hex digits, then the host name."""
        with (
            patch("apprien.services.identifiers.uuid.getnode", return_value=0x1A2B3C),
            patch("apprien.services.identifiers.platform.node", return_value="build-host"),
        ):
            assert get_device_unique_identifier() == "0000001a2b3c-build-host"

    def test_stable(self):
        assert get_device_unique_identifier() == get_device_unique_identifier()
