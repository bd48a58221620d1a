"""
Unit Tests for Operations and Payload Helpers.

Covers:
- ApiOperation / UiOperation name resolution and aliases.
- UnknownFunctionalityError messages.
- merge_payload, parse_payload, as_mapping, extract_id.
"""

from __future__ import annotations

import pytest

from parabank_qa.executors.operations import (
    ApiOperation,
    UiOperation,
    UnknownFunctionalityError,
    normalize_name,
)
from parabank_qa.executors.payloads import (
    DEFAULT_PROFILE,
    as_mapping,
    extract_id,
    merge_payload,
    parse_payload,
)


# ---------------------------------------------------------------------------
# Operation Parsing
# ---------------------------------------------------------------------------


class TestOperationParsing:
    """Tests for case- and separator-insensitive parsing."""

    @pytest.mark.parametrize("name", ["transfer-funds", "TRANSFER_FUNDS", "Transfer Funds", "transferfunds"])
    def test_api_separator_insensitive(self, name):
        assert ApiOperation.parse(name) == ApiOperation.TRANSFER_FUNDS

    @pytest.mark.parametrize(
        "alias, expected",
        [
            ("signup", ApiOperation.CREATE_CUSTOMER),
            ("register", ApiOperation.CREATE_CUSTOMER),
            ("fund_transfer", ApiOperation.TRANSFER_FUNDS),
            ("balance_inquiry", ApiOperation.GET_ACCOUNT_DETAILS),
            ("validateApi", ApiOperation.VALIDATE),
        ],
    )
    def test_api_aliases(self, alias, expected):
        assert ApiOperation.parse(alias) == expected

    def test_ui_aliases(self):
        assert UiOperation.parse("billpay") == UiOperation.PAY_BILLS
        assert UiOperation.parse("register_account") == UiOperation.REGISTER

    def test_api_set_size(self):
        assert len(ApiOperation) == 13
        assert len(UiOperation) == 10

    def test_unknown_api_name(self):
        with pytest.raises(UnknownFunctionalityError) as exc_info:
            ApiOperation.parse("launch-rocket")
        assert str(exc_info.value) == "Unknown API functionality: launch-rocket"

    def test_unknown_ui_name(self):
        with pytest.raises(UnknownFunctionalityError, match="Unknown UI functionality: fly"):
            UiOperation.parse("fly")

    def test_empty_name_rejected(self):
        with pytest.raises(UnknownFunctionalityError):
            ApiOperation.parse("   ")

    def test_requires_session(self):
        assert not UiOperation.LOGIN.requires_session
        assert not UiOperation.REGISTER.requires_session
        assert UiOperation.LOGOUT.requires_session
        assert UiOperation.ACCOUNT_OVERVIEW.requires_session

    def test_normalize_name(self):
        assert normalize_name(" Get-Account_Details ") == "getaccountdetails"


# ---------------------------------------------------------------------------
# Payload Helpers
# ---------------------------------------------------------------------------


class TestMergePayload:
    """Tests for merge_payload()."""

    def test_overrides_win(self):
        merged = merge_payload({"a": 1, "b": 2}, {"b": 3})
        assert merged == {"a": 1, "b": 3}

    def test_none_overrides_ignored(self):
        assert merge_payload({"a": 1}, {"a": None}) == {"a": 1}

    def test_defaults_untouched(self):
        merge_payload(DEFAULT_PROFILE, {"firstName": "Ada"})
        assert DEFAULT_PROFILE["firstName"] == "John"

    def test_no_overrides(self):
        assert merge_payload({"a": 1}, None) == {"a": 1}


class TestPayloadParsing:
    """Tests for parse_payload() and as_mapping()."""

    def test_json_string_decoded(self):
        assert parse_payload('{"username": "john"}') == {"username": "john"}

    def test_invalid_json_kept_raw(self):
        assert parse_payload("not json") == "not json"

    def test_blank_string_is_none(self):
        assert parse_payload("  ") is None

    def test_as_mapping_non_mapping(self):
        assert as_mapping(42) == {}
        assert as_mapping(None) == {}


class TestExtractId:
    """Tests for extract_id()."""

    def test_int(self):
        assert extract_id(12212) == 12212

    def test_numeric_string(self):
        assert extract_id(" 77 ") == 77

    def test_preferred_keys(self):
        assert extract_id({"customerId": "5", "accountId": 9}) == 5

    def test_any_key_containing_id(self):
        assert extract_id({"payeeId": 31}) == 31

    def test_json_mapping(self):
        assert extract_id('{"accountId": 13344}') == 13344

    def test_missing_id(self):
        with pytest.raises(ValueError, match="No ID field"):
            extract_id({"name": "x"})

    def test_unparsable_string(self):
        with pytest.raises(ValueError, match="Cannot parse string"):
            extract_id("abc")

    def test_none(self):
        with pytest.raises(ValueError):
            extract_id(None)
