"""
Payload helpers shared by the executors.

Default form values and request payloads are never mutated in place:
`merge_payload` builds the effective payload once per execution from the
defaults and the caller-supplied overrides.
"""

from __future__ import annotations

import json
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional

from parabank_qa.executors.operations import ApiOperation


DEFAULT_CREDENTIALS: Mapping[str, str] = MappingProxyType({
    "username": "testuser",
    "password": "testpass",
})

# Registration form defaults (keys are the logical field names).
DEFAULT_PROFILE: Mapping[str, str] = MappingProxyType({
    "firstName": "John",
    "lastName": "Doe",
    "address": "123 Main St",
    "city": "New York",
    "state": "NY",
    "zipCode": "10001",
    "phone": "1234567890",
    "ssn": "123456789",
    "password": "testpass",
})

# Default request data used when an API test case carries no input payload.
DEFAULT_API_PAYLOADS: Mapping[ApiOperation, Any] = MappingProxyType({
    ApiOperation.LOGIN: {"username": "testuser", "password": "testpass"},
    ApiOperation.CREATE_CUSTOMER: {
        "firstName": "John",
        "lastName": "Doe",
        "address": "123 Main St",
        "city": "NY",
        "state": "NY",
        "zipCode": "10001",
        "phone": "1234567890",
        "ssn": "123-45-6789",
    },
    ApiOperation.UPDATE_CUSTOMER: {"id": "1", "address": "456 Elm St"},
    ApiOperation.DELETE_CUSTOMER: 1,
    ApiOperation.GET_CUSTOMER_DETAILS: 1,
    ApiOperation.GET_ACCOUNTS: 1,
    ApiOperation.GET_TRANSACTION_HISTORY: 1,
    ApiOperation.TRANSFER_FUNDS: {"fromAccountId": 123, "toAccountId": 456, "amount": 100.0},
    ApiOperation.PAY_BILLS: {"accountId": 123, "payeeName": "Electric Company", "amount": 50.0},
    ApiOperation.REQUEST_LOAN: {"customerId": 1, "amount": 5000.0, "term": 12},
    ApiOperation.GET_ACCOUNT_DETAILS: 12345,
})

ID_KEYS = ("customerId", "id", "accountId")


def merge_payload(
    defaults: Mapping[str, Any], overrides: Optional[Mapping[str, Any]]
) -> Dict[str, Any]:
    """
    Merge caller overrides on top of defaults into a new dictionary.

    Override values of None are ignored so a partial payload never blanks
    out a default.

    Args:
        defaults: Default key/value pairs (left untouched).
        overrides: Caller-supplied values, or None.

    Returns:
        The effective payload.
    """
    effective = dict(defaults)
    if overrides:
        effective.update({k: v for k, v in overrides.items() if v is not None})
    return effective


def parse_payload(data: Any) -> Any:
    """Decode a JSON-string payload; other values are returned unchanged."""
    if isinstance(data, str):
        text = data.strip()
        if not text:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return data
    return data


def as_mapping(data: Any) -> Dict[str, Any]:
    """Return the payload as a dictionary (non-mapping payloads become empty)."""
    data = parse_payload(data)
    if isinstance(data, Mapping):
        return dict(data)
    return {}


def extract_id(data: Any, keys: Iterable[str] = ID_KEYS) -> int:
    """
    Extract a numeric identifier from a payload.

    Accepts an int, a numeric string, or a mapping holding one of the
    preferred keys (then any key whose name contains "id").

    Raises:
        ValueError: If no identifier can be found or parsed.
    """
    data = parse_payload(data)
    if isinstance(data, bool):
        raise ValueError(f"Cannot convert boolean to an identifier: {data}")
    if isinstance(data, int):
        return data
    if isinstance(data, float) and data.is_integer():
        return int(data)
    if isinstance(data, str):
        try:
            return int(data.strip())
        except ValueError as e:
            raise ValueError(f"Cannot parse string to integer: {data}") from e
    if isinstance(data, Mapping):
        value = next((data[k] for k in keys if data.get(k) is not None), None)
        if value is None:
            value = next(
                (v for k, v in data.items() if "id" in str(k).lower() and v is not None),
                None,
            )
        if value is None:
            raise ValueError(f"No ID field found in data. Available keys: {sorted(data)}")
        return extract_id(value if isinstance(value, (int, float)) else str(value))
    if data is None:
        raise ValueError("No input data supplied; an identifier is required")
    raise ValueError(f"Cannot convert {type(data).__name__} to integer: {data}")
