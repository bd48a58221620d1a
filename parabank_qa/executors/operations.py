"""
Supported Operations.

Closed enumerations of the functionalities each executor kind understands.
Functionality names coming from test cases are resolved here, before any
dispatch happens; anything outside the enumerated set is rejected with
UnknownFunctionalityError.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Dict, Type, TypeVar

_OperationT = TypeVar("_OperationT", bound="OperationEnum")


class UnknownFunctionalityError(ValueError):
    """Raised when a functionality name is not one of the supported operations."""

    def __init__(self, functionality: str, kind: str) -> None:
        super().__init__(f"Unknown {kind} functionality: {functionality}")
        self.functionality = functionality
        self.kind = kind


def normalize_name(name: str) -> str:
    """Lower-case a functionality name and drop separators ("Transfer-Funds" -> "transferfunds")."""
    return re.sub(r"[\s_\-]+", "", name.strip().lower())


class OperationEnum(Enum):
    """Base for operation enums with alias-aware parsing."""

    @classmethod
    def _aliases(cls) -> Dict[str, str]:
        return {}

    @classmethod
    def kind_label(cls) -> str:
        return "operation"

    @classmethod
    def parse(cls: Type[_OperationT], functionality: str) -> _OperationT:
        """
        Resolve a functionality name to an operation.

        Args:
            functionality: Name as written in the test case (any case).

        Returns:
            The matching enum member.

        Raises:
            UnknownFunctionalityError: If the name is empty or not supported.
        """
        if not isinstance(functionality, str) or not functionality.strip():
            raise UnknownFunctionalityError(str(functionality), cls.kind_label())

        key = normalize_name(functionality)
        for member in cls:
            if normalize_name(member.value) == key:
                return member

        alias = cls._aliases().get(key)
        if alias is not None:
            return cls(alias)

        raise UnknownFunctionalityError(functionality, cls.kind_label())


class ApiOperation(OperationEnum):
    """Operations supported by the API executor."""

    LOGIN = "login"
    CREATE_CUSTOMER = "create-customer"
    UPDATE_CUSTOMER = "update-customer"
    DELETE_CUSTOMER = "delete-customer"
    GET_CUSTOMER_DETAILS = "get-customer-details"
    GET_ACCOUNTS = "get-accounts"
    GET_TRANSACTION_HISTORY = "get-transaction-history"
    TRANSFER_FUNDS = "transfer-funds"
    PAY_BILLS = "pay-bills"
    REQUEST_LOAN = "request-loan"
    GET_ACCOUNT_DETAILS = "get-account-details"
    VALIDATE = "validate"
    HEALTH_CHECK = "health-check"

    @classmethod
    def kind_label(cls) -> str:
        return "API"

    @classmethod
    def _aliases(cls) -> Dict[str, str]:
        return {
            "signup": "create-customer",
            "register": "create-customer",
            "fundtransfer": "transfer-funds",
            "balanceinquiry": "get-account-details",
            "validateapi": "validate",
            "validation": "validate",
        }


class UiOperation(OperationEnum):
    """Operations supported by the UI executor."""

    REGISTER = "register"
    LOGIN = "login"
    OPEN_ACCOUNT = "open-account"
    ACCOUNT_OVERVIEW = "account-overview"
    TRANSFER_FUNDS = "transfer-funds"
    PAY_BILLS = "pay-bills"
    FIND_TRANSACTIONS = "find-transactions"
    UPDATE_PROFILE = "update-profile"
    REQUEST_LOAN = "request-loan"
    LOGOUT = "logout"

    @classmethod
    def kind_label(cls) -> str:
        return "UI"

    @classmethod
    def _aliases(cls) -> Dict[str, str]:
        return {
            "signup": "register",
            "registeraccount": "register",
            "fundtransfer": "transfer-funds",
            "billpay": "pay-bills",
            "balanceinquiry": "account-overview",
        }

    @property
    def requires_session(self) -> bool:
        """Whether the operation must run inside an authenticated session."""
        return self not in (UiOperation.REGISTER, UiOperation.LOGIN)
