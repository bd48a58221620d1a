"""
API Executor.

Executes Parabank REST functionalities through the HTTP client:
- Mock mode (default): operations that need an authenticated Parabank
  session return deterministic synthetic responses, flagged in their details.
- Live mode: the same operations call the Parabank REST services.
- request-loan, health-check and validate always go over the network.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from loguru import logger

from parabank_qa.drivers.http_client import HttpClient, HttpClientError, HttpResponse
from parabank_qa.executors.base import ExecutorBase
from parabank_qa.executors.operations import ApiOperation
from parabank_qa.executors.payloads import (
    DEFAULT_API_PAYLOADS,
    DEFAULT_CREDENTIALS,
    DEFAULT_PROFILE,
    ID_KEYS,
    as_mapping,
    extract_id,
    merge_payload,
    parse_payload,
)
from parabank_qa.executors.result import ExecutionResult, ResultKind

XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>\n'
MOCK_LOGIN_USERS = ("john", "jane")
SYNTHETIC_SUFFIX = "(synthetic response)"

# Query parameters of POST /requestLoan and their defaults.
LOAN_DEFAULTS: Mapping[str, Any] = {
    "customerId": 12345,
    "amount": 5000,
    "downPayment": 1000,
    "fromAccountId": 12345,
}


@dataclass
class ApiExecutorConfig:
    """Configuration for the API executor."""

    base_url: str = "https://parabank.parasoft.com/parabank/services/bank"
    site_url: str = "https://parabank.parasoft.com/parabank"
    validation_url: str = "https://jsonplaceholder.typicode.com"
    timeout_sec: float = 30.0
    mock_mode: bool = True
    health_check_paths: Tuple[str, ...] = (
        "/services/bank/customers",
        "/index.htm",
        "/services/ParaBank",
    )


Handler = Callable[[Any, Optional[float]], ExecutionResult]


class ApiExecutor(ExecutorBase):
    """
    Executor for API test cases.

    Usage::

        executor = ApiExecutor(ApiExecutorConfig(mock_mode=True))
        result = executor.execute("login", {"username": "testuser", "password": "x"})
        print(result.status_code)  # 200
    """

    operations = ApiOperation
    kind = ResultKind.API

    def __init__(
        self,
        config: Optional[ApiExecutorConfig] = None,
        http_client: Optional[HttpClient] = None,
    ) -> None:
        """
        Initialize the executor.

        Args:
            config: Executor configuration (defaults when None).
            http_client: Pre-built client (one is created from the config if None).
        """
        super().__init__("api")
        self.config = config or ApiExecutorConfig()
        self.client = http_client or HttpClient(
            base_url=self.config.base_url, timeout_sec=self.config.timeout_sec
        )
        self._handlers: Dict[ApiOperation, Handler] = {
            ApiOperation.LOGIN: self._login,
            ApiOperation.CREATE_CUSTOMER: self._create_customer,
            ApiOperation.UPDATE_CUSTOMER: self._update_customer,
            ApiOperation.DELETE_CUSTOMER: self._delete_customer,
            ApiOperation.GET_CUSTOMER_DETAILS: self._get_customer_details,
            ApiOperation.GET_ACCOUNTS: self._get_accounts,
            ApiOperation.GET_TRANSACTION_HISTORY: self._get_transaction_history,
            ApiOperation.TRANSFER_FUNDS: self._transfer_funds,
            ApiOperation.PAY_BILLS: self._pay_bills,
            ApiOperation.REQUEST_LOAN: self._request_loan,
            ApiOperation.GET_ACCOUNT_DETAILS: self._get_account_details,
            ApiOperation.VALIDATE: self._validate,
            ApiOperation.HEALTH_CHECK: self._health_check,
        }
        mode = "mock" if self.config.mock_mode else "live"
        logger.info(f"[API] Executor initialized — base_url={self.config.base_url}, mode={mode}")
        if self.config.mock_mode:
            logger.warning("[API] Mock mode: authenticated operations return synthetic responses")

    def _execute(
        self, operation: ApiOperation, data: Any, timeout_sec: Optional[float]
    ) -> ExecutionResult:
        payload = self._effective_payload(operation, data)
        logger.debug(f"[API] {operation.value} payload={payload!r}")
        return self._handlers[operation](payload, timeout_sec)

    def close(self) -> None:
        self.client.close()

    # ------------------------------------------------------------------
    # Payload and result helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _effective_payload(operation: ApiOperation, data: Any) -> Any:
        """Fill in the default payload; partial mappings are merged onto the defaults."""
        payload = parse_payload(data)
        default = DEFAULT_API_PAYLOADS.get(operation)
        if payload is None:
            return dict(default) if isinstance(default, Mapping) else default
        if isinstance(default, Mapping) and isinstance(payload, Mapping):
            return merge_payload(default, payload)
        return payload

    @staticmethod
    def _synthetic(
        operation: ApiOperation, details: str, body: str, success: bool = True, status: int = 200
    ) -> ExecutionResult:
        return ExecutionResult.api_result(
            success=success,
            details=f"Mock {details} - Status: {status} {SYNTHETIC_SUFFIX}",
            status_code=status,
            response_body=body,
            operation=operation.value,
        )

    @staticmethod
    def _from_response(
        operation: ApiOperation, response: HttpResponse, success: bool, details: str
    ) -> ExecutionResult:
        if response.content_type:
            details = f"{details} | Content-Type: {response.content_type}"
        return ExecutionResult.api_result(
            success=success,
            details=details,
            status_code=response.status_code,
            response_body=response.body,
            operation=operation.value,
        )

    def _get(
        self, operation: ApiOperation, path: str, details: str, timeout_sec: Optional[float]
    ) -> ExecutionResult:
        response = self.client.get(path, timeout_sec=timeout_sec)
        return self._from_response(
            operation, response, response.status_code == 200,
            f"{details} - Status: {response.status_code}",
        )

    # ------------------------------------------------------------------
    # Customer operations
    # ------------------------------------------------------------------

    def _login(self, payload: Any, timeout_sec: Optional[float]) -> ExecutionResult:
        creds = merge_payload(DEFAULT_CREDENTIALS, as_mapping(payload))
        username = str(creds.get("username") or "")
        password = str(creds.get("password") or "")

        if not self.config.mock_mode:
            response = self.client.get(f"/login/{username}/{password}", timeout_sec=timeout_sec)
            return self._from_response(
                ApiOperation.LOGIN, response, response.status_code == 200,
                f"Login API test for user '{username}' - Status: {response.status_code}",
            )

        success = bool(username and password) and (
            "testuser" in username or username in MOCK_LOGIN_USERS
        )
        if success:
            body = (
                f"{XML_HEADER}<customer>\n<id>12345</id>\n<firstName>John</firstName>\n"
                f"<lastName>Doe</lastName>\n<username>{username}</username>\n</customer>"
            )
            return self._synthetic(ApiOperation.LOGIN, f"Login API test for user '{username}'", body)
        return self._synthetic(
            ApiOperation.LOGIN,
            f"Login API test for user '{username}'",
            "Invalid username and/or password",
            success=False,
            status=400,
        )

    def _create_customer(self, payload: Any, timeout_sec: Optional[float]) -> ExecutionResult:
        # No registration endpoint on the REST service: synthetic in both modes.
        customer = merge_payload(
            merge_payload(DEFAULT_PROFILE, {"username": "testuser"}), as_mapping(payload)
        )
        body = (
            f"{XML_HEADER}<customer>\n<id>12345</id>\n"
            f"<firstName>{customer.get('firstName')}</firstName>\n"
            f"<lastName>{customer.get('lastName')}</lastName>\n"
            f"<username>{customer.get('username')}</username>\n</customer>"
        )
        return self._synthetic(
            ApiOperation.CREATE_CUSTOMER,
            f"Create customer API test for user '{customer.get('username')}'",
            body,
        )

    def _update_customer(self, payload: Any, timeout_sec: Optional[float]) -> ExecutionResult:
        customer_id = extract_id(payload)
        fields = {k: v for k, v in as_mapping(payload).items() if k not in ID_KEYS}

        if not self.config.mock_mode:
            response = self.client.post(
                f"/customers/update/{customer_id}", params=fields, timeout_sec=timeout_sec
            )
            return self._from_response(
                ApiOperation.UPDATE_CUSTOMER, response, response.status_code == 200,
                f"Update customer {customer_id} API test - Status: {response.status_code}",
            )

        body = (
            f"{XML_HEADER}<customer>\n<id>{customer_id}</id>\n"
            f"<firstName>{fields.get('firstName', 'Updated')}</firstName>\n"
            f"<lastName>Doe</lastName>\n<username>testuser</username>\n</customer>"
        )
        return self._synthetic(
            ApiOperation.UPDATE_CUSTOMER, f"Update customer {customer_id} API test", body
        )

    def _delete_customer(self, payload: Any, timeout_sec: Optional[float]) -> ExecutionResult:
        # No deletion endpoint on the REST service: synthetic in both modes.
        customer_id = extract_id(payload)
        return self._synthetic(
            ApiOperation.DELETE_CUSTOMER,
            f"Delete customer {customer_id} API test",
            f"Customer {customer_id} deleted successfully (simulated)",
        )

    def _get_customer_details(self, payload: Any, timeout_sec: Optional[float]) -> ExecutionResult:
        customer_id = extract_id(payload)
        details = f"Get customer {customer_id} details API test"
        if not self.config.mock_mode:
            return self._get(
                ApiOperation.GET_CUSTOMER_DETAILS, f"/customers/{customer_id}", details, timeout_sec
            )
        body = (
            f"{XML_HEADER}<customer>\n<id>{customer_id}</id>\n<firstName>John</firstName>\n"
            f"<lastName>Doe</lastName>\n<username>testuser</username>\n</customer>"
        )
        return self._synthetic(ApiOperation.GET_CUSTOMER_DETAILS, details, body)

    # ------------------------------------------------------------------
    # Account operations
    # ------------------------------------------------------------------

    def _get_accounts(self, payload: Any, timeout_sec: Optional[float]) -> ExecutionResult:
        customer_id = extract_id(payload)
        details = f"Get accounts for customer {customer_id} API test"
        if not self.config.mock_mode:
            return self._get(
                ApiOperation.GET_ACCOUNTS, f"/customers/{customer_id}/accounts", details, timeout_sec
            )
        body = (
            f"{XML_HEADER}<accounts>\n<account>\n<id>12345</id>\n"
            f"<customerId>{customer_id}</customerId>\n<type>CHECKING</type>\n"
            f"<balance>1000.00</balance>\n</account>\n</accounts>"
        )
        return self._synthetic(ApiOperation.GET_ACCOUNTS, details, body)

    def _get_account_details(self, payload: Any, timeout_sec: Optional[float]) -> ExecutionResult:
        account_id = extract_id(payload)
        details = f"Get account {account_id} details API test"
        if not self.config.mock_mode:
            return self._get(
                ApiOperation.GET_ACCOUNT_DETAILS, f"/accounts/{account_id}", details, timeout_sec
            )
        body = (
            f"{XML_HEADER}<account>\n<id>{account_id}</id>\n<customerId>12345</customerId>\n"
            f"<type>CHECKING</type>\n<balance>1500.00</balance>\n</account>"
        )
        return self._synthetic(ApiOperation.GET_ACCOUNT_DETAILS, details, body)

    def _get_transaction_history(
        self, payload: Any, timeout_sec: Optional[float]
    ) -> ExecutionResult:
        account_id = extract_id(payload)
        details = f"Get transaction history for account {account_id} API test"
        if not self.config.mock_mode:
            return self._get(
                ApiOperation.GET_TRANSACTION_HISTORY,
                f"/accounts/{account_id}/transactions",
                details,
                timeout_sec,
            )
        body = (
            f"{XML_HEADER}<transactions>\n<transaction>\n<id>1001</id>\n"
            f"<accountId>{account_id}</accountId>\n<type>DEBIT</type>\n<amount>100.00</amount>\n"
            f"<description>Mock transaction</description>\n</transaction>\n</transactions>"
        )
        return self._synthetic(ApiOperation.GET_TRANSACTION_HISTORY, details, body)

    def _transfer_funds(self, payload: Any, timeout_sec: Optional[float]) -> ExecutionResult:
        transfer = as_mapping(payload)
        amount = transfer.get("amount", 100)

        if not self.config.mock_mode:
            params = {k: transfer.get(k) for k in ("fromAccountId", "toAccountId", "amount")}
            response = self.client.post("/transfer", params=params, timeout_sec=timeout_sec)
            return self._from_response(
                ApiOperation.TRANSFER_FUNDS, response, response.status_code == 200,
                f"Transfer funds API test - Status: {response.status_code}, Amount: {amount}",
            )

        body = (
            f"{XML_HEADER}<transaction>\n<id>2001</id>\n<amount>{amount}</amount>\n"
            f"<type>TRANSFER</type>\n<description>Mock transfer completed</description>\n"
            f"</transaction>"
        )
        return self._synthetic(
            ApiOperation.TRANSFER_FUNDS, f"Transfer funds API test, Amount: {amount}", body
        )

    def _pay_bills(self, payload: Any, timeout_sec: Optional[float]) -> ExecutionResult:
        bill = as_mapping(payload)
        amount = bill.get("amount", 75)
        payee = bill.get("payeeName", "Electric Company")

        if not self.config.mock_mode:
            response = self.client.post(
                "/billpay",
                params={"accountId": bill.get("accountId"), "amount": amount},
                json={"name": payee},
                timeout_sec=timeout_sec,
            )
            return self._from_response(
                ApiOperation.PAY_BILLS, response, response.status_code == 200,
                f"Pay bills API test - Status: {response.status_code}, Amount: {amount}",
            )

        body = (
            f"{XML_HEADER}<billPayResult>\n<payeeName>{payee}</payeeName>\n"
            f"<amount>{amount}</amount>\n<status>PAID</status>\n"
            f"<description>Mock bill payment completed</description>\n</billPayResult>"
        )
        return self._synthetic(ApiOperation.PAY_BILLS, f"Pay bills API test, Amount: {amount}", body)

    def _request_loan(self, payload: Any, timeout_sec: Optional[float]) -> ExecutionResult:
        loan = as_mapping(payload)
        params = {key: loan.get(key, default) for key, default in LOAN_DEFAULTS.items()}
        response = self.client.post("/requestLoan", params=params, timeout_sec=timeout_sec)
        return self._from_response(
            ApiOperation.REQUEST_LOAN, response, response.status_code == 200,
            f"Request loan API test - Status: {response.status_code}, "
            f"Amount: {loan.get('amount', 'unknown')}",
        )

    # ------------------------------------------------------------------
    # Service checks
    # ------------------------------------------------------------------

    def _health_check(self, payload: Any, timeout_sec: Optional[float]) -> ExecutionResult:
        """Probe the health endpoints in order; the first non-5xx answer wins."""
        response: Optional[HttpResponse] = None
        for path in self.config.health_check_paths:
            try:
                response = self.client.get(
                    path, base_url=self.config.site_url, timeout_sec=timeout_sec
                )
            except HttpClientError as e:
                logger.warning(f"[API] Health check endpoint failed: {path} ({e})")
                continue
            if response.status_code < 500:
                break

        if response is None:
            return ExecutionResult.failure("All health check endpoints failed", kind=ResultKind.API)
        return self._from_response(
            ApiOperation.HEALTH_CHECK, response, response.status_code < 500,
            f"Health check API test - Status: {response.status_code}",
        )

    def _validate(self, payload: Any, timeout_sec: Optional[float]) -> ExecutionResult:
        response = self.client.get(
            "/posts/1", base_url=self.config.validation_url, timeout_sec=timeout_sec
        )
        return self._from_response(
            ApiOperation.VALIDATE, response, response.status_code == 200,
            f"API validation test - Status: {response.status_code}",
        )
