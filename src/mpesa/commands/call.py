"""Call command -- run one operation with a JSON payload file.

``mpesa call OPERATION PAYLOAD_FILE`` validates the payload against the
operation's request model, sends it, and prints the parsed
acknowledgement. Payload keys may use either the provider's names
(``BusinessShortCode``) or the Python ones (``business_short_code``).

Example::

    mpesa call stk-push stk.json
    mpesa call c2b-register register.json --api-key "$MPESA_API_KEY"
    cat balance.json | mpesa --json call account-balance -
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, NamedTuple, Optional

import typer
from pydantic import ValidationError

from mpesa import commands
from mpesa.dto.common import RequestModel
from mpesa.dto.requests import (
    AccountBalanceRequest,
    B2CPaymentRequest,
    C2BPaymentRequest,
    C2BRegisterRequest,
    C2BSimulatePaymentRequest,
    StkPushRequest,
    TransactionReversalRequest,
    TransactionStatusRequest,
)
from mpesa.exceptions import MpesaError
from mpesa.exit_codes import EXIT_INVALID_USAGE
from mpesa.output import debug, error, format_response, info, suggest, warning


class Operation(NamedTuple):
    request_model: type[RequestModel]
    sdk_method: str


OPERATIONS: dict[str, Operation] = {
    "account-balance": Operation(AccountBalanceRequest, "check_account_balance"),
    "b2c-payment": Operation(B2CPaymentRequest, "initiate_b2c_payment"),
    "c2b-register": Operation(C2BRegisterRequest, "register_c2b"),
    "c2b-payment": Operation(C2BPaymentRequest, "initiate_c2b_payment"),
    "c2b-simulate": Operation(C2BSimulatePaymentRequest, "simulate_c2b_payment"),
    "stk-push": Operation(StkPushRequest, "request_stk_push"),
    "transaction-status": Operation(TransactionStatusRequest, "check_transaction_status"),
    "transaction-reversal": Operation(TransactionReversalRequest, "reverse_transaction"),
}


def _read_payload(payload_file: str) -> Any:
    if payload_file == "-":
        text = sys.stdin.read()
    else:
        path = Path(payload_file).expanduser()
        if not path.is_file():
            error(f"Payload file not found: {path}")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        text = path.read_text(encoding="utf-8")
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        error(f"Payload is not valid JSON: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None


def _describe_errors(exc: ValidationError) -> str:
    # Input values are left out; they may hold credentials.
    lines = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"]) or "payload"
        lines.append(f"  {location}: {err['msg']}")
    return "\n".join(lines)


def call_command(
    ctx: typer.Context,
    operation: str = typer.Argument(help=f"One of: {', '.join(OPERATIONS)}."),
    payload_file: str = typer.Argument(help="JSON payload file, or '-' for stdin."),
    api_key: Optional[str] = typer.Option(
        None, "--api-key", envvar="MPESA_API_KEY", help="API key for c2b-register."
    ),
) -> None:
    """Run a single operation and print the provider's acknowledgement."""
    entry = OPERATIONS.get(operation)
    if entry is None:
        error(f"Unknown operation: {operation}")
        suggest(f"Choose one of: {', '.join(OPERATIONS)}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    if operation == "c2b-register" and not api_key:
        error("c2b-register requires --api-key (or MPESA_API_KEY).")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    payload = _read_payload(payload_file)
    debug(f"Read {operation} payload from {'stdin' if payload_file == '-' else payload_file}")
    try:
        request = entry.request_model.model_validate(payload)
    except ValidationError as exc:
        error(f"Invalid {operation} payload:\n{_describe_errors(exc)}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    try:
        with commands.build_sdk(ctx) as sdk:
            info(f"Calling {operation}")
            method = getattr(sdk, entry.sdk_method)
            if operation == "c2b-register":
                response = method(request, api_key)
            else:
                response = method(request)
    except MpesaError as exc:
        error(f"{operation} failed: {exc}")
        body = getattr(exc, "response_body", None)
        if body:
            info(f"Response body: {body}")
        raise typer.Exit(code=exc.exit_code) from None

    if not response.is_successful:
        warning(f"{operation} was not accepted by the provider.")
    format_response(response.model_dump(mode="json", by_alias=True))
