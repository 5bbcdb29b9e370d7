"""Shared plumbing for the operation services.

Every operation follows the same shape: resolve the endpoint URL, POST the
request through the :class:`~mpesa.client.executor.RequestExecutor`, parse
the body into the operation's response model, and translate failures into
domain errors. :class:`BaseService` implements that once; subclasses only
declare the endpoint, the response model and their :class:`ErrorRule`
table.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional, Sequence, TypeVar

from pydantic import BaseModel, ValidationError

from mpesa.client.executor import RequestExecutor, redact_url
from mpesa.exceptions import ErrorCode, HttpError, UnexpectedResponseError
from mpesa.models import Endpoint, MpesaConfig

logger = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT", bound=BaseModel)


@dataclass(frozen=True)
class ErrorRule:
    """Map an :class:`HttpError` to a domain error.

    A rule matches when the status is equal and *marker* occurs anywhere in
    the response body.
    """

    status_code: int
    marker: str
    error_code: ErrorCode
    message: str

    def matches(self, error: HttpError) -> bool:
        return error.status_code == self.status_code and self.marker in (error.response_body or "")


class BaseService:
    """Base for the per-area services.

    Args:
        executor: Sends the authenticated requests.
        config: Resolves endpoint URLs. Defaults to the executor's config.
    """

    def __init__(self, executor: RequestExecutor, config: Optional[MpesaConfig] = None) -> None:
        self._executor = executor
        self._config = config or executor.config

    def _post(
        self,
        endpoint: Endpoint,
        request: BaseModel,
        response_model: type[ResponseT],
        *,
        operation: str,
        rules: Sequence[ErrorRule] = (),
        params: Optional[dict[str, str]] = None,
        cancel: Optional[threading.Event] = None,
    ) -> ResponseT:
        url = self._config.url_for(endpoint)
        log_url = redact_url(url)
        logger.info("Initiating %s request. URL: %s", operation, log_url)

        try:
            body = self._executor.post(url, request, params=params, cancel=cancel)
        except HttpError as exc:
            for rule in rules:
                if rule.matches(exc):
                    logger.error("%s failed: %s. Response: %s", operation, rule.message, exc.response_body)
                    raise UnexpectedResponseError(
                        rule.error_code, exc.response_body, rule.message
                    ) from exc
            logger.error("Unexpected error during %s. Response: %s", operation, exc.response_body)
            raise UnexpectedResponseError(
                ErrorCode.UNKNOWN_ERROR,
                exc.response_body,
                f"Unexpected error in {operation}.",
            ) from exc

        logger.debug("%s response received: %s", operation, body)
        try:
            return response_model.model_validate_json(body)
        except ValidationError as exc:
            logger.error("Failed to parse %s response. Response: %s", operation, body)
            raise UnexpectedResponseError(
                ErrorCode.INVALID_RESPONSE,
                body,
                f"Failed to parse {operation} response.",
            ) from exc
