"""
Response classification

Turns a DispatchResult into the Outcome reported to callers: Ok for 2xx and
3xx responses, RemoteError for any other status (with the JSON error body
decoded when possible) and TransportError when no response was received.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from .exceptions import ServerCommunicationError
from .http_client import DispatchResult, DispatchSuccess, TransportFailure


def _decode_json(body: bytes) -> Any:
    return json.loads(body.decode('utf-8'))


@dataclass
class Ok:
    """Successful exchange"""
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    ok = True

    def json(self) -> Any:
        """Decode the body as JSON."""
        return _decode_json(self.body)


@dataclass
class RemoteError:
    """
    The remote service answered with a failure status

    Attributes:
        status: HTTP status code
        headers: Response headers
        body: Raw response body
        structured_body: Decoded JSON body, None if the body is not JSON
    """
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    structured_body: Optional[Any] = None

    ok = False

    def json(self) -> Any:
        if self.structured_body is not None:
            return self.structured_body
        return _decode_json(self.body)


@dataclass
class TransportError:
    """No response was received"""
    cause: BaseException
    kind: str

    ok = False


Outcome = Union[Ok, RemoteError, TransportError]


def is_success_status(status: int) -> bool:
    """2xx and 3xx count as success; redirects are not followed."""
    return 200 <= status < 400


def parse_structured_body(body: bytes) -> Optional[Any]:
    """
    Decode a JSON response body.

    Returns:
        The decoded value, or None if the body is empty or not JSON
    """
    if not body:
        return None
    try:
        return _decode_json(body)
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None


def classify(result: DispatchResult) -> Outcome:
    """
    Classify a dispatch result.

    Args:
        result: Output of the dispatcher

    Returns:
        Outcome: Ok, RemoteError or TransportError
    """
    if isinstance(result, TransportFailure):
        return TransportError(cause=result.cause, kind=result.kind)

    if not isinstance(result, DispatchSuccess):
        raise TypeError(f"Unexpected dispatch result: {type(result).__name__}")

    if is_success_status(result.status):
        return Ok(status=result.status, headers=result.headers, body=result.body)

    return RemoteError(
        status=result.status,
        headers=result.headers,
        body=result.body,
        structured_body=parse_structured_body(result.body),
    )


def raise_for_outcome(outcome: Outcome) -> Ok:
    """
    Convert failure outcomes into ServerCommunicationError.

    Args:
        outcome: Classified outcome

    Returns:
        Ok: The outcome itself when it is successful

    Raises:
        ServerCommunicationError: For RemoteError and TransportError
    """
    if isinstance(outcome, Ok):
        return outcome

    if isinstance(outcome, TransportError):
        raise ServerCommunicationError(
            f"Request failed ({outcome.kind}): {outcome.cause}",
            error_code="TRANSPORT_ERROR",
            details={"kind": outcome.kind}
        ) from outcome.cause

    message = f"HTTP {outcome.status}"
    structured = outcome.structured_body
    if isinstance(structured, dict) and structured.get('error'):
        error_info = structured['error']
        if isinstance(error_info, dict):
            message = error_info.get('message', message)
        else:
            message = str(error_info)

    raise ServerCommunicationError(
        f"Server request failed: {message}",
        error_code="HTTP_ERROR",
        http_status=outcome.status,
        details={"status_code": outcome.status, "body": structured}
    )
