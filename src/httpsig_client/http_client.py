"""
HTTP dispatch for signed requests

This module sends a single signed request and reports either the HTTP
response or the transport failure that prevented one. HTTP error statuses are
responses, not failures; the classifier decides what they mean.
"""

import time
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Union

import requests
from requests.auth import AuthBase

from .exceptions import ValidationError
from .signing.types import SignedRequest

logger = logging.getLogger(__name__)

_DNS_FAILURE_MARKERS = (
    "nameresolutionerror",
    "failed to resolve",
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "temporary failure in name resolution",
    "no address associated with hostname",
)


class TransportFailureKind:
    """Categories of transport failure"""
    DNS = "dns"
    CONNECT = "connect"
    TIMEOUT = "timeout"
    SSL = "ssl"
    OTHER = "other"


@dataclass
class DispatchSuccess:
    """
    An HTTP response was received (any status).

    Attributes:
        status: HTTP status code
        headers: Response headers
        body: Raw response body bytes
        reason: HTTP reason phrase
        elapsed_ms: Time from send to response
    """
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    reason: str = ""
    elapsed_ms: float = 0.0


@dataclass
class TransportFailure:
    """
    No HTTP response was received.

    Attributes:
        cause: Underlying exception
        kind: One of the TransportFailureKind values
    """
    cause: BaseException
    kind: str = TransportFailureKind.OTHER

    @property
    def message(self) -> str:
        return str(self.cause)


DispatchResult = Union[DispatchSuccess, TransportFailure]


class PresignedAuth(AuthBase):
    """
    Auth handler for requests that already carry their signature.

    Leaves the prepared request untouched. Passing any auth object also stops
    requests from applying .netrc credentials over the signed Authorization
    header.
    """

    def __call__(self, request):
        return request


def classify_transport_exception(error: requests.exceptions.RequestException) -> str:
    """
    Map a requests exception to a TransportFailureKind.

    Args:
        error: Exception raised by requests

    Returns:
        str: Failure kind
    """
    if isinstance(error, requests.exceptions.Timeout):
        return TransportFailureKind.TIMEOUT
    if isinstance(error, requests.exceptions.SSLError):
        return TransportFailureKind.SSL
    if isinstance(error, requests.exceptions.ConnectionError):
        text = f"{error!r} {error}".lower()
        if any(marker in text for marker in _DNS_FAILURE_MARKERS):
            return TransportFailureKind.DNS
        return TransportFailureKind.CONNECT
    return TransportFailureKind.OTHER


class Dispatcher:
    """
    Sends exactly one HTTP request per dispatch call.

    A requests session is opened for each call and closed on every exit
    path. Redirects are not followed and nothing is retried.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        verify_ssl: bool = True,
        session_factory: Optional[Callable[[], requests.Session]] = None
    ):
        """
        Initialize the dispatcher.

        Args:
            timeout: Request timeout in seconds
            verify_ssl: Whether to verify TLS certificates
            session_factory: Creates the per-call session (requests.Session by default)
        """
        if timeout <= 0:
            raise ValidationError("Timeout must be positive", "INVALID_TIMEOUT")

        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.session_factory = session_factory or requests.Session

    def dispatch(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Optional[bytes] = None
    ) -> DispatchResult:
        """
        Send a request.

        Args:
            method: HTTP method
            url: Request URL
            headers: Final headers, signature included
            body: Exact body bytes, None or empty for no body

        Returns:
            DispatchResult: DispatchSuccess for any HTTP response,
                TransportFailure when no response was received
        """
        session = self.session_factory()
        start = time.perf_counter()
        try:
            logger.debug(f"Making {method} request to {url}")
            response = session.request(
                method,
                url,
                headers=headers,
                data=body or None,
                timeout=self.timeout,
                verify=self.verify_ssl,
                allow_redirects=False,
                auth=PresignedAuth(),
            )
            result = DispatchSuccess(
                status=response.status_code,
                headers=dict(response.headers),
                body=response.content or b"",
                reason=response.reason or "",
                elapsed_ms=(time.perf_counter() - start) * 1000,
            )
            logger.info(f"{method} {url} -> {result.status} ({result.elapsed_ms:.0f}ms)")
            return result
        except requests.exceptions.RequestException as e:
            kind = classify_transport_exception(e)
            logger.warning(f"{method} {url} failed ({kind}): {e}")
            return TransportFailure(cause=e, kind=kind)
        except UnicodeEncodeError as e:
            # http.client only sends Latin-1 header values
            logger.warning(f"{method} {url} failed: header cannot be encoded: {e}")
            return TransportFailure(cause=e, kind=TransportFailureKind.OTHER)
        finally:
            session.close()

    def dispatch_signed(self, signed: SignedRequest) -> DispatchResult:
        """
        Send a signed request.

        Args:
            signed: Output of the signer

        Returns:
            DispatchResult: Result of the single request
        """
        return self.dispatch(signed.method.value, signed.url, signed.headers, signed.body)


def create_dispatcher(timeout: float = 30.0, verify_ssl: bool = True) -> Dispatcher:
    """
    Create a dispatcher with default session handling.

    Args:
        timeout: Request timeout in seconds
        verify_ssl: Whether to verify TLS certificates

    Returns:
        Dispatcher: Configured dispatcher
    """
    return Dispatcher(timeout=timeout, verify_ssl=verify_ssl)
