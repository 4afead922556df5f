"""
High-level integration of signing, dispatch and classification

The SignedRequestClient is the entry point used by the CLI and by library
callers: it takes an explicit ClientConfig, generates the request date once,
signs, dispatches exactly one request and returns a classified Outcome.
"""

import logging
import time
from typing import Callable, Dict, Optional, Union

from .classifier import Outcome, RemoteError, classify
from .config.client_config import ClientConfig
from .exceptions import PayloadTooLargeError
from .http_client import Dispatcher
from .signing.signer import HttpSignatureSigner
from .signing.types import HttpMethod, RequestSpec, SignedRequest
from .signing.utils import format_date, normalize_header_name


Clock = Callable[[], float]


class SignedRequestClient:
    """
    One-shot signed HTTP client.

    Signing and validation errors are raised before any network activity.
    Transport and remote failures are returned as Outcome values.
    """

    def __init__(
        self,
        config: ClientConfig,
        logger: Optional[logging.Logger] = None,
        dispatcher: Optional[Dispatcher] = None,
        clock: Optional[Clock] = None
    ):
        """
        Initialize the client.

        Args:
            config: Client configuration
            logger: Logger to report to (module logger if None)
            dispatcher: Dispatcher to send with (built from config if None)
            clock: Returns the current Unix time (time.time if None)

        Raises:
            SigningError: If the signing configuration is invalid
        """
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self.signer = HttpSignatureSigner(config.to_signing_config())
        self.dispatcher = dispatcher or Dispatcher(
            timeout=config.timeout,
            verify_ssl=config.verify_ssl
        )
        self.clock = clock or time.time

    def prepare(
        self,
        method: Union[str, HttpMethod],
        url: str,
        payload: bytes = b"",
        headers: Optional[Dict[str, str]] = None,
        date: Optional[str] = None
    ) -> SignedRequest:
        """
        Build and sign a request without sending it.

        Args:
            method: HTTP method
            url: Request URL
            payload: Body bytes
            headers: Extra unsigned headers
            date: Date header value (generated from the clock if None)

        Returns:
            SignedRequest: Signed request

        Raises:
            SigningError: If signing fails
            ValidationError: If the request is malformed
        """
        payload = payload or b""
        if len(payload) > self.config.max_payload_bytes:
            raise PayloadTooLargeError(self.config.max_payload_bytes, {"read_bytes": len(payload)})

        extra_headers = dict(headers or {})
        if self.config.user_agent and not any(
            normalize_header_name(name) == "user-agent" for name in extra_headers
        ):
            extra_headers["User-Agent"] = self.config.user_agent

        if date is None:
            date = format_date(self.clock(), self.config.date_format)

        spec = RequestSpec(
            method=HttpMethod.from_name(method),
            url=url,
            date=date,
            identity=self.config.key_id,
            payload=payload,
            headers=extra_headers,
        )

        signed = self.signer.sign_request(spec)
        self.logger.debug(f"Signature header: {signed.signature_header.to_header_value()}")
        return signed

    def send(self, signed: SignedRequest) -> Outcome:
        """
        Dispatch a signed request and classify the result.

        Args:
            signed: Output of prepare()

        Returns:
            Outcome: Ok, RemoteError or TransportError
        """
        self.logger.info(f"Sending {signed.method.value} {signed.url} as {signed.signature_header.key_id}")
        outcome = classify(self.dispatcher.dispatch_signed(signed))

        if outcome.ok:
            self.logger.info(f"Request succeeded with status {outcome.status}")
        elif isinstance(outcome, RemoteError):
            self.logger.warning(f"Remote error: HTTP {outcome.status}")
        else:
            self.logger.error(f"Transport error ({outcome.kind}): {outcome.cause}")
        return outcome

    def execute(
        self,
        method: Union[str, HttpMethod],
        url: str,
        payload: bytes = b"",
        headers: Optional[Dict[str, str]] = None,
        date: Optional[str] = None
    ) -> Outcome:
        """
        Sign, send and classify a single request.

        Args:
            method: HTTP method
            url: Request URL
            payload: Body bytes
            headers: Extra unsigned headers
            date: Date header value (generated from the clock if None)

        Returns:
            Outcome: Ok, RemoteError or TransportError

        Raises:
            SigningError: If signing fails; nothing is sent
            ValidationError: If the request is malformed; nothing is sent
        """
        signed = self.prepare(method, url, payload=payload, headers=headers, date=date)
        return self.send(signed)


def send_signed_request(
    method: Union[str, HttpMethod],
    url: str,
    config: ClientConfig,
    payload: bytes = b"",
    headers: Optional[Dict[str, str]] = None,
    date: Optional[str] = None,
    logger: Optional[logging.Logger] = None
) -> Outcome:
    """
    Send one signed request.

    Args:
        method: HTTP method
        url: Request URL
        config: Client configuration
        payload: Body bytes
        headers: Extra unsigned headers
        date: Date header value (generated if None)
        logger: Logger to report to

    Returns:
        Outcome: Ok, RemoteError or TransportError
    """
    client = SignedRequestClient(config, logger=logger)
    return client.execute(method, url, payload=payload, headers=headers, date=date)
