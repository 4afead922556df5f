"""
Canonical string construction for shared-secret HTTP signatures

This module builds the ordered set of signing headers for a request and the
newline-joined canonical string the signature is computed over. The verifier
rebuilds the same string from the advertised header list, so line order and
values must match byte for byte.
"""

from typing import Mapping, Optional, Tuple, Union

from ..exceptions import MissingSigningHeaderError
from .types import (
    DigestResult,
    HttpMethod,
    RequestSpec,
    SigningErrorCodes,
    SigningHeaders,
)
from .utils import normalize_header_name, parse_url

REQUEST_TARGET = "(request-target)"


def format_request_target(method: Union[str, HttpMethod], path: str) -> str:
    """
    Build the (request-target) value.

    Args:
        method: HTTP method
        path: Path including the query string

    Returns:
        str: e.g. 'post /inbox?page=2'
    """
    method_value = method.value if isinstance(method, HttpMethod) else str(method)
    return f"{method_value.lower()} {path}"


def build_signing_headers(spec: RequestSpec, digest: Optional[DigestResult] = None) -> SigningHeaders:
    """
    Build the ordered signing headers for a request.

    Order is (request-target), host, date and, for requests with a body,
    digest. The same order is advertised in the signature header.

    Args:
        spec: Request being signed
        digest: Body digest, required when the request has a payload

    Returns:
        SigningHeaders: Ordered header name to value mapping

    Raises:
        MissingSigningHeaderError: If the request has a body but no digest
    """
    url_parts = parse_url(spec.url)

    headers: SigningHeaders = {
        REQUEST_TARGET: format_request_target(spec.method, url_parts.target),
        "host": url_parts.host,
        "date": spec.date,
    }

    if spec.has_payload:
        if digest is None:
            raise MissingSigningHeaderError(
                "Digest required for request with a body",
                SigningErrorCodes.MISSING_SIGNING_HEADER,
                {"header": "digest"}
            )
        headers["digest"] = digest.header_value

    return headers


def covered_headers(ordered_headers: Mapping[str, str]) -> Tuple[str, ...]:
    """Names of the covered headers, lowercased, in canonical order."""
    return tuple(normalize_header_name(name) for name in ordered_headers)


def build_canonical_string(
    method: Union[str, HttpMethod],
    path: str,
    ordered_headers: Mapping[str, Optional[str]]
) -> str:
    """
    Build the canonical string for signing.

    One '<name>: <value>' line per header, in the mapping's iteration order,
    joined with '\\n' and without a trailing newline. The (request-target)
    line is always synthesized from method and path.

    Args:
        method: HTTP method
        path: Path including the query string
        ordered_headers: Ordered header name to value mapping

    Returns:
        str: Canonical string

    Raises:
        MissingSigningHeaderError: If a header has no value or
            (request-target) is not the first header
    """
    lines = []

    for position, (name, value) in enumerate(ordered_headers.items()):
        normalized_name = normalize_header_name(name)

        if normalized_name == REQUEST_TARGET:
            if position != 0:
                raise MissingSigningHeaderError(
                    "(request-target) must be the first covered header",
                    SigningErrorCodes.REQUEST_TARGET_NOT_FIRST,
                    {"position": position}
                )
            value = format_request_target(method, path)
        elif value is None or value == "":
            raise MissingSigningHeaderError(
                f"Missing value for signing header: {normalized_name}",
                SigningErrorCodes.MISSING_SIGNING_HEADER,
                {"header": normalized_name, "covered_headers": list(ordered_headers)}
            )

        lines.append(f"{normalized_name}: {value}")

    return '\n'.join(lines)
