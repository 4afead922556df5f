"""
Command-line interface for httpsig-client
Sends a single signed HTTP request and reports the result
"""

import argparse
import json
import logging
import sys
from typing import Dict, List, Optional

from . import __version__
from .classifier import Ok, Outcome, RemoteError, TransportError
from .config.client_config import load_config
from .exceptions import (
    ConfigurationError,
    HttpSigClientError,
    PayloadTooLargeError,
    SigningError,
    ValidationError,
)
from .integration import SignedRequestClient
from .payload import read_payload
from .signing.types import DateFormat, DigestAlgorithm, SignatureAlgorithm, SignatureHeaderName
from .signing.utils import validate_header_name, validate_header_value

EXIT_OK = 0
EXIT_REMOTE_ERROR = 1
EXIT_TRANSPORT_ERROR = 3
EXIT_SIGNING_ERROR = 4
EXIT_PAYLOAD_ERROR = 5
EXIT_OUTPUT_ERROR = 6
EXIT_INTERRUPTED = 130


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='httpsig-request',
        description='Send a single HTTP request signed with a shared-secret HTTP signature'
    )

    parser.add_argument('url', help='Target URL (http or https)')

    parser.add_argument(
        '--version',
        action='version',
        version=f'httpsig-client {__version__}'
    )

    parser.add_argument(
        '-X', '--method',
        default='GET',
        help='HTTP method (default: GET)'
    )
    parser.add_argument(
        '-H', '--header',
        action='append',
        default=[],
        metavar='NAME: VALUE',
        help='Extra request header, may be repeated (not signed)'
    )
    parser.add_argument(
        '-d', '--data',
        help="Request body: literal text, @FILE to read a file, or @- to read stdin"
    )

    signing = parser.add_argument_group('signing')
    signing.add_argument('--key-id', help='Key id advertised to the server')
    signing.add_argument('--secret', help='Shared secret')
    signing.add_argument('--secret-file', help='Read the shared secret from a file')
    signing.add_argument(
        '--algorithm',
        choices=[a.value for a in SignatureAlgorithm],
        help='Signature algorithm (default: hmac-sha256)'
    )
    signing.add_argument(
        '--digest',
        help=f"Body digest algorithm: {', '.join(a.value for a in DigestAlgorithm)} (default: SHA-256)"
    )
    signing.add_argument(
        '--date-format',
        choices=[f.value for f in DateFormat],
        help='Encoding of the signed Date header (default: http-date)'
    )
    signing.add_argument(
        '--signature-header',
        choices=[h.value for h in SignatureHeaderName],
        help='Header carrying the signature (default: signature)'
    )

    transport = parser.add_argument_group('transport')
    transport.add_argument('--timeout', type=float, help='Request timeout in seconds (default: 30)')
    transport.add_argument(
        '-k', '--insecure',
        action='store_true',
        help='Do not verify TLS certificates'
    )
    transport.add_argument(
        '--max-payload-bytes',
        type=int,
        help='Largest accepted request body (default: 10 MiB)'
    )

    output = parser.add_argument_group('output')
    output.add_argument('-o', '--output', help='Write the response body to a file')
    output.add_argument(
        '--show-signature',
        action='store_true',
        help='Print the canonical string and signature header to stderr'
    )
    output.add_argument(
        '--dry-run',
        action='store_true',
        help='Sign the request and print it without sending'
    )
    output.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase log verbosity (-v info, -vv debug)'
    )

    parser.add_argument('--config', help='JSON configuration file')

    return parser


def parse_header_args(values: List[str]) -> Dict[str, str]:
    """
    Parse repeated 'Name: value' header arguments.

    Raises:
        ValidationError: If an argument is not a valid header
    """
    headers = {}
    for raw in values:
        name, separator, value = raw.partition(':')
        name = name.strip()
        value = value.strip()
        if not separator or not validate_header_name(name) or not validate_header_value(value):
            raise ValidationError(f"Invalid header argument: {raw!r}", "INVALID_HEADERS")
        headers[name] = value
    return headers


def configure_logging(verbosity: int, default_level: str = "WARNING") -> None:
    """Configure root logging from -v flags."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = getattr(logging, str(default_level).upper(), logging.WARNING)

    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
        stream=sys.stderr
    )


def _format_body(body: bytes) -> bytes:
    """Pretty-print JSON bodies, leave anything else untouched."""
    try:
        parsed = json.loads(body.decode('utf-8'))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return body
    return (json.dumps(parsed, indent=2, ensure_ascii=False) + "\n").encode('utf-8')


def write_body(body: bytes, output_path: Optional[str], stdout=None) -> None:
    """
    Write a response body to a file or stdout.

    Files receive the raw bytes; stdout receives pretty-printed JSON when the
    body is JSON.
    """
    if output_path:
        with open(output_path, 'wb') as f:
            f.write(body)
        return

    stream = stdout if stdout is not None else sys.stdout.buffer
    stream.write(_format_body(body))
    stream.flush()


def report_outcome(outcome: Outcome, output_path: Optional[str], stdout=None, stderr=None) -> int:
    """
    Report an outcome and map it to an exit code.

    Args:
        outcome: Classified outcome
        output_path: Optional file for the response body
        stdout: Binary stream for the body (sys.stdout.buffer if None)
        stderr: Text stream for errors (sys.stderr if None)

    Returns:
        int: Exit code
    """
    err = stderr if stderr is not None else sys.stderr

    if isinstance(outcome, Ok):
        write_body(outcome.body, output_path, stdout)
        return EXIT_OK

    if isinstance(outcome, RemoteError):
        print(f"Error: server responded with HTTP {outcome.status}", file=err)
        if outcome.structured_body is not None:
            print(json.dumps(outcome.structured_body, indent=2, ensure_ascii=False), file=err)
        elif outcome.body:
            print(outcome.body.decode('utf-8', errors='replace'), file=err)
        if output_path:
            write_body(outcome.body, output_path)
        return EXIT_REMOTE_ERROR

    if isinstance(outcome, TransportError):
        print(f"Error: request failed ({outcome.kind}): {outcome.cause}", file=err)
        return EXIT_TRANSPORT_ERROR

    raise TypeError(f"Unexpected outcome: {type(outcome).__name__}")


def main(argv: Optional[list] = None, stdin=None, stdout=None, stderr=None) -> int:
    """
    Main entry point for the CLI

    Args:
        argv: Command line arguments (None to use sys.argv)
        stdin: Binary stream for '@-' payloads (sys.stdin.buffer if None)
        stdout: Binary stream for the response body (sys.stdout.buffer if None)
        stderr: Text stream for diagnostics (sys.stderr if None)

    Returns:
        int: Exit code (0 for success, non-zero for failure)
    """
    if argv is None:
        argv = sys.argv[1:]

    err = stderr if stderr is not None else sys.stderr

    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(
            args.config,
            overrides={
                'key_id': args.key_id,
                'secret': args.secret,
                'secret_file': args.secret_file,
                'signature_algorithm': args.algorithm,
                'digest_algorithm': args.digest,
                'date_format': args.date_format,
                'signature_header': args.signature_header,
                'timeout': args.timeout,
                'verify_ssl': False if args.insecure else None,
                'max_payload_bytes': args.max_payload_bytes,
            }
        )
        configure_logging(args.verbose, config.log_level)

        headers = parse_header_args(args.header)
        payload = read_payload(args.data, stdin=stdin, max_bytes=config.max_payload_bytes)

        client = SignedRequestClient(config)
        signed = client.prepare(args.method, args.url, payload=payload, headers=headers)

        if args.show_signature or args.dry_run:
            print(signed.canonical_string, file=err)
            print("", file=err)
            for name, value in signed.headers.items():
                print(f"{name}: {value}", file=err)

        if args.dry_run:
            return EXIT_OK

        outcome = client.send(signed)
        return report_outcome(outcome, args.output, stdout=stdout, stderr=err)

    except PayloadTooLargeError as e:
        print(f"Error: {e}", file=err)
        return EXIT_PAYLOAD_ERROR
    except (SigningError, ConfigurationError) as e:
        print(f"Error: {e}", file=err)
        return EXIT_SIGNING_ERROR
    except ValidationError as e:
        print(f"Error: {e}", file=err)
        return EXIT_PAYLOAD_ERROR if e.error_code.startswith("PAYLOAD") else EXIT_SIGNING_ERROR
    except HttpSigClientError as e:
        print(f"Error: {e}", file=err)
        return EXIT_SIGNING_ERROR
    except OSError as e:
        print(f"Error: failed to write output: {e}", file=err)
        return EXIT_OUTPUT_ERROR
    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=err)
        return EXIT_INTERRUPTED


if __name__ == '__main__':
    sys.exit(main())
