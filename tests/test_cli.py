"""
Tests for the httpsig-request command line interface
"""

import io
import json

import pytest
import requests
from unittest.mock import MagicMock, patch

from httpsig_client.cli import (
    EXIT_OK,
    EXIT_OUTPUT_ERROR,
    EXIT_PAYLOAD_ERROR,
    EXIT_REMOTE_ERROR,
    EXIT_SIGNING_ERROR,
    EXIT_TRANSPORT_ERROR,
    create_parser,
    main,
    parse_header_args,
)
from httpsig_client.exceptions import ValidationError

CREDENTIALS = ["--key-id", "cli-key", "--secret", "cli-secret"]


def run_cli(argv, session=None, stdin=b""):
    """Run main() with captured streams and a mocked requests session."""
    stdout = io.BytesIO()
    stderr = io.StringIO()
    with patch("httpsig_client.http_client.requests.Session", return_value=session or MagicMock()):
        code = main(argv, stdin=io.BytesIO(stdin), stdout=stdout, stderr=stderr)
    return code, stdout.getvalue(), stderr.getvalue()


def make_session(status=200, content=b'{"ok": true}', side_effect=None):
    session = MagicMock()
    if side_effect is not None:
        session.request.side_effect = side_effect
    else:
        response = MagicMock()
        response.status_code = status
        response.reason = ""
        response.headers = {"Content-Type": "application/json"}
        response.content = content
        session.request.return_value = response
    return session


class TestParser:
    """Test argument parsing"""

    def test_defaults(self):
        args = create_parser().parse_args(["http://example.org/"])
        assert args.method == "GET"
        assert args.header == []
        assert args.data is None
        assert not args.dry_run

    def test_parse_header_args(self):
        headers = parse_header_args(["Content-Type: application/json", "X-Trace:abc"])
        assert headers == {"Content-Type": "application/json", "X-Trace": "abc"}

    @pytest.mark.parametrize("value", ["no-colon", "Bad Name: x", ": empty", "X-Note: snow ☃"])
    def test_invalid_header_args(self, value):
        with pytest.raises(ValidationError):
            parse_header_args([value])

    def test_unknown_algorithm_is_usage_error(self):
        with pytest.raises(SystemExit) as exc_info:
            create_parser().parse_args(["http://example.org/", "--algorithm", "rsa-sha256"])
        assert exc_info.value.code == 2


class TestMain:
    """Test end-to-end CLI runs"""

    def test_success_prints_body(self):
        session = make_session()
        code, out, err = run_cli(["http://example.org/resource"] + CREDENTIALS, session)

        assert code == EXIT_OK
        assert json.loads(out) == {"ok": True}
        headers = session.request.call_args.kwargs["headers"]
        assert headers["Signature"].startswith('keyId="cli-key",algorithm="hmac-sha256",'
                                               'headers="(request-target) host date"')
        session.close.assert_called_once()

    def test_post_with_stdin_payload(self):
        session = make_session()
        code, _, _ = run_cli(
            ["https://example.org/inbox", "-X", "post", "-d", "@-",
             "-H", "Content-Type: application/json"] + CREDENTIALS,
            session,
            stdin=b'{"hello": "world"}'
        )

        assert code == EXIT_OK
        kwargs = session.request.call_args.kwargs
        assert session.request.call_args.args[0] == "POST"
        assert kwargs["data"] == b'{"hello": "world"}'
        assert kwargs["headers"]["Content-Type"] == "application/json"
        assert kwargs["headers"]["Digest"].startswith("SHA-256=")
        assert "digest" in kwargs["headers"]["Signature"]

    def test_dry_run_sends_nothing(self):
        session = make_session()
        code, out, err = run_cli(
            ["http://example.org/resource", "--dry-run"] + CREDENTIALS, session
        )

        assert code == EXIT_OK
        assert out == b""
        session.request.assert_not_called()
        assert err.startswith("(request-target): get /resource\nhost: example.org\ndate: ")
        assert "Signature: keyId=\"cli-key\"" in err

    def test_authorization_header_mode(self):
        session = make_session()
        code, _, _ = run_cli(
            ["http://example.org/", "--signature-header", "authorization"] + CREDENTIALS, session
        )
        assert code == EXIT_OK
        headers = session.request.call_args.kwargs["headers"]
        assert headers["Authorization"].startswith("Signature keyId=")
        assert "Signature" not in headers

    def test_remote_error(self):
        session = make_session(status=401, content=b'{"error":"bad signature"}')
        code, out, err = run_cli(["http://example.org/"] + CREDENTIALS, session)

        assert code == EXIT_REMOTE_ERROR
        assert "HTTP 401" in err
        assert "bad signature" in err
        assert out == b""

    def test_transport_error(self):
        session = make_session(side_effect=requests.exceptions.ConnectionError(
            "Failed to resolve 'nonexistent.invalid'"
        ))
        code, _, err = run_cli(["http://nonexistent.invalid/"] + CREDENTIALS, session)

        assert code == EXIT_TRANSPORT_ERROR
        assert "(dns)" in err

    def test_missing_secret(self):
        session = make_session()
        code, _, err = run_cli(["http://example.org/", "--key-id", "cli-key"], session)

        assert code == EXIT_SIGNING_ERROR
        assert "secret" in err.lower()
        session.request.assert_not_called()

    def test_non_ascii_key_id(self):
        session = make_session()
        code, _, err = run_cli(["http://example.org/", "--key-id", "clé-☃", "--secret", "s"], session)

        assert code == EXIT_SIGNING_ERROR
        assert "key id" in err.lower()
        session.request.assert_not_called()

    def test_unsendable_header_argument(self):
        session = make_session()
        code, _, _ = run_cli(["http://example.org/", "-H", "X-Note: snow ☃"] + CREDENTIALS, session)

        assert code == EXIT_SIGNING_ERROR
        session.request.assert_not_called()

    def test_invalid_url(self):
        code, _, _ = run_cli(["example.org/no-scheme"] + CREDENTIALS)
        assert code == EXIT_SIGNING_ERROR

    def test_payload_too_large(self):
        session = make_session()
        code, _, _ = run_cli(
            ["http://example.org/", "-X", "POST", "-d", "@-", "--max-payload-bytes", "4"] + CREDENTIALS,
            session,
            stdin=b"12345"
        )
        assert code == EXIT_PAYLOAD_ERROR
        session.request.assert_not_called()

    def test_missing_payload_file(self, tmp_path):
        code, _, _ = run_cli(
            ["http://example.org/", "-d", f"@{tmp_path / 'missing.json'}"] + CREDENTIALS
        )
        assert code == EXIT_PAYLOAD_ERROR

    def test_output_file(self, tmp_path):
        target = tmp_path / "response.json"
        code, out, _ = run_cli(["http://example.org/", "-o", str(target)] + CREDENTIALS, make_session())

        assert code == EXIT_OK
        assert out == b""
        assert target.read_bytes() == b'{"ok": true}'

    def test_unwritable_output(self, tmp_path):
        target = tmp_path / "no-such-dir" / "response.json"
        code, _, _ = run_cli(["http://example.org/", "-o", str(target)] + CREDENTIALS, make_session())
        assert code == EXIT_OUTPUT_ERROR

    def test_credentials_from_environment(self, monkeypatch, tmp_path):
        secret_file = tmp_path / "secret"
        secret_file.write_bytes(b"env-secret\n")
        monkeypatch.setenv("HTTPSIG_KEY_ID", "env-key")
        monkeypatch.setenv("HTTPSIG_SECRET_FILE", str(secret_file))

        session = make_session()
        code, _, _ = run_cli(["http://example.org/"], session)

        assert code == EXIT_OK
        assert 'keyId="env-key"' in session.request.call_args.kwargs["headers"]["Signature"]

    def test_config_file(self, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({
            "key_id": "file-key", "secret": "file-secret", "date_format": "epoch-ms"
        }))

        session = make_session()
        code, _, _ = run_cli(["http://example.org/", "--config", str(config_path)], session)

        assert code == EXIT_OK
        headers = session.request.call_args.kwargs["headers"]
        assert headers["Date"].isdigit()
        assert 'keyId="file-key"' in headers["Signature"]

    def test_insecure_flag(self):
        session = make_session()
        run_cli(["https://example.org/", "-k"] + CREDENTIALS, session)
        assert session.request.call_args.kwargs["verify"] is False
