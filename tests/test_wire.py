"""
Wire-level tests against a local HTTP server

Requests go through a real socket so the request line and headers the server
receives are exactly what requests sent. Each received request is checked with
verify_request.
"""

import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from httpsig_client import ClientConfig, Ok, SignedRequestClient
from httpsig_client.exceptions import SigningError, ValidationError
from httpsig_client.signing import VerificationStatus, verify_request

SECRET = b"top-secret"


class RecordingHandler(BaseHTTPRequestHandler):
    """Records each request and answers 200 with a small JSON body."""

    def _handle(self):
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length else b""
        self.server.received.append({
            "method": self.command,
            "path": self.path,
            "headers": dict(self.headers.items()),
            "body": body,
        })

        payload = json.dumps({"ok": True}).encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    do_GET = _handle
    do_POST = _handle
    do_PUT = _handle

    def log_message(self, format, *args):
        pass


@pytest.fixture
def server(monkeypatch):
    monkeypatch.setenv("NO_PROXY", "127.0.0.1,localhost")
    monkeypatch.setenv("no_proxy", "127.0.0.1,localhost")

    httpd = ThreadingHTTPServer(("127.0.0.1", 0), RecordingHandler)
    httpd.received = []
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    try:
        yield httpd
    finally:
        httpd.shutdown()
        httpd.server_close()
        thread.join(timeout=5)


def base_url(httpd):
    return f"http://127.0.0.1:{httpd.server_address[1]}"


def verify_received(httpd, received):
    return verify_request(
        received["method"],
        base_url(httpd) + received["path"],
        received["headers"],
        received["body"],
        lambda key_id: SECRET if key_id == "test-key" else None
    )


class TestSignedTargetMatchesWire:
    """Test the signed (request-target) is the one the server receives"""

    @pytest.mark.parametrize("path", [
        "/plain",
        "/a b",
        "/café",
        "/x?q=a b",
        "/search?q=ü&tag=a+b",
        "/already%20quoted?x=%C3%A9",
    ])
    def test_get(self, server, client_config, path):
        client = SignedRequestClient(client_config)
        outcome = client.execute("GET", base_url(server) + path)

        assert isinstance(outcome, Ok)
        received = server.received[-1]
        result = verify_received(server, received)
        assert result.valid, (result.reason, received["path"])

    def test_post_with_body(self, server, client_config):
        client = SignedRequestClient(client_config)
        outcome = client.execute(
            "POST", base_url(server) + "/in box?tag=é", payload=b'{"hello": "world"}'
        )

        assert isinstance(outcome, Ok)
        received = server.received[-1]
        assert received["path"] == "/in%20box?tag=%C3%A9"
        assert received["body"] == b'{"hello": "world"}'
        assert verify_received(server, received).valid

    def test_canonical_string_uses_encoded_target(self, server, client_config):
        client = SignedRequestClient(client_config)
        signed = client.prepare("GET", base_url(server) + "/café?q=a b")
        assert signed.canonical_string.splitlines()[0] == "(request-target): get /caf%C3%A9?q=a%20b"

    def test_tampered_path_is_rejected(self, server, client_config):
        client = SignedRequestClient(client_config)
        client.execute("GET", base_url(server) + "/a b")

        received = dict(server.received[-1], path="/a%20c")
        assert verify_received(server, received).reason == VerificationStatus.SIGNATURE_MISMATCH


class TestAuthorizationHeaderOnWire:
    """Test the signed Authorization header reaches the server unchanged"""

    def test_netrc_does_not_replace_signature(self, server, client_config, tmp_path, monkeypatch):
        netrc = tmp_path / "netrc"
        netrc.write_text("machine 127.0.0.1 login user password pass\n")
        monkeypatch.setenv("NETRC", str(netrc))

        config = client_config.with_overrides(signature_header="authorization")
        outcome = SignedRequestClient(config).execute("GET", base_url(server) + "/private")

        assert isinstance(outcome, Ok)
        received = server.received[-1]
        assert received["headers"]["Authorization"].startswith('Signature keyId="test-key"')
        assert verify_received(server, received).valid


class TestUnsendableValues:
    """Test values http.client cannot encode are rejected before sending"""

    def test_non_ascii_key_id(self, server):
        with pytest.raises(SigningError):
            SignedRequestClient(ClientConfig(key_id="clé-☃", secret=SECRET))
        assert server.received == []

    def test_non_latin1_header_value(self, server, client_config):
        client = SignedRequestClient(client_config)
        with pytest.raises(ValidationError):
            client.execute("GET", base_url(server) + "/", headers={"X-Note": "snow ☃"})
        assert server.received == []

    def test_latin1_header_value_is_sent(self, server, client_config):
        client = SignedRequestClient(client_config)
        outcome = client.execute("GET", base_url(server) + "/", headers={"X-Note": "café"})

        assert isinstance(outcome, Ok)
        assert verify_received(server, server.received[-1]).valid
