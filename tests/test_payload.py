"""
Tests for payload resolution
"""

import io

import pytest

from httpsig_client.exceptions import PayloadTooLargeError, ValidationError
from httpsig_client.payload import iter_chunks, read_payload, read_stream


class TestReadPayload:
    """Test literal, file and stdin payload sources"""

    @pytest.mark.parametrize("source", [None, ""])
    def test_no_body(self, source):
        assert read_payload(source) == b""

    def test_literal(self):
        assert read_payload('{"name": "café"}') == '{"name": "café"}'.encode('utf-8')

    def test_file(self, tmp_path):
        path = tmp_path / "body.bin"
        path.write_bytes(b"\x00\x01binary\xff")
        assert read_payload(f"@{path}") == b"\x00\x01binary\xff"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValidationError) as exc_info:
            read_payload(f"@{tmp_path / 'missing'}")
        assert exc_info.value.error_code == "PAYLOAD_FILE_ERROR"

    def test_stdin(self):
        assert read_payload("@-", stdin=io.BytesIO(b"from stdin")) == b"from stdin"

    def test_literal_too_large(self):
        with pytest.raises(PayloadTooLargeError) as exc_info:
            read_payload("12345", max_bytes=4)
        assert exc_info.value.limit == 4

    def test_file_too_large(self, tmp_path):
        path = tmp_path / "big"
        path.write_bytes(b"x" * 100)
        with pytest.raises(PayloadTooLargeError):
            read_payload(f"@{path}", max_bytes=99)

    def test_exact_limit(self):
        assert read_payload("@-", stdin=io.BytesIO(b"x" * 10), max_bytes=10) == b"x" * 10


class TestChunkedReads:
    """Test bounded chunked reading"""

    def test_chunks(self):
        chunks = list(iter_chunks(io.BytesIO(b"abcdefghij"), chunk_size=4, max_bytes=100))
        assert chunks == [b"abcd", b"efgh", b"ij"]

    def test_stops_one_byte_past_limit(self):
        """Test oversized streams are not read to the end"""
        stream = io.BytesIO(b"x" * 1000)
        with pytest.raises(PayloadTooLargeError) as exc_info:
            read_stream(stream, max_bytes=10)
        assert exc_info.value.details["read_bytes"] == 11
        assert stream.tell() == 11

    def test_empty_stream(self):
        assert read_stream(io.BytesIO(b"")) == b""
