"""Tests for the streaming multipart parser."""

import pytest

from minihttpd.core.multipart import (
    MultipartError,
    MultipartParser,
    ParserState,
    extract_boundary,
    parse_header_params,
)

BOUNDARY = "XyZ"


def _body(*segments: bytes) -> bytes:
    return b"".join(segments)


SIMPLE_BODY = _body(
    b"--XyZ\r\n",
    b'Content-Disposition: form-data; name="filename"\r\n\r\n',
    b"photo\r\n",
    b"--XyZ\r\n",
    b'Content-Disposition: form-data; name="file"; filename="a.png"\r\n',
    b"Content-Type: image/png\r\n\r\n",
    b"\x89PNG\r\n\x1a\n\x00payload",
    b"\r\n--XyZ--\r\n",
)


def _parse(body: bytes, chunk_size: int | None = None):
    parser = MultipartParser(BOUNDARY)
    if chunk_size is None:
        parser.feed(body)
    else:
        for start in range(0, len(body), chunk_size):
            parser.feed(body[start:start + chunk_size])
    return parser, parser.close()


# -----------------------------------------------------------------------------
# Header parameter Tests
# -----------------------------------------------------------------------------


class TestHeaderParams:
    """Tests for Content-Type / Content-Disposition parameter parsing."""

    def test_quoted_and_bare_params(self) -> None:
        token, params = parse_header_params('form-data; name="file"; filename=a.png')
        assert token == "form-data"
        assert params == {"name": "file", "filename": "a.png"}

    def test_quoted_value_with_semicolon(self) -> None:
        _, params = parse_header_params('form-data; name="a;b"')
        assert params["name"] == "a;b"

    @pytest.mark.parametrize(
        ("content_type", "expected"),
        [
            ("multipart/form-data; boundary=abc", "abc"),
            ('multipart/form-data; boundary="a b c"', "a b c"),
            ("Multipart/Form-Data; charset=utf-8; boundary=----x", "----x"),
            ("multipart/form-data", None),
            ("multipart/form-data; boundary=", None),
            ("text/plain; boundary=abc", None),
            (None, None),
        ],
    )
    def test_extract_boundary(self, content_type: str | None, expected: str | None) -> None:
        assert extract_boundary(content_type) == expected


# -----------------------------------------------------------------------------
# Parser Tests
# -----------------------------------------------------------------------------


class TestMultipartParser:
    """Tests for MultipartParser state machine."""

    def test_parses_text_and_file_parts(self) -> None:
        parser, parts = _parse(SIMPLE_BODY)

        assert parser.state is ParserState.DONE
        assert [part.name for part in parts] == ["filename", "file"]
        assert parts[0].filename is None
        assert parts[0].text == "photo"
        assert parts[1].filename == "a.png"
        assert parts[1].headers["content-type"] == "image/png"
        assert parts[1].data == b"\x89PNG\r\n\x1a\n\x00payload"

    @pytest.mark.parametrize("chunk_size", [1, 2, 3, 5, 7, 64])
    def test_any_chunk_split_gives_same_parts(self, chunk_size: int) -> None:
        """Verify results do not depend on how the input is chunked."""
        _, parts = _parse(SIMPLE_BODY, chunk_size)
        assert [(part.name, part.data) for part in parts] == [
            ("filename", b"photo"),
            ("file", b"\x89PNG\r\n\x1a\n\x00payload"),
        ]

    def test_boundary_like_bytes_inside_payload(self) -> None:
        """Verify near-delimiters inside binary data do not split the part."""
        payload = b"a--XyZ b\r\n--XyZextra\r\n--XyZ x\r\n--Xy"
        body = _body(
            b'--XyZ\r\nContent-Disposition: form-data; name="file"; filename="f"\r\n\r\n',
            payload,
            b"\r\n--XyZ--",
        )
        for chunk_size in (None, 1, 4):
            _, parts = _parse(body, chunk_size)
            assert len(parts) == 1
            assert parts[0].data == payload

    def test_preamble_and_epilogue_ignored(self) -> None:
        body = b"preamble text\r\n" + SIMPLE_BODY + b"epilogue --XyZ\r\n"
        _, parts = _parse(body)
        assert [part.name for part in parts] == ["filename", "file"]

    def test_transport_padding_after_delimiter(self) -> None:
        body = b'--XyZ  \t\r\nContent-Disposition: form-data; name="a"\r\n\r\nv\r\n--XyZ--'
        _, parts = _parse(body)
        assert parts[0].text == "v"

    def test_part_without_headers(self) -> None:
        _, parts = _parse(b"--XyZ\r\n\r\nbare\r\n--XyZ--")
        assert parts[0].name is None
        assert parts[0].data == b"bare"

    def test_empty_payload(self) -> None:
        _, parts = _parse(b'--XyZ\r\nContent-Disposition: form-data; name="file"; filename=""\r\n\r\n\r\n--XyZ--')
        assert parts[0].filename == ""
        assert parts[0].data == b""

    def test_truncated_part_is_dropped(self) -> None:
        """Verify a part cut off by end of input is not returned."""
        _, parts = _parse(SIMPLE_BODY[: SIMPLE_BODY.index(b"payload")])
        assert [part.name for part in parts] == ["filename"]

    def test_missing_close_delimiter_keeps_complete_parts(self) -> None:
        body = b'--XyZ\r\nContent-Disposition: form-data; name="a"\r\n\r\n1\r\n--XyZ\r\n'
        parser, parts = _parse(body)
        assert parser.state is ParserState.READING_PART_HEADERS
        assert [part.text for part in parts] == ["1"]

    def test_no_boundary_in_body(self) -> None:
        _, parts = _parse(b"no delimiters here at all")
        assert parts == []

    def test_oversized_header_block_raises(self) -> None:
        parser = MultipartParser(BOUNDARY)
        with pytest.raises(MultipartError):
            parser.feed(b"--XyZ\r\nX-Big: " + b"a" * (17 * 1024))

    def test_empty_boundary_rejected(self) -> None:
        with pytest.raises(MultipartError):
            MultipartParser("")

    def test_feed_after_done_is_ignored(self) -> None:
        parser, _ = _parse(SIMPLE_BODY)
        parser.feed(b"--XyZ\r\n\r\nmore\r\n--XyZ--")
        assert len(parser.parts) == 2
