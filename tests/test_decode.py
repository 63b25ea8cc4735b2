import base64

import pytest

from adapters.decode import extract_and_decode, extract_payload
from core.domain.errors import DecodeError


class TestExtractPayload:
    """Pruebas de la búsqueda de marcadores <reportBytes>"""

    def test_payload_between_markers(self):
        assert extract_payload(b"x<reportBytes>abc</reportBytes>y") == b"abc"

    def test_missing_open_marker(self):
        assert extract_payload(b"<other>abc</other>") is None

    def test_missing_close_marker(self):
        assert extract_payload(b"<reportBytes>abc") is None

    def test_close_before_open_is_ignored(self):
        assert extract_payload(b"</reportBytes>x<reportBytes>aGk=") is None

    def test_first_occurrences_are_used(self):
        raw = b"<reportBytes>AAAA</reportBytes><reportBytes>BBBB</reportBytes>"
        assert extract_payload(raw) == b"AAAA"


class TestExtractAndDecode:
    """Pruebas de la etapa de decode base64"""

    def test_decodes_report_bytes(self):
        assert extract_and_decode(b"<reportBytes>aGVsbG8=</reportBytes>") == b"hello"

    def test_decodes_inside_soap_envelope_with_line_breaks(self):
        payload = base64.b64encode(b"<a><b>report</b></a>" * 10)
        wrapped = b"\r\n".join(payload[i : i + 76] for i in range(0, len(payload), 76))
        raw = (
            b"<soap:Envelope><soap:Body><GetReportResponse><reportBytes>"
            + wrapped
            + b"</reportBytes></GetReportResponse></soap:Body></soap:Envelope>"
        )
        assert extract_and_decode(raw) == b"<a><b>report</b></a>" * 10

    @pytest.mark.parametrize(
        "raw",
        [
            b"",
            b"plain body",
            b"<r><other>aGVsbG8=</other></r>",
            b"<reportBytes>aGVsbG8=",
            b"</reportBytes><reportBytes>aGVsbG8=",
        ],
    )
    def test_passthrough_without_usable_markers(self, raw):
        assert extract_and_decode(raw) == raw

    def test_empty_payload(self):
        assert extract_and_decode(b"<reportBytes></reportBytes>") == b""

    def test_invalid_payload_raises_with_raw_and_partial(self):
        raw = b"<reportBytes>aGVsbG8gd29ybGQ*</reportBytes>"
        with pytest.raises(DecodeError) as exc_info:
            extract_and_decode(raw)
        err = exc_info.value
        assert str(err).startswith("decode: ")
        assert err.raw == raw
        assert err.partial == b"hello wor"

    def test_bad_padding_raises(self):
        with pytest.raises(DecodeError):
            extract_and_decode(b"<reportBytes>aGVsbG8</reportBytes>")
