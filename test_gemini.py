"""Tests for the Gemini client's parsing and error mapping (no network)."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from mnemo.engine.errors import GenerationError
from mnemo.utils.gemini import GeminiClient, parse_mnemonic


def response(status, payload):
    mock = MagicMock()
    mock.status_code = status
    mock.json.return_value = payload
    mock.text = str(payload)
    return mock


def text_payload(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


@pytest.fixture
def client():
    return GeminiClient("test-key", text_model="gemini-2.5-flash")


def test_parse_mnemonic_skips_blank_lines():
    fields = parse_mnemonic("Kitap\n\nكتاب (Kitab)\nKİTABE\nKitap kitabeye yaslanmış.\n")
    assert fields == {
        "meaning": "Kitap",
        "word": "كتاب (Kitab)",
        "keyword": "KİTABE",
        "story": "Kitap kitabeye yaslanmış.",
    }


def test_parse_mnemonic_rejects_short_answers():
    with pytest.raises(GenerationError) as exc:
        parse_mnemonic("Kitap\nكتاب")
    assert exc.value.kind == "format"


def test_generate_posts_to_text_model(client):
    with patch("mnemo.utils.gemini.requests.post",
               return_value=response(200, text_payload("Kalem\nقلم (Kalam)\nKALAMAR\nKalamar kalem tutuyor."))) as post:
        fields = client.generate("kalem")

    assert fields["keyword"] == "KALAMAR"
    url = post.call_args[0][0]
    assert url.endswith("/gemini-2.5-flash:generateContent")
    assert post.call_args[1]["params"] == {"key": "test-key"}


def test_short_answer_is_format_error(client):
    with patch("mnemo.utils.gemini.requests.post", return_value=response(200, text_payload("only one line"))):
        with pytest.raises(GenerationError) as exc:
            client.generate("x")
    assert exc.value.kind == "format"


@pytest.mark.parametrize("status,payload,kind", [
    (429, {"error": {"message": "Too many requests"}}, "quota"),
    (400, {"error": {"status": "RESOURCE_EXHAUSTED", "message": "quota"}}, "quota"),
    (503, {"error": {"message": "overloaded"}}, "unavailable"),
    (500, {}, "unavailable"),
    (403, {"error": {"message": "API key not valid"}}, "other"),
])
def test_http_errors_are_mapped(client, status, payload, kind):
    with patch("mnemo.utils.gemini.requests.post", return_value=response(status, payload)):
        with pytest.raises(GenerationError) as exc:
            client.generate("x")
    assert exc.value.kind == kind
    assert exc.value.status == status


def test_missing_key_never_calls_api():
    with patch("mnemo.utils.gemini.requests.post") as post:
        with pytest.raises(GenerationError) as exc:
            GeminiClient(None).generate("x")
    assert exc.value.kind == "missing_key"
    post.assert_not_called()


def test_network_failure(client):
    with patch("mnemo.utils.gemini.requests.post", side_effect=requests.exceptions.ConnectionError("down")):
        with pytest.raises(GenerationError) as exc:
            client.generate("x")
    assert exc.value.kind == "network"


def test_imagen_returns_data_uri():
    client = GeminiClient("k", image_model="imagen-4.0-generate-001")
    payload = {"predictions": [{"bytesBase64Encoded": "aGVsbG8=", "mimeType": "image/jpeg"}]}
    with patch("mnemo.utils.gemini.requests.post", return_value=response(200, payload)) as post:
        uri = client.generate_image("a squid holding a pen")
    assert uri == "data:image/jpeg;base64,aGVsbG8="
    assert post.call_args[0][0].endswith(":predict")


def test_gemini_image_model_reads_inline_data():
    client = GeminiClient("k", image_model="gemini-2.5-flash-image")
    payload = {"candidates": [{"content": {"parts": [{"text": "here"}, {"inlineData": {"mimeType": "image/png", "data": "eA=="}}]}}]}
    with patch("mnemo.utils.gemini.requests.post", return_value=response(200, payload)):
        assert client.generate_image("p") == "data:image/png;base64,eA=="


def test_image_without_data_is_error():
    client = GeminiClient("k")
    with patch("mnemo.utils.gemini.requests.post", return_value=response(200, {"predictions": []})):
        with pytest.raises(GenerationError):
            client.generate_image("p")


def test_non_object_body_is_format_error(client):
    with patch("mnemo.utils.gemini.requests.post", return_value=response(200, [])):
        with pytest.raises(GenerationError) as exc:
            client.generate("x")
    assert exc.value.kind == "format"
