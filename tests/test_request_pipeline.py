import email
import email.policy
import json

import httpx
import pytest

from clicksign_python import (
    ConfigurationError,
    DecodedBody,
    Environment,
    QueryParam,
    RawBody,
    RawPayload,
)
from clicksign_python.utils import (
    build_query_params,
    build_query_string,
    build_url,
    mask_token,
    normalize_path,
)


def parse_multipart(request):
    """Splits a multipart request body into (field name, part) pairs."""
    raw = b"Content-Type: " + request.headers["Content-Type"].encode() + b"\r\n\r\n" + request.content
    message = email.message_from_bytes(raw, policy=email.policy.default)
    assert message.is_multipart()
    return [(part.get_param("name", header="content-disposition"), part) for part in message.iter_parts()]


class TestUrlBuilding:

    @pytest.mark.parametrize("path, expected", [
        ("documents", "/documents"),
        ("/documents", "/documents"),
        ("documents/abc/finish", "/documents/abc/finish"),
        ("", "/"),
    ])
    def test_normalize_path(self, path, expected):
        assert normalize_path(path) == expected

    def test_caller_access_token_is_replaced(self):
        params = build_query_params(
            [QueryParam("access_token", "evil"), QueryParam("page", "2"), ("access_token", "other")],
            "configured",
        )
        tokens = [p for p in params if p.name == "access_token"]
        assert tokens == [QueryParam("access_token", "configured")]
        assert QueryParam("page", "2") in params

    def test_empty_names_and_values_are_skipped(self):
        query = build_query_string([
            QueryParam("", "x"),
            QueryParam("empty", ""),
            QueryParam("none", None),
            QueryParam("kept", "yes"),
        ])
        assert query == "kept=yes"

    def test_pairs_are_url_encoded(self):
        query = build_query_string([QueryParam("q name", "a&b=c"), QueryParam("mail", "x@y.com")])
        assert query == "q+name=a%26b%3Dc&mail=x%40y.com"

    def test_params_accept_mapping_and_name_value_dicts(self):
        assert build_url("https://h/api", "docs", {"page": "1"}, "t") == "https://h/api/docs?page=1&access_token=t"
        assert build_url("https://h/api", "docs", [{"name": "page", "value": "3"}], "t") == \
            "https://h/api/docs?page=3&access_token=t"

    def test_question_mark_omitted_without_params(self):
        assert build_url("https://h/api", "/docs", None, "") == "https://h/api/docs"

    def test_mask_token_only_touches_access_token_value(self):
        url = "https://app.clicksign.com/api/v1/documents?page=api&access_token=api"
        assert mask_token(url) == "https://app.clicksign.com/api/v1/documents?page=api&access_token=***"
        assert mask_token("https://app.clicksign.com/api/v1/documents") == \
            "https://app.clicksign.com/api/v1/documents"


class TestSyncPipeline:

    def test_production_url_and_auth(self, make_client):
        client, handler = make_client()
        client.get("documents")
        assert str(handler.last.url) == "https://app.clicksign.com/api/v1/documents?access_token=tok_123"

    def test_environment_switch_applies_to_next_request(self, make_client):
        client, handler = make_client()
        client.set_environment(Environment.SANDBOX)
        client.get("/documents")
        assert handler.last.url.host == "sandbox.clicksign.com"
        client.set_environment("nowhere")
        client.get("/documents")
        assert handler.last.url.host == "sandbox.clicksign.com"

    def test_single_access_token_in_request(self, make_client):
        client, handler = make_client()
        client.get("documents", params=[("access_token", "caller"), ("page", "2")])
        assert handler.last.url.params.get_list("access_token") == ["tok_123"]
        assert handler.last.url.params["page"] == "2"

    def test_empty_token_leaves_no_query(self, make_client):
        client, handler = make_client(token="")
        client.get("documents")
        assert str(handler.last.url) == "https://app.clicksign.com/api/v1/documents"

    def test_json_headers_and_body(self, make_client):
        client, handler = make_client()
        client.post("signers", {"signer": {"email": "a@b.com"}})
        request = handler.last
        assert request.method == "POST"
        assert request.headers["Accept"] == "application/json"
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {"signer": {"email": "a@b.com"}}

    def test_extra_headers_are_appended(self, make_client):
        client, handler = make_client()
        client.get("documents", headers=[("X-Trace", "1"), ("Accept", "text/plain")])
        request = handler.last
        assert request.headers["X-Trace"] == "1"
        assert request.headers.get_list("Accept") == ["application/json", "text/plain"]

    @pytest.mark.parametrize("verb, method", [("put", "PUT"), ("patch", "PATCH")])
    def test_body_verbs_serialize_json(self, make_client, verb, method):
        client, handler = make_client()
        getattr(client, verb)("documents/k", {"a": 1})
        assert handler.last.method == method
        assert handler.last_json() == {"a": 1}

    @pytest.mark.parametrize("verb, method", [("get", "GET"), ("delete", "DELETE"), ("options", "OPTIONS")])
    def test_bodyless_verbs(self, make_client, verb, method):
        client, handler = make_client()
        getattr(client, verb)("documents/k")
        assert handler.last.method == method
        assert handler.last.content == b""

    def test_options_sends_only_caller_headers(self, make_client):
        client, handler = make_client()
        client.options("documents", headers={"X-Trace-Id": "yes"})
        assert "Content-Type" not in handler.last.headers
        assert handler.last.headers["X-Trace-Id"] == "yes"

    def test_upload_mode_passes_body_through(self, make_client):
        client, handler = make_client(upload=True)
        body = b"--boundary\r\ncontent\r\n--boundary--"
        client.post("documents", body)
        assert handler.last.content == body
        assert handler.last.headers["Content-Type"] == "multipart/form-data"

        client.post("documents", RawPayload(b"raw"))
        assert handler.last.content == b"raw"

    def test_raw_payload_content_type_replaces_default(self, make_client):
        client, handler = make_client(upload=True)
        client.post("documents", RawPayload(b"--xyz--\r\n", content_type="multipart/form-data; boundary=xyz"))
        assert handler.last.headers.get_list("Content-Type") == ["multipart/form-data; boundary=xyz"]

    def test_upload_mode_encodes_mapping_as_multipart(self, make_client):
        client, handler = make_client(status_code=201, json_body={"document": {"key": "doc_1"}}, upload=True)
        response = client.create_document({
            "document": {
                "path": "/contracts/nda.pdf",
                "file": ("nda.pdf", b"%PDF-1.4 content", "application/pdf"),
            }
        })
        assert response.http_code == 201

        content_types = handler.last.headers.get_list("Content-Type")
        assert len(content_types) == 1
        assert content_types[0].startswith("multipart/form-data; boundary=")

        parts = parse_multipart(handler.last)
        assert [name for name, _ in parts] == ["document[path]", "document[file]"]
        path_part, file_part = parts[0][1], parts[1][1]
        assert path_part.get_payload(decode=True) == b"/contracts/nda.pdf"
        assert file_part.get_filename() == "nda.pdf"
        assert file_part.get_content_type() == "application/pdf"
        assert file_part.get_payload(decode=True) == b"%PDF-1.4 content"

    def test_upload_mode_text_only_mapping_stays_multipart(self, make_client):
        client, handler = make_client(upload=True)
        client.create_signer({"signer": {"email": "ana@example.com", "auths": ["email", "sms"], "has_documentation": False}})

        assert handler.last.headers["Content-Type"].startswith("multipart/form-data; boundary=")
        fields = [(name, part.get_payload(decode=True)) for name, part in parse_multipart(handler.last)]
        assert fields == [
            ("signer[email]", b"ana@example.com"),
            ("signer[auths][]", b"email"),
            ("signer[auths][]", b"sms"),
            ("signer[has_documentation]", b"false"),
        ]

    def test_upload_mode_rejects_unsupported_body(self, make_client):
        client, handler = make_client(upload=True)
        with pytest.raises(ConfigurationError):
            client.post("documents", ["not", "a", "form"])
        assert handler.requests == []


class TestResponseNormalization:

    def test_decoded_body(self, make_client):
        client, _ = make_client(status_code=201, json_body={"key": "doc_1"})
        response = client.post("documents", {})
        assert response.body == DecodedBody({"key": "doc_1"})
        assert response.http_code == 201
        assert response.info is None

    def test_raw_body_when_decode_off_and_200(self, make_client):
        client, _ = make_client(text='{"key": "doc_1"}', decode=False)
        response = client.get("documents/doc_1")
        assert response.body == RawBody('{"key": "doc_1"}')
        assert response.data == '{"key": "doc_1"}'

    def test_decode_off_still_decodes_non_200(self, make_client):
        client, _ = make_client(status_code=201, json_body={"key": "doc_1"}, decode=False)
        response = client.post("documents", {})
        assert response.body == DecodedBody({"key": "doc_1"})

    def test_invalid_json_decodes_to_none(self, make_client):
        client, _ = make_client(status_code=502, text="<html>Bad gateway</html>")
        response = client.get("documents")
        assert response.body == DecodedBody(None)
        assert response.http_code == 502

    def test_debug_info_attached(self, make_client):
        client, _ = make_client(json_body={"ok": True}, debug=True)
        response = client.get("documents")
        assert response.info["http_code"] == 200
        assert response.info["method"] == "GET"
        assert response.info["url"] == "https://app.clicksign.com/api/v1/documents?access_token=***"
        assert "response_headers" in response.info

    def test_debug_url_keeps_path_when_token_is_short(self, make_client):
        client, _ = make_client(token="api", debug=True)
        response = client.get("documents")
        assert response.info["url"] == "https://app.clicksign.com/api/v1/documents?access_token=***"

    def test_response_is_immutable(self, make_client):
        client, _ = make_client()
        response = client.get("documents")
        with pytest.raises(AttributeError):
            response.http_code = 500


class TestTransportErrors:

    def test_request_errors_propagate_unchanged(self):
        from clicksign_python import SyncClient

        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        with SyncClient(token="t", transport=httpx.MockTransport(refuse)) as client:
            with pytest.raises(httpx.ConnectError):
                client.get("documents")
