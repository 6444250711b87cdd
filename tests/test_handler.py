import base64
import json
import os
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest.mock import patch

import pytest
from google import genai

from glucolens.adapter import InferenceAdapter
from glucolens.handler import get_adapter, get_event_loop, handler
from glucolens.inference import GeminiInference
from glucolens.settings import Settings
from tests.conftest import TEST_KEY


class _GeminiReply(BaseHTTPRequestHandler):
    """Answers every generateContent call with the server's canned text, keeping the connection open."""

    protocol_version = "HTTP/1.1"

    def do_POST(self):
        self.rfile.read(int(self.headers.get("Content-Length", 0)))
        payload = {
            "candidates": [
                {
                    "content": {"role": "model", "parts": [{"text": self.server.reply_text}]},
                    "finishReason": "STOP",
                    "index": 0,
                }
            ]
        }
        data = json.dumps(payload).encode("utf-8")
        self.server.requests += 1
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def log_message(self, *args):
        pass


@pytest.fixture
def gemini_server():
    """Local HTTP/1.1 keep-alive server speaking the Gemini generateContent reply shape."""
    srv = ThreadingHTTPServer(("127.0.0.1", 0), _GeminiReply)
    srv.reply_text = ""
    srv.requests = 0
    srv.url = f"http://127.0.0.1:{srv.server_address[1]}/"
    thread = threading.Thread(target=srv.serve_forever, daemon=True)
    thread.start()
    yield srv
    srv.shutdown()
    srv.server_close()


def test_get_is_405(settings, make_stub):
    stub = make_stub()
    event = handler({"httpMethod": "GET", "body": None}, None, adapter=InferenceAdapter(settings, stub))
    assert event["statusCode"] == 405
    assert json.loads(event["body"]) == {"error": "Method Not Allowed"}
    assert stub.calls == []


def test_post_success(settings, make_stub, post_body, combined_payload):
    stub = make_stub(json.dumps(combined_payload))
    event = handler({"httpMethod": "POST", "body": post_body}, None, adapter=InferenceAdapter(settings, stub))
    assert event["statusCode"] == 200
    assert event["headers"]["Content-Type"] == "application/json"
    assert json.loads(event["body"]) == combined_payload


def test_base64_encoded_event_body(settings, make_stub, post_body, combined_payload):
    stub = make_stub(json.dumps(combined_payload))
    event = {
        "httpMethod": "POST",
        "body": base64.b64encode(post_body.encode("utf-8")).decode("ascii"),
        "isBase64Encoded": True,
    }
    assert handler(event, None, adapter=InferenceAdapter(settings, stub))["statusCode"] == 200


def test_undecodable_base64_event_body(settings, make_stub):
    stub = make_stub()
    event = {"httpMethod": "POST", "body": "%%%", "isBase64Encoded": True}
    res = handler(event, None, adapter=InferenceAdapter(settings, stub))
    assert res["statusCode"] == 400
    assert stub.calls == []


def test_http_api_v2_event_method(settings, make_stub):
    event = {"requestContext": {"http": {"method": "DELETE"}}, "body": "{}"}
    assert handler(event, None, adapter=InferenceAdapter(settings, make_stub()))["statusCode"] == 405


def test_missing_key_is_500(make_stub, post_body):
    with patch.dict(os.environ, {}, clear=True):
        adapter = InferenceAdapter(Settings(), make_stub())
    event = handler({"httpMethod": "POST", "body": post_body}, None, adapter=adapter)
    assert event["statusCode"] == 500
    assert set(json.loads(event["body"])) == {"error"}


def test_default_adapter_is_shared(env):
    assert get_adapter() is get_adapter()
    get_adapter.cache_clear()


def test_null_request_context(settings, make_stub):
    event = {"requestContext": None, "body": "{}"}
    assert handler(event, None, adapter=InferenceAdapter(settings, make_stub()))["statusCode"] == 405


def test_warm_invocations_reuse_one_gemini_client(settings, gemini_server, post_body, combined_payload):
    gemini_server.reply_text = json.dumps(combined_payload)
    client = genai.Client(api_key=TEST_KEY, http_options={"base_url": gemini_server.url})
    adapter = InferenceAdapter(settings, GeminiInference(api_key=TEST_KEY, model="gemini-test", client=client))

    events = [handler({"httpMethod": "POST", "body": post_body}, None, adapter=adapter) for _ in range(3)]

    assert [e["statusCode"] for e in events] == [200, 200, 200]
    assert all(json.loads(e["body"]) == combined_payload for e in events)
    assert gemini_server.requests == 3


def test_event_loop_is_shared():
    assert get_event_loop() is get_event_loop()
    assert not get_event_loop().is_closed()
