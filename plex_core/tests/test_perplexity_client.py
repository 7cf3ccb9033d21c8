import httpx
import pytest

from plex_core.domain.exceptions import ApiError, NetworkError, RateLimitError, ValidationError
from plex_core.domain.models import ChatRequest, Message
from plex_core.providers.perplexity_client import PerplexityClient


class SettingsStub:
    perplexity_api_token = "pplx-test-token"
    perplexity_base_url = "https://api.perplexity.ai"
    http_timeout = 1.0
    max_event_bytes = 65536


def _req(max_tokens=None):
    return ChatRequest(model="sonar", messages=[Message(role="user", content="hi")], max_tokens=max_tokens)


class FakeResponse:
    def __init__(self, status_code, chunks=()):
        self.status_code = status_code
        self._chunks = list(chunks)

    def iter_bytes(self):
        for chunk in self._chunks:
            yield chunk


class StreamContext:
    def __init__(self, response):
        self._response = response

    def __enter__(self):
        return self._response

    def __exit__(self, *args):
        return False


def _fake_client(response, captured=None, error=None):
    class Client:
        def __init__(self, *a, **kw):
            if captured is not None:
                captured["client_kwargs"] = kw

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def post(self, *a, **kw):
            raise AssertionError("post should not be called in stream test")

        def stream(self, method, url, **kw):
            if error:
                raise error
            if captured is not None:
                captured.update(method=method, url=url, **kw)
            return StreamContext(response)

    return Client


def test_open_stream_sends_request_and_yields_frames(monkeypatch):
    captured = {}
    chunks = [b'data: {"choices":[{"delta":{"content":"a"}}]}\n\ndata: [DO', b"NE]\n\n"]
    monkeypatch.setattr("httpx.Client", _fake_client(FakeResponse(200, chunks), captured))

    with PerplexityClient(SettingsStub()).open_stream(_req(max_tokens=64)) as reader:
        frames = [reader.read_event(), reader.read_event(), reader.read_event()]

    assert frames == [b'data: {"choices":[{"delta":{"content":"a"}}]}', b"data: [DONE]", None]
    assert captured["method"] == "POST"
    assert captured["url"] == "https://api.perplexity.ai/chat/completions"
    assert captured["headers"]["Authorization"] == "Bearer pplx-test-token"
    assert captured["headers"]["Accept"] == "text/event-stream"
    assert captured["json"] == {
        "model": "sonar",
        "messages": [{"role": "user", "content": "hi"}],
        "stream": True,
        "max_tokens": 64,
    }


def test_open_stream_non_200_is_api_error(monkeypatch):
    monkeypatch.setattr("httpx.Client", _fake_client(FakeResponse(401)))
    with pytest.raises(ApiError) as exc:
        with PerplexityClient(SettingsStub()).open_stream(_req()):
            pass
    assert exc.value.http_status == 401


def test_open_stream_rate_limit(monkeypatch):
    monkeypatch.setattr("httpx.Client", _fake_client(FakeResponse(429)))
    with pytest.raises(RateLimitError):
        with PerplexityClient(SettingsStub()).open_stream(_req()):
            pass


def test_open_stream_network_error(monkeypatch):
    monkeypatch.setattr("httpx.Client", _fake_client(None, error=httpx.ConnectError("refused")))
    with pytest.raises(NetworkError):
        with PerplexityClient(SettingsStub()).open_stream(_req()):
            pass


def test_open_stream_requires_token():
    class NoToken(SettingsStub):
        perplexity_api_token = None

    with pytest.raises(ValidationError):
        with PerplexityClient(NoToken()).open_stream(_req()):
            pass


def test_open_stream_rejects_unknown_model(monkeypatch):
    def no_client(*a, **kw):
        raise AssertionError("no request should be sent for an unknown model")

    monkeypatch.setattr("httpx.Client", no_client)
    req = ChatRequest(model="gpt-4o", messages=[Message(role="user", content="hi")])
    with pytest.raises(ValidationError) as exc:
        with PerplexityClient(SettingsStub()).open_stream(req):
            pass
    assert exc.value.code == "UNKNOWN_MODEL"
