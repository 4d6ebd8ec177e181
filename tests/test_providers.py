import httpx
import pytest

from gitwhisper.exceptions import ApiError, ErrorKind
from gitwhisper.providers import DRIVERS, create_driver, sanitize_api_key
from gitwhisper.providers.anthropic_driver import ClaudeDriver
from gitwhisper.providers.gemini_driver import GeminiDriver
from gitwhisper.providers.openai_driver import GitHubDriver, OpenAIDriver
from gitwhisper.variants import PROVIDER_NAMES, ModelSpec


class _Recorder:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def __call__(self, url, headers=None, json=None, params=None, timeout=None):
        self.calls.append(
            {
                "url": url,
                "headers": headers,
                "json": json,
                "params": params,
                "timeout": timeout,
            }
        )
        return self.response


def _patch_post(monkeypatch, response):
    recorder = _Recorder(response)
    monkeypatch.setattr(httpx, "post", recorder)
    return recorder


def test_registry_covers_every_provider():
    assert set(DRIVERS) == set(PROVIDER_NAMES)
    for name in PROVIDER_NAMES:
        driver = create_driver(ModelSpec(name, api_key="k"))
        assert driver.provider_name == name
        assert driver.variant == driver.default_variant


def test_sanitize_api_key_strips_non_printable_ascii():
    assert sanitize_api_key("  sk-abc​\n") == "sk-abc"
    assert sanitize_api_key("k\x00e\x7fy") == "key"
    assert sanitize_api_key(None) == ""


def test_openai_request_and_response(monkeypatch, make_response):
    recorder = _patch_post(
        monkeypatch,
        make_response(json_body={"choices": [{"message": {"content": "feat: ✨ X"}}]}),
    )
    driver = OpenAIDriver(ModelSpec("openai", "gpt-4o-mini", api_key="sk-1\n"))

    assert driver.send("prompt", 300, 0.1) == "feat: ✨ X"

    call = recorder.calls[0]
    assert call["url"] == "https://api.openai.com/v1/chat/completions"
    assert call["headers"]["Authorization"] == "Bearer sk-1"
    assert call["headers"]["Content-Type"] == "application/json"
    assert "User-Agent" in call["headers"]
    assert call["json"]["model"] == "gpt-4o-mini"
    assert call["json"]["messages"] == [{"role": "user", "content": "prompt"}]
    assert call["json"]["max_tokens"] == 300
    assert call["json"]["temperature"] == 0.1
    assert call["timeout"].read == 30.0
    assert call["timeout"].connect == 30.0


@pytest.mark.parametrize(
    "name, url",
    [
        ("grok", "https://api.x.ai/v1/chat/completions"),
        ("llama", "https://api.llama-api.com/chat/completions"),
        ("deepseek", "https://api.deepseek.com/v1/chat/completions"),
        ("github", "https://models.inference.ai.azure.com/chat/completions"),
    ],
)
def test_openai_compatible_endpoints(monkeypatch, make_response, name, url):
    recorder = _patch_post(
        monkeypatch,
        make_response(json_body={"choices": [{"message": {"content": "ok"}}]}),
    )
    assert create_driver(ModelSpec(name, api_key="k")).send("p", 10, 0.1) == "ok"
    assert recorder.calls[0]["url"] == url


def test_github_adds_deployment_header(monkeypatch, make_response):
    recorder = _patch_post(
        monkeypatch,
        make_response(json_body={"choices": [{"message": {"content": "ok"}}]}),
    )
    GitHubDriver(ModelSpec("github", "gpt-4o-mini", api_key="ghp")).send("p", 1, 0)
    headers = recorder.calls[0]["headers"]
    assert headers["azureml-model-deployment"] == "gpt-4o-mini"
    assert headers["Authorization"] == "Bearer ghp"


def test_claude_request_and_response(monkeypatch, make_response):
    recorder = _patch_post(
        monkeypatch,
        make_response(json_body={"content": [{"type": "text", "text": "fix: 🐛 Y"}]}),
    )
    driver = ClaudeDriver(ModelSpec("claude", api_key="anth"))

    assert driver.send("prompt", 300, 0.1) == "fix: 🐛 Y"

    call = recorder.calls[0]
    assert call["url"] == "https://api.anthropic.com/v1/messages"
    assert call["headers"]["x-api-key"] == "anth"
    assert call["headers"]["anthropic-version"] == "2023-06-01"
    assert "Authorization" not in call["headers"]
    assert call["json"]["model"] == "claude-3-5-sonnet-20241022"


def test_gemini_puts_key_in_query(monkeypatch, make_response):
    body = {"candidates": [{"content": {"parts": [{"text": "docs: 📚 Z"}]}}]}
    recorder = _patch_post(monkeypatch, make_response(json_body=body))
    driver = GeminiDriver(ModelSpec("gemini", "gemini-1.5-flash", api_key="gk"))

    assert driver.send("prompt", 8000, 0.2) == "docs: 📚 Z"

    call = recorder.calls[0]
    assert call["url"] == (
        "https://generativelanguage.googleapis.com/v1beta/models/"
        "gemini-1.5-flash:generateContent"
    )
    assert call["params"] == {"key": "gk"}
    assert "Authorization" not in call["headers"]
    assert call["json"]["contents"] == [{"parts": [{"text": "prompt"}]}]
    assert call["json"]["generationConfig"]["maxOutputTokens"] == 8000


def test_http_429_is_classified_as_rate_limit(monkeypatch, make_response):
    _patch_post(monkeypatch, make_response(429, text='{"error": "slow down"}'))
    driver = OpenAIDriver(ModelSpec("openai", api_key="k"))

    with pytest.raises(ApiError) as ei:
        driver.send("p", 1, 0)

    error = ei.value
    assert error.kind is ErrorKind.RATE_LIMIT
    assert error.status_code == 429
    assert error.retryable
    assert "openai" in error.user_message()


def test_http_401_is_authentication(monkeypatch, make_response):
    _patch_post(monkeypatch, make_response(401, text="invalid x-api-key"))
    with pytest.raises(ApiError) as ei:
        ClaudeDriver(ModelSpec("claude", api_key="bad")).send("p", 1, 0)
    assert ei.value.kind is ErrorKind.AUTHENTICATION
    assert not ei.value.retryable


@pytest.mark.parametrize(
    "name, body",
    [
        ("openai", {"choices": []}),
        ("openai", {"choices": [{"message": {}}]}),
        ("claude", {"content": []}),
        ("claude", {"content": [{"type": "text"}]}),
        ("gemini", {"candidates": []}),
        ("gemini", {"candidates": [{"content": {"parts": []}}]}),
        ("ollama", {"done": True}),
        ("ollama", {"error": "model not found"}),
    ],
)
def test_malformed_envelopes_raise(monkeypatch, make_response, name, body):
    _patch_post(monkeypatch, make_response(json_body=body))
    with pytest.raises(ApiError) as ei:
        create_driver(ModelSpec(name, api_key="k")).send("p", 1, 0)
    assert ei.value.provider_name == name


def test_empty_body_raises(monkeypatch, make_response):
    _patch_post(monkeypatch, make_response(200, text=""))
    with pytest.raises(ApiError) as ei:
        OpenAIDriver(ModelSpec("openai", api_key="k")).send("p", 1, 0)
    assert "Empty response body" in str(ei.value)


def test_invalid_json_raises(monkeypatch, make_response):
    _patch_post(monkeypatch, make_response(200, text="<html>oops</html>"))
    with pytest.raises(ApiError):
        OpenAIDriver(ModelSpec("openai", api_key="k")).send("p", 1, 0)


def test_transport_timeout_is_classified(monkeypatch):
    def fake_post(url, **kwargs):
        raise httpx.ReadTimeout("timed out", request=httpx.Request("POST", url))

    monkeypatch.setattr(httpx, "post", fake_post)
    with pytest.raises(ApiError) as ei:
        OpenAIDriver(ModelSpec("openai", api_key="k")).send("p", 1, 0)
    assert ei.value.kind is ErrorKind.TIMEOUT
    assert isinstance(ei.value.__cause__, httpx.ReadTimeout)


def test_custom_base_url_is_used_without_trailing_slash(monkeypatch, make_response):
    recorder = _patch_post(
        monkeypatch,
        make_response(json_body={"choices": [{"message": {"content": "ok"}}]}),
    )
    spec = ModelSpec("openai", api_key="k", base_url="https://proxy.local/v1/")
    OpenAIDriver(spec).send("p", 1, 0)
    assert recorder.calls[0]["url"] == "https://proxy.local/v1/chat/completions"


def test_model_spec_repr_masks_key():
    text = repr(ModelSpec("openai", api_key="sk-secret"))
    assert "sk-secret" not in text
    assert "***" in text
