from types import SimpleNamespace

import pytest
import requests

from config.settings import Config
from src.ai_agent import llm_client as llm_module
from src.ai_agent.llm_client import LLMClient, parse_embedded_json, parse_fenced_json, strip_code_fences
from src.ai_agent.mock_llm_client import MockLLMClient
from src.ai_agent.resolver_chain import Resolver, ResolverChain
from utils.errors import OracleUnavailableError


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.kwargs = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_openai(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('{"a": 1}') == '{"a": 1}'


def test_parse_fenced_json():
    assert parse_fenced_json('```json\n{"intent": "query"}\n```') == {"intent": "query"}
    assert parse_fenced_json("not json") is None
    assert parse_fenced_json("[1, 2]") is None
    assert parse_fenced_json("") is None


def test_parse_embedded_json():
    assert parse_embedded_json('Result: {"a": {"b": 2}} done') == {"a": {"b": 2}}
    assert parse_embedded_json("no braces") is None
    assert parse_embedded_json("} backwards {") is None
    assert parse_embedded_json("{not: json}") is None


def test_complete_chat_returns_content():
    completions = FakeCompletions(content='{"intent": "query"}')
    client = LLMClient("test-model", client=fake_openai(completions))

    content = client.complete_chat([{"role": "user", "content": "hi"}], temperature=0.3, max_tokens=50)

    assert content == '{"intent": "query"}'
    assert completions.kwargs == {
        "model": "test-model",
        "messages": [{"role": "user", "content": "hi"}],
        "temperature": 0.3,
        "max_tokens": 50,
    }


def test_complete_chat_wraps_transport_errors():
    client = LLMClient(client=fake_openai(FakeCompletions(error=TimeoutError("read timed out"))))
    with pytest.raises(OracleUnavailableError) as excinfo:
        client.complete_chat([{"role": "user", "content": "hi"}])
    assert excinfo.value.status_code == 503


@pytest.mark.parametrize("content", [None, "", "   "])
def test_complete_chat_rejects_empty_content(content):
    client = LLMClient(client=fake_openai(FakeCompletions(content=content)))
    with pytest.raises(OracleUnavailableError):
        client.complete_chat([{"role": "user", "content": "hi"}])


def test_check_availability(monkeypatch):
    seen = {}

    def fake_get(url, timeout, headers):
        seen["url"] = url
        return SimpleNamespace(status_code=200)

    monkeypatch.setattr(llm_module.requests, "get", fake_get)
    client = LLMClient(client=fake_openai(FakeCompletions()))
    assert client.check_availability() is True
    assert seen["url"] == f"{Config.LLM_BASE_URL}/models"


def test_check_availability_on_connection_error(monkeypatch):
    def fake_get(url, timeout, headers):
        raise requests.exceptions.ConnectionError("refused")

    monkeypatch.setattr(llm_module.requests, "get", fake_get)
    client = LLMClient(client=fake_openai(FakeCompletions()))
    assert client.check_availability() is False


def test_model_config_defaults():
    config = Config.get_model_config()
    assert config["model"] == Config.DEFAULT_MODEL
    assert config["max_retries"] == 0
    assert Config.get_model_config("other")["model"] == "other"


def test_mock_client_replays_script():
    oracle = MockLLMClient(["first", ValueError("boom")])
    assert oracle.check_availability() is True
    assert oracle.complete_chat([{"role": "user", "content": "a"}]) == "first"
    with pytest.raises(ValueError):
        oracle.complete_chat([{"role": "user", "content": "b"}])
    with pytest.raises(OracleUnavailableError):
        oracle.complete_chat([{"role": "user", "content": "c"}])
    assert len(oracle.calls) == 3
    assert oracle.check_availability() is False


class Fixed(Resolver):
    def __init__(self, name, result=None, error=None):
        self.name = name
        self.result = result
        self.error = error
        self.called = False

    def resolve(self, text, **kwargs):
        self.called = True
        if self.error:
            raise self.error
        return self.result


def test_chain_uses_first_answer():
    second = Fixed("second", "rules")
    assert ResolverChain([Fixed("first", "oracle"), second]).resolve("x") == "oracle"
    assert second.called is False


def test_chain_skips_declines_and_errors():
    chain = ResolverChain([
        Fixed("declines"),
        Fixed("fails", error=OracleUnavailableError("down")),
        Fixed("final", "rules"),
    ])
    assert chain.resolve("x") == "rules"


def test_chain_final_resolver_errors_propagate():
    chain = ResolverChain([Fixed("final", error=KeyError("bug"))])
    with pytest.raises(KeyError):
        chain.resolve("x")


def test_chain_needs_a_resolver():
    with pytest.raises(ValueError):
        ResolverChain([])
