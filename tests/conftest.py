from __future__ import annotations

import logging

import pytest

from mdx_codegen.config import _ENV_FIELDS
from mdx_codegen.llm.base import ModelClient
from mdx_codegen.models.generation import GenerationRequest


class ScriptedClient(ModelClient):
    """Completion client replaying a fixed list of outcomes.

    Each entry is either response text or an exception instance to raise.
    The last entry repeats once the script runs out.
    """

    def __init__(self, script: list[object], log: logging.Logger | None = None) -> None:
        self.sleeps: list[float] = []
        super().__init__(sleep=self.sleeps.append, log=log)
        self.script = list(script)
        self.requests: list[GenerationRequest] = []
        self.timeouts: list[float] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    def send(self, request: GenerationRequest, timeout: float) -> str:
        self.requests.append(request)
        self.timeouts.append(timeout)
        index = min(len(self.requests), len(self.script)) - 1
        outcome = self.script[index]
        if isinstance(outcome, BaseException):
            raise outcome
        return str(outcome)


@pytest.fixture
def log() -> logging.Logger:
    logger = logging.getLogger("tests.mdx_codegen")
    logger.setLevel(logging.DEBUG)
    return logger


@pytest.fixture
def request_obj() -> GenerationRequest:
    return GenerationRequest(model="gemini-test", system_instruction="sys", user_content="Build it")


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path):
    for env_name in _ENV_FIELDS.values():
        monkeypatch.delenv(env_name, raising=False)
    monkeypatch.setenv("GEMINI_API_KEY_FILE", str(tmp_path / "no-such-key"))
    return monkeypatch
