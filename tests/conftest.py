from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from conversation.errors import MediaLoadError  # noqa: E402
from llm.base import BaseLLMClient  # noqa: E402
from speech.interfaces import RecognitionEvent, RecognitionKind  # noqa: E402


class FakeSpeechEngine:
    """Recognition engine driven by the test; refuses a second concurrent start."""

    def __init__(self, *, supported: bool = True, fail_start: bool = False) -> None:
        self.supported = supported
        self.fail_start = fail_start
        self.language: str | None = None
        self.running = False
        self.start_calls = 0
        self.stop_calls = 0
        self.abort_calls = 0
        self.callbacks: list = []

    def is_supported(self) -> bool:
        return self.supported

    def set_language(self, language: str) -> None:
        self.language = language

    def start(self, on_event) -> None:
        if self.fail_start:
            raise RuntimeError("microphone busy")
        if self.running:
            raise RuntimeError("recognition already started")
        self.start_calls += 1
        self.running = True
        self.callbacks.append(on_event)

    def stop(self) -> None:
        self.stop_calls += 1
        self.running = False

    def abort(self) -> None:
        self.abort_calls += 1
        self.running = False

    def _emit(self, event: RecognitionEvent) -> None:
        self.callbacks[-1](event)

    def emit_interim(self, text: str) -> None:
        self._emit(RecognitionEvent(RecognitionKind.INTERIM, text=text))

    def emit_final(self, text: str) -> None:
        self._emit(RecognitionEvent(RecognitionKind.FINAL, text=text))

    def emit_error(self, code: str) -> None:
        self._emit(RecognitionEvent(RecognitionKind.ERROR, code=code))

    def emit_end(self) -> None:
        self.running = False
        self._emit(RecognitionEvent(RecognitionKind.END))


class FakePlaybackElement:
    """Video element stand-in with a controllable ready signal."""

    def __init__(self, name: str, *, auto_ready: bool = True, fail: bool = False) -> None:
        self.name = name
        self.auto_ready = auto_ready
        self.fail = fail
        self.on_ended = None
        self.url: str | None = None
        self.loop: bool | None = None
        self.visible = False
        self.loads: list[str] = []
        self.play_calls = 0
        self.rewind_calls = 0
        self._paused = True
        self._ready = asyncio.Event()

    @property
    def paused(self) -> bool:
        return self._paused

    def load_source(self, url: str, *, loop: bool) -> None:
        self.url = url
        self.loop = loop
        self.loads.append(url)
        self._paused = True
        self._ready = asyncio.Event()

    def release(self) -> None:
        self._ready.set()

    async def wait_until_ready(self) -> None:
        if not self.auto_ready:
            await self._ready.wait()
        if self.fail:
            raise MediaLoadError(f"{self.url} not found")

    async def play(self) -> None:
        self.play_calls += 1
        self._paused = False

    def pause(self) -> None:
        self._paused = True

    def rewind(self) -> None:
        self.rewind_calls += 1

    def set_visible(self, visible: bool) -> None:
        self.visible = visible

    def finish(self) -> None:
        self._paused = True
        if self.on_ended is not None:
            self.on_ended()


class FakeLLM(BaseLLMClient):
    def __init__(self, *, chat_response: str = "", fail: bool = False) -> None:
        self._chat_response = chat_response
        self._fail = fail
        self.calls: list[dict] = []

    async def chat(self, messages, *, temperature=0.0, json_mode=False, max_tokens=150) -> str:
        self.calls.append(
            {"messages": list(messages), "temperature": temperature, "json_mode": json_mode}
        )
        if self._fail:
            raise RuntimeError("upstream unavailable")
        return self._chat_response


@pytest.fixture(scope="session")
def app():
    os.environ["LLM_PROVIDER"] = "openai"
    os.environ.pop("LLM_API_KEY", None)

    import importlib

    from config.settings import get_settings

    get_settings.cache_clear()
    # Ensure clean import with the test environment.
    for module_name in ["api.dependencies", "api.routes", "main"]:
        sys.modules.pop(module_name, None)

    main = importlib.import_module("main")
    return main.app


@pytest.fixture()
def fake_llm() -> FakeLLM:
    return FakeLLM(chat_response='{"summary": "User asks about the weather.", "category": "weather"}')


@pytest.fixture()
def client(app, fake_llm):
    # Override analyzer dependency so tests never construct a real LLM client.
    import api.dependencies as deps
    from conversation.analyzer import SpeechAnalyzer

    app.dependency_overrides[deps.get_analyzer] = lambda: SpeechAnalyzer(fake_llm)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
