# Shared fixtures. Living at the repository root also puts the root on
# sys.path so `import core.*`, `import app` work without installing.
import httpx
import pytest

from core.config import Config


class RecordingLogger:
    """RequestLogger that keeps every call in memory."""

    def __init__(self):
        self.forwards = []
        self.rejections = []
        self.errors = []

    def log_forward(self, method, target, backend, status, *, path):
        self.forwards.append((method, target, backend, status, path))

    def log_rejection(self, kind, status, message):
        self.rejections.append((kind, status, message))

    def log_error(self, target, status, message):
        self.errors.append((target, status, message))


class FakeOrigin:
    """Records requests reaching httpx and answers with a canned response."""

    def __init__(self):
        self.requests = []
        self.status = 200
        self.content = b"hello"
        self.headers = [("X-Origin", "yes")]
        self.error = None
        self.stream = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.stream is not None:
            return httpx.Response(self.status, headers=self.headers, stream=self.stream)
        return httpx.Response(self.status, content=self.content, headers=self.headers)


@pytest.fixture
def config():
    config = Config()
    config.proxy.debug = False
    return config


@pytest.fixture
def logger():
    return RecordingLogger()


@pytest.fixture
def origin():
    return FakeOrigin()


@pytest.fixture
def transport(origin):
    return httpx.MockTransport(origin)
