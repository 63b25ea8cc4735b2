import random
import subprocess

import httpx
import pytest

from adapters.resilient_caller import ResilientCaller
from core.config import AppSettings


class FakeHost:
    """Host de template en memoria (no lanza procesos)."""

    def __init__(self, outputs=None, env=None, missing=()):
        self.outputs = outputs or {}
        self.env = env or {}
        self.missing = set(missing)
        self.calls = []

    def run_process(self, argv):
        argv = list(argv)
        self.calls.append(argv)
        if argv[0] in self.missing:
            raise FileNotFoundError(2, "No such file or directory", argv[0])
        if argv[0] not in self.outputs:
            raise subprocess.CalledProcessError(1, argv, output=b"", stderr=b"command not allowed")
        return self.outputs[argv[0]]

    def getenv(self, name):
        return self.env.get(name)


@pytest.fixture
def settings():
    """Settings aislados del entorno (.env) con backoff corto."""
    return AppSettings(
        _env_file=None,
        retry_max_attempts=10,
        retry_initial_delay=0.5,
        retry_max_delay=30.0,
        retry_jitter=0.35,
        username=None,
        password=None,
    )


@pytest.fixture
def fake_host():
    return FakeHost()


@pytest.fixture
def sleeps():
    """Registro de esperas pedidas por el caller (no duerme de verdad)."""
    return []


@pytest.fixture
def make_caller(settings, sleeps):
    """Fábrica de `ResilientCaller` sobre un `httpx.MockTransport`."""

    def _make(handler, **overrides):
        effective = settings.model_copy(update=overrides) if overrides else settings
        return ResilientCaller(
            effective,
            transport=httpx.MockTransport(handler),
            sleep=sleeps.append,
            rng=random.Random(1234),
        )

    return _make
