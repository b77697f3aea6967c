from __future__ import annotations

from typing import Iterator

import pytest

from acemock.config.settings import Settings
from acemock.core.code_runner import ExecutionBackendResolver
from acemock.core.interview_orchestrator import InterviewOrchestrator
from tests.mocks.gateway import FakeGateway
from tests.mocks.remote_api import PistonAPIMock


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        gemini_api_key="test-key",
        langfuse_enabled=False,
        server_side_timers=False,
    )


@pytest.fixture()
def piston() -> PistonAPIMock:
    return PistonAPIMock()


@pytest.fixture()
def resolver(settings: Settings, piston: PistonAPIMock) -> ExecutionBackendResolver:
    return ExecutionBackendResolver(settings, client=piston.client())


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def orchestrator(
    settings: Settings,
    gateway: FakeGateway,
    resolver: ExecutionBackendResolver,
) -> Iterator[InterviewOrchestrator]:
    yield InterviewOrchestrator(gateway=gateway, resolver=resolver, settings=settings)
