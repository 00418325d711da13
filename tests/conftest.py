"""Shared test fixtures for the file converter."""

import os
from pathlib import Path

import httpx
import pytest

from file_converter.common.settings import Settings
from file_converter.utils.environment import EnvironmentProfile, RuntimeEnvironment
from file_converter.utils.httpx_manager.httpx_manager import HTTPXManager
from file_converter.utils.process import CommandResult


@pytest.fixture
def make_settings(tmp_path):
    """Settings isolated from the process environment and any .env file."""

    def _make(**overrides) -> Settings:
        values = {
            "VERCEL": None,
            "VERCEL_ENV": None,
            "DOCKER_CONTAINER": None,
            "CONTAINER": None,
            "CONVERSION_API_KEY": None,
            "TEMP_DIR": str(tmp_path / "work"),
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def fake_clock():
    return FakeClock()


class FakeLibreOffice:
    """Stands in for `run_command` when the command is a LibreOffice conversion.

    `outcomes` holds one entry per call (the last one repeats): an exit code,
    or "timeout". On exit code 0 a file named `{stem}-output.{target}` is
    written to the --outdir directory, stamped one second newer than the
    input. With a `clock`, a timed out call advances it by the full timeout
    and any other call by `elapsed` seconds.
    """

    def __init__(
        self, outcomes=(0,), output=b"converted bytes", write_output=True, clock=None, elapsed=0.0
    ):
        self.outcomes = list(outcomes)
        self.output = output
        self.write_output = write_output
        self.clock = clock
        self.elapsed = elapsed
        self.calls = []

    async def __call__(self, args, timeout):
        self.calls.append((list(args), timeout))
        outcome = self.outcomes[min(len(self.calls), len(self.outcomes)) - 1]
        if self.clock is not None:
            self.clock.now += timeout if outcome == "timeout" else self.elapsed

        if outcome == "timeout":
            return CommandResult(returncode=-9, stdout="", stderr="", timed_out=True)
        if outcome != 0:
            return CommandResult(
                returncode=outcome, stdout="", stderr="Error: source file could not be loaded"
            )

        if self.write_output:
            output_dir = args[args.index("--outdir") + 1]
            input_path = args[-1]
            target = args[args.index("--convert-to") + 1].split(":")[0]
            output_path = Path(output_dir) / f"{Path(input_path).stem}-output.{target}"
            output_path.write_bytes(self.output)
            stat = os.stat(input_path)
            os.utime(output_path, ns=(stat.st_atime_ns, stat.st_mtime_ns + 1_000_000_000))
        return CommandResult(returncode=0, stdout="convert ok", stderr="")


@pytest.fixture
def fake_libreoffice():
    return FakeLibreOffice


class StaticEnvironment:
    """Environment provider returning a fixed profile."""

    def __init__(self, profile: EnvironmentProfile):
        self.profile = profile
        self.detect_calls = 0

    async def detect(self) -> EnvironmentProfile:
        self.detect_calls += 1
        return self.profile


def make_profile(
    runtime=RuntimeEnvironment.LOCAL,
    libreoffice_available=True,
    remote_api_configured=False,
) -> EnvironmentProfile:
    return EnvironmentProfile(
        runtime=runtime,
        libreoffice_available=libreoffice_available,
        remote_api_configured=remote_api_configured,
        libreoffice_version="LibreOffice 7.6.4.1" if libreoffice_available else None,
        libreoffice_command="soffice" if libreoffice_available else None,
    )


@pytest.fixture
def static_environment():
    def _make(**kwargs) -> StaticEnvironment:
        return StaticEnvironment(make_profile(**kwargs))

    return _make


@pytest.fixture
def mock_http():
    """HTTPXManager whose clients talk to an in-process handler."""

    def _make(handler) -> HTTPXManager:
        return HTTPXManager(transport=httpx.MockTransport(handler))

    return _make
