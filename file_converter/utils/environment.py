"""
Runtime environment detection and LibreOffice availability probing
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import StrEnum
from typing import Awaitable, Callable

from file_converter.common.settings import Settings, settings as default_settings
from file_converter.utils.process import CommandResult, run_command

logger = logging.getLogger(__name__)

CommandRunner = Callable[[list[str], float], Awaitable[CommandResult]]


class RuntimeEnvironment(StrEnum):
    LOCAL = "local"
    DOCKER = "docker"
    VERCEL = "vercel"


@dataclass(frozen=True)
class EnvironmentProfile:
    runtime: RuntimeEnvironment
    libreoffice_available: bool
    remote_api_configured: bool
    libreoffice_version: str | None = None
    libreoffice_command: str | None = None

    @property
    def is_restricted(self) -> bool:
        """No local binary can exist in this runtime"""
        return self.runtime == RuntimeEnvironment.VERCEL


@dataclass
class _ProbeResult:
    command: str
    version: str
    checked_at: float


class EnvironmentDetector:
    """Builds an EnvironmentProfile per request.

    Successful probes are cached for `LIBREOFFICE_PROBE_TTL_SECONDS`. Failed
    probes are not cached, the binary may still be starting up in a fresh
    container.
    """

    def __init__(
        self,
        settings: Settings = default_settings,
        runner: CommandRunner = run_command,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        self._runner = runner
        self._clock = clock
        self._cached: _ProbeResult | None = None
        self._lock = asyncio.Lock()

    def detect_runtime(self) -> RuntimeEnvironment:
        if self.settings.is_serverless:
            return RuntimeEnvironment.VERCEL
        if self.settings.is_container:
            return RuntimeEnvironment.DOCKER
        return RuntimeEnvironment.LOCAL

    async def detect(self) -> EnvironmentProfile:
        runtime = self.detect_runtime()
        remote_api_configured = bool(self.settings.CONVERSION_API_KEY)

        if runtime == RuntimeEnvironment.VERCEL:
            return EnvironmentProfile(
                runtime=runtime,
                libreoffice_available=False,
                remote_api_configured=remote_api_configured,
            )

        available = await self.probe_local_binary()
        probe = self._cached if available else None
        return EnvironmentProfile(
            runtime=runtime,
            libreoffice_available=available,
            remote_api_configured=remote_api_configured,
            libreoffice_version=probe.version if probe else None,
            libreoffice_command=probe.command if probe else None,
        )

    async def probe_local_binary(self) -> bool:
        if self._is_cache_fresh():
            return True

        async with self._lock:
            # Another request may have probed while we waited
            if self._is_cache_fresh():
                return True

            for command in self.settings.LIBREOFFICE_COMMANDS:
                version = await self._probe_command(command)
                if version:
                    self._cached = _ProbeResult(
                        command=command, version=version, checked_at=self._clock()
                    )
                    logger.info("LibreOffice found: %s (%s)", version, command)
                    return True

            self._cached = None
            logger.info(
                "LibreOffice not found, tried: %s",
                ", ".join(self.settings.LIBREOFFICE_COMMANDS),
            )
            return False

    async def _probe_command(self, command: str) -> str | None:
        try:
            result = await self._runner(
                [command, "--version"], self.settings.LIBREOFFICE_PROBE_TIMEOUT_SECONDS
            )
        except OSError as e:
            logger.debug("Probe of %s failed: %s", command, e)
            return None

        output = result.stdout.strip()
        if result.ok and output:
            return output
        logger.debug(
            "Probe of %s returned %s (timed out: %s)", command, result.returncode, result.timed_out
        )
        return None

    def _is_cache_fresh(self) -> bool:
        if self._cached is None:
            return False
        age = self._clock() - self._cached.checked_at
        return age < self.settings.LIBREOFFICE_PROBE_TTL_SECONDS

    @property
    def libreoffice_command(self) -> str | None:
        return self._cached.command if self._cached else None

    def invalidate(self) -> None:
        self._cached = None


environment_detector = EnvironmentDetector()
