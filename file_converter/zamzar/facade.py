"""
Zamzar job-based conversion API

Documentation: https://developers.zamzar.com/
"""

import asyncio
import logging
import uuid
from http import HTTPMethod
from typing import Awaitable, Callable

import httpx
from pydantic import ValidationError

from file_converter.common.errors import ConversionError, ErrorKind
from file_converter.common.settings import Settings, settings as default_settings
from file_converter.utils.formats import get_content_type, get_extension
from file_converter.utils.httpx_manager.httpx_manager import HTTPXManager, httpx_manager
from file_converter.zamzar.schemas import JobState, TERMINAL_STATES, ZamzarJob

logger = logging.getLogger(__name__)


def next_state(job: ZamzarJob, attempt: int, max_attempts: int) -> JobState:
    """
    Transition of the polling state machine after the `attempt`-th poll

    Pure function of the last remote status, independent of how the caller
    waits between polls.
    """
    if job.status == "successful":
        return JobState.SUCCEEDED if job.target_files else JobState.FAILED
    if job.status in ("failed", "cancelled"):
        return JobState.FAILED
    if attempt >= max_attempts:
        return JobState.TIMED_OUT
    return JobState.POLLING


class ZamzarFacade:
    def __init__(
        self,
        api_key: str | None = None,
        settings: Settings = default_settings,
        http: HTTPXManager = httpx_manager,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.CONVERSION_API_KEY
        self.base_url = settings.ZAMZAR_API_BASE.rstrip("/")
        self.jobs_url = f"{self.base_url}/jobs"
        self.files_url = f"{self.base_url}/files"
        self.formats_url = f"{self.base_url}/formats"
        self.poll_interval = settings.ZAMZAR_POLL_INTERVAL_SECONDS
        self.max_attempts = settings.ZAMZAR_MAX_POLL_ATTEMPTS
        self.settings = settings
        self._http = http
        self._sleep = sleep

    @property
    def headers(self) -> dict:
        return {"Authorization": f"Bearer {self.api_key}"}

    async def convert(self, file_bytes: bytes, file_name: str, target_format: str) -> bytes:
        if not file_bytes or not target_format or not self.api_key:
            raise ConversionError(ErrorKind.INVALID_REQUEST, "Missing required parameters")

        logger.info("Starting Zamzar conversion: %s to %s", file_name, target_format)
        job = await self.submit(file_bytes, file_name, target_format)
        logger.info("Job created with ID: %s", job.id)

        max_attempts = self.settings.max_poll_attempts_for(get_extension(file_name))
        completed_job = await self.wait_for_completion(job, max_attempts=max_attempts)
        logger.info("Job %s completed: %s", completed_job.id, completed_job.status)

        converted = await self.download(completed_job.target_files[0].id)
        logger.info("Downloaded converted file, size: %s bytes", len(converted))
        return converted

    async def submit(self, file_bytes: bytes, file_name: str, target_format: str) -> ZamzarJob:
        unique_file_name = f"{uuid.uuid4()}-{file_name}"
        content_type = get_content_type(get_extension(file_name))
        files = {"source_file": (unique_file_name, file_bytes, content_type)}
        data = {"target_format": target_format}

        response = await self._request(
            ErrorKind.SUBMISSION_FAILURE,
            url=self.jobs_url,
            method=HTTPMethod.POST,
            files=files,
            data=data,
        )
        if not response.is_success:
            raise ConversionError(
                ErrorKind.SUBMISSION_FAILURE,
                "Failed to create conversion job",
                details=response.text,
                status_code=response.status_code,
            )
        return self._parse_job(response, ErrorKind.SUBMISSION_FAILURE)

    async def poll(self, job_id: int) -> ZamzarJob:
        response = await self._request(
            ErrorKind.POLL_FAILURE,
            url=f"{self.jobs_url}/{job_id}",
            method=HTTPMethod.GET,
        )
        if not response.is_success:
            raise ConversionError(
                ErrorKind.POLL_FAILURE,
                "Failed to check job status",
                details=response.text,
                status_code=response.status_code,
            )
        return self._parse_job(response, ErrorKind.POLL_FAILURE)

    async def wait_for_completion(
        self, job: ZamzarJob, max_attempts: int | None = None
    ) -> ZamzarJob:
        max_attempts = max_attempts or self.max_attempts
        state = JobState.SUBMITTED
        attempt = 0

        while state not in TERMINAL_STATES:
            if state == JobState.POLLING:
                await self._sleep(self.poll_interval)
            job = await self.poll(job.id)
            attempt += 1
            state = next_state(job, attempt, max_attempts)
            logger.debug("Job %s status: %s -> %s", job.id, job.status, state)

        if state == JobState.SUCCEEDED:
            return job
        if state == JobState.TIMED_OUT:
            raise ConversionError(
                ErrorKind.TIMEOUT,
                "Job timed out",
                details=f"Job {job.id} still {job.status!r} after {attempt} status checks",
            )
        if job.status == "successful":
            raise ConversionError(
                ErrorKind.OUTPUT_NOT_FOUND, "No target files found after conversion"
            )
        raise ConversionError(
            ErrorKind.REMOTE_JOB_FAILED,
            "Conversion job failed",
            details=job.failure_message,
        )

    async def download(self, file_id: int) -> bytes:
        response = await self._request(
            ErrorKind.DOWNLOAD_FAILURE,
            url=f"{self.files_url}/{file_id}/content",
            method=HTTPMethod.GET,
        )
        if not response.is_success:
            raise ConversionError(
                ErrorKind.DOWNLOAD_FAILURE,
                "Failed to download converted file",
                details=response.text,
                status_code=response.status_code,
            )
        return response.content

    async def verify_api_key(self) -> dict:
        """Check the key against the formats endpoint"""
        if not self.api_key:
            raise ConversionError(
                ErrorKind.INVALID_REQUEST, "CONVERSION_API_KEY is not set"
            )
        response = await self._request(
            ErrorKind.KEY_CHECK_FAILURE,
            url=self.formats_url,
            method=HTTPMethod.GET,
        )
        if not response.is_success:
            raise ConversionError(
                ErrorKind.KEY_CHECK_FAILURE,
                "API key validation failed",
                details=response.text,
                status_code=response.status_code,
            )
        return {"supported_formats": len(response.json().get("data", []))}

    async def _request(self, kind: ErrorKind, **kwargs) -> httpx.Response:
        try:
            return await self._http.async_request(headers=self.headers, **kwargs)
        except httpx.HTTPError as e:
            raise ConversionError(kind, "Conversion service unreachable", details=str(e)) from e

    @staticmethod
    def _parse_job(response: httpx.Response, kind: ErrorKind) -> ZamzarJob:
        try:
            return ZamzarJob.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise ConversionError(
                kind, "Unexpected response from conversion service", details=str(e)
            ) from e
