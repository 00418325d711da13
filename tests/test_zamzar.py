"""Tests for the Zamzar job API client."""

from unittest.mock import AsyncMock

import httpx
import pytest

from file_converter.common.errors import ConversionError, ErrorKind
from file_converter.zamzar import JobState, ZamzarFacade, ZamzarJob, next_state


def job_json(status="initialising", target_files=None, failure=None, job_id=15):
    data = {
        "id": job_id,
        "key": "abc",
        "status": status,
        "target_format": "docx",
        "target_files": target_files or [],
    }
    if failure:
        data["failure"] = failure
    return data


DONE = job_json("successful", target_files=[{"id": 42, "name": "report.docx", "size": 5}])


class FakeZamzar:
    """Scripted Zamzar API: one status per poll, the last one repeats."""

    def __init__(self, statuses, submit_status=201, poll_status=200, download_status=200):
        self.statuses = list(statuses)
        self.submit_status = submit_status
        self.poll_status = poll_status
        self.download_status = download_status
        self.requests = []
        self.polls = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "POST" and path == "/v1/jobs":
            if self.submit_status >= 400:
                return httpx.Response(self.submit_status, text="invalid credentials")
            return httpx.Response(self.submit_status, json=job_json())

        if request.method == "GET" and path == "/v1/jobs/15":
            if self.poll_status >= 400:
                return httpx.Response(self.poll_status, text="server error")
            self.polls += 1
            body = self.statuses[min(self.polls, len(self.statuses)) - 1]
            return httpx.Response(200, json=body)

        if request.method == "GET" and path == "/v1/files/42/content":
            if self.download_status >= 400:
                return httpx.Response(self.download_status, text="gone")
            return httpx.Response(200, content=b"converted docx")

        if request.method == "GET" and path == "/v1/formats":
            return httpx.Response(200, json={"data": [{"name": "pdf"}, {"name": "docx"}]})

        return httpx.Response(404)


@pytest.fixture
def make_facade(make_settings, mock_http):
    def _make(api, api_key="secret", **settings_overrides):
        sleep = AsyncMock()
        facade = ZamzarFacade(
            api_key=api_key,
            settings=make_settings(**settings_overrides),
            http=mock_http(api),
            sleep=sleep,
        )
        return facade, sleep

    return _make


# ---------------------------------------------------------------------------
# next_state
# ---------------------------------------------------------------------------


class TestNextState:
    def test_successful_with_files(self):
        assert next_state(ZamzarJob.model_validate(DONE), 1, 60) == JobState.SUCCEEDED

    def test_successful_without_files(self):
        job = ZamzarJob.model_validate(job_json("successful"))
        assert next_state(job, 1, 60) == JobState.FAILED

    @pytest.mark.parametrize("status", ["failed", "cancelled"])
    def test_failed(self, status):
        job = ZamzarJob.model_validate(job_json(status))
        assert next_state(job, 1, 60) == JobState.FAILED

    def test_in_progress(self):
        job = ZamzarJob.model_validate(job_json("converting"))
        assert next_state(job, 59, 60) == JobState.POLLING
        assert next_state(job, 60, 60) == JobState.TIMED_OUT

    def test_terminal_status_wins_on_last_attempt(self):
        assert next_state(ZamzarJob.model_validate(DONE), 60, 60) == JobState.SUCCEEDED


# ---------------------------------------------------------------------------
# convert
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_convert_happy_path(make_facade):
    api = FakeZamzar([job_json("converting")] * 3 + [DONE])
    facade, sleep = make_facade(api)

    result = await facade.convert(b"%PDF-1.4", "report.pdf", "docx")

    assert result == b"converted docx"
    assert api.polls == 4
    assert sleep.await_count == 3
    sleep.assert_awaited_with(2)


@pytest.mark.asyncio
async def test_submit_request_shape(make_facade):
    api = FakeZamzar([DONE])
    facade, _ = make_facade(api)

    await facade.convert(b"%PDF-1.4", "report.pdf", "docx")

    submit = api.requests[0]
    assert submit.headers["Authorization"] == "Bearer secret"
    assert submit.headers["Content-Type"].startswith("multipart/form-data")
    body = submit.content
    assert b'name="target_format"' in body
    assert b"docx" in body
    assert b'name="source_file"' in body
    assert b"-report.pdf" in body
    assert b"%PDF-1.4" in body
    assert all(r.headers["Authorization"] == "Bearer secret" for r in api.requests)


@pytest.mark.asyncio
async def test_times_out_after_max_polls(make_facade):
    api = FakeZamzar([job_json("converting")])
    facade, sleep = make_facade(api)

    with pytest.raises(ConversionError) as exc_info:
        await facade.convert(b"data", "report.pdf", "docx")

    assert exc_info.value.kind == ErrorKind.TIMEOUT
    assert exc_info.value.http_status == 504
    assert api.polls == 60
    assert sleep.await_count == 59


@pytest.mark.asyncio
async def test_polling_stays_within_client_wait(make_facade):
    api = FakeZamzar([job_json("converting")])
    facade, sleep = make_facade(api)

    with pytest.raises(ConversionError) as exc_info:
        await facade.convert(b"docx bytes", "report.docx", "pdf")

    assert exc_info.value.kind == ErrorKind.TIMEOUT
    waited = sum(call.args[0] for call in sleep.await_args_list)
    assert waited <= facade.settings.client_timeout_for("docx")
    assert api.polls == 30


@pytest.mark.asyncio
async def test_poll_limit_from_settings(make_facade):
    api = FakeZamzar([job_json("converting")])
    facade, _ = make_facade(api, ZAMZAR_MAX_POLL_ATTEMPTS=5)

    with pytest.raises(ConversionError):
        await facade.convert(b"data", "report.pdf", "docx")

    assert api.polls == 5


@pytest.mark.asyncio
async def test_failed_job(make_facade):
    failed = job_json("failed", failure={"code": 3, "message": "Source file is corrupt"})
    api = FakeZamzar([job_json("converting"), failed])
    facade, _ = make_facade(api)

    with pytest.raises(ConversionError) as exc_info:
        await facade.convert(b"data", "report.pdf", "docx")

    assert exc_info.value.kind == ErrorKind.REMOTE_JOB_FAILED
    assert exc_info.value.details == "Source file is corrupt"
    assert api.polls == 2


@pytest.mark.asyncio
async def test_successful_job_without_files(make_facade):
    api = FakeZamzar([job_json("successful")])
    facade, _ = make_facade(api)

    with pytest.raises(ConversionError) as exc_info:
        await facade.convert(b"data", "report.pdf", "docx")

    assert exc_info.value.kind == ErrorKind.OUTPUT_NOT_FOUND


@pytest.mark.asyncio
async def test_submit_rejected(make_facade):
    api = FakeZamzar([DONE], submit_status=401)
    facade, _ = make_facade(api)

    with pytest.raises(ConversionError) as exc_info:
        await facade.convert(b"data", "report.pdf", "docx")

    error = exc_info.value
    assert error.kind == ErrorKind.SUBMISSION_FAILURE
    assert error.status_code == 401
    assert error.http_status == 401
    assert error.details == "invalid credentials"
    assert api.polls == 0


@pytest.mark.asyncio
async def test_poll_rejected(make_facade):
    api = FakeZamzar([DONE], poll_status=500)
    facade, _ = make_facade(api)

    with pytest.raises(ConversionError) as exc_info:
        await facade.convert(b"data", "report.pdf", "docx")

    assert exc_info.value.kind == ErrorKind.POLL_FAILURE
    assert exc_info.value.http_status == 500


@pytest.mark.asyncio
async def test_download_rejected(make_facade):
    api = FakeZamzar([DONE], download_status=404)
    facade, _ = make_facade(api)

    with pytest.raises(ConversionError) as exc_info:
        await facade.convert(b"data", "report.pdf", "docx")

    assert exc_info.value.kind == ErrorKind.DOWNLOAD_FAILURE
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_network_error(make_settings, mock_http):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    facade = ZamzarFacade(
        api_key="secret", settings=make_settings(), http=mock_http(handler), sleep=AsyncMock()
    )

    with pytest.raises(ConversionError) as exc_info:
        await facade.convert(b"data", "report.pdf", "docx")

    assert exc_info.value.kind == ErrorKind.SUBMISSION_FAILURE
    assert exc_info.value.http_status == 502


@pytest.mark.asyncio
async def test_missing_api_key(make_facade):
    api = FakeZamzar([DONE])
    facade, _ = make_facade(api, api_key="")

    with pytest.raises(ConversionError) as exc_info:
        await facade.convert(b"data", "report.pdf", "docx")

    assert exc_info.value.kind == ErrorKind.INVALID_REQUEST
    assert api.requests == []


# ---------------------------------------------------------------------------
# verify_api_key
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_verify_api_key(make_facade):
    facade, _ = make_facade(FakeZamzar([DONE]))
    assert await facade.verify_api_key() == {"supported_formats": 2}


@pytest.mark.asyncio
async def test_verify_without_key(make_facade):
    facade, _ = make_facade(FakeZamzar([DONE]), api_key="")
    with pytest.raises(ConversionError) as exc_info:
        await facade.verify_api_key()
    assert exc_info.value.kind == ErrorKind.INVALID_REQUEST


@pytest.mark.asyncio
async def test_verify_rejected_key(make_settings, mock_http):
    facade = ZamzarFacade(
        api_key="wrong",
        settings=make_settings(),
        http=mock_http(lambda request: httpx.Response(401, text="unauthorized")),
    )

    with pytest.raises(ConversionError) as exc_info:
        await facade.verify_api_key()

    assert exc_info.value.kind == ErrorKind.KEY_CHECK_FAILURE
    assert exc_info.value.http_status == 401
