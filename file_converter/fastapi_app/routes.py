import logging
import os
import platform
import shutil
import socket
from datetime import datetime, timezone
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse, Response

from file_converter.common.errors import ConversionError, ErrorKind, NoConversionPathError
from file_converter.common.settings import settings
from file_converter.fastapi_app.schemas import (
    ClientSideConversionResponse,
    FormatGroupInfo,
    FormatsResponse,
    FormatTargets,
    SelfHostingErrorResponse,
)
from file_converter.fastapi_app.services import (
    ConversionDispatcher,
    get_dispatcher,
    get_environment_detector,
    get_zamzar_facade,
)
from file_converter.utils.environment import EnvironmentDetector
from file_converter.utils.files import is_dir_writable
from file_converter.utils.formats import format_registry
from file_converter.utils.schemas import ClientSideConversion, ConversionRequest
from file_converter.zamzar import ZamzarFacade

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def content_disposition(file_name: str) -> str:
    ascii_name = file_name.encode("ascii", "ignore").decode("ascii").replace('"', "")
    ascii_name = ascii_name or "converted"
    value = f'attachment; filename="{ascii_name}"'
    if ascii_name != file_name:
        value += f"; filename*=UTF-8''{quote(file_name)}"
    return value


async def _convert(
    file: UploadFile | None,
    target_format: str | None,
    dispatcher: ConversionDispatcher,
    cloud: bool,
) -> Response:
    if file is None or not file.filename or not target_format:
        return JSONResponse(
            content={"error": "File and target format are required"}, status_code=400
        )

    request = ConversionRequest(
        file_name=file.filename,
        file_bytes=await file.read(),
        target_format=target_format.strip().lower(),
    )
    logger.info(
        "Conversion requested: %s (%s bytes) -> %s",
        request.file_name,
        len(request.file_bytes),
        request.target_format,
    )

    try:
        result = await dispatcher.dispatch(request, allow_client_side=cloud)
    except ConversionError as e:
        logger.warning("Conversion failed: %r %s", e, e.details or "")
        if cloud and isinstance(e, NoConversionPathError) and e.restricted_runtime:
            body = SelfHostingErrorResponse(
                error=e.message,
                details=f"{e.details} Your conversion will work in the self-hosted version.",
            )
            return JSONResponse(content=body.model_dump(by_alias=True), status_code=501)
        return JSONResponse(content=e.to_dict(), status_code=e.http_status)
    except Exception as e:
        logger.exception("Conversion error")
        return JSONResponse(
            content={"error": "File conversion failed", "details": str(e)},
            status_code=500,
        )

    if isinstance(result, ClientSideConversion):
        body = ClientSideConversionResponse(message=result.message)
        return JSONResponse(content=body.model_dump(by_alias=True))

    return Response(
        content=result.file_bytes,
        media_type=result.content_type,
        headers={"Content-Disposition": content_disposition(result.file_name)},
    )


@router.post("/convert")
async def convert(
    file: UploadFile | None = File(None),
    target_format: str | None = Form(None, alias="targetFormat"),
    dispatcher: ConversionDispatcher = Depends(get_dispatcher),
) -> Response:
    """Convert an uploaded file on the server"""
    return await _convert(file, target_format, dispatcher, cloud=False)


@router.post("/convert-cloud")
async def convert_cloud(
    file: UploadFile | None = File(None),
    target_format: str | None = Form(None, alias="targetFormat"),
    dispatcher: ConversionDispatcher = Depends(get_dispatcher),
) -> Response:
    """Convert, or tell the client to convert simple images itself"""
    return await _convert(file, target_format, dispatcher, cloud=True)


@router.get("/status")
async def get_status(
    detector: EnvironmentDetector = Depends(get_environment_detector),
) -> JSONResponse:
    """Report LibreOffice availability for client-side capability checks"""
    try:
        profile = await detector.detect()
        if profile.libreoffice_available:
            libreoffice_info = {
                "installed": True,
                "version": profile.libreoffice_version,
                "command": profile.libreoffice_command,
            }
        else:
            libreoffice_info = {
                "installed": False,
                "version": None,
                "error": "LibreOffice not found or not properly installed",
            }

        return JSONResponse(
            content={
                "status": "ok",
                "time": datetime.now(timezone.utc).isoformat(),
                "system": {
                    "platform": platform.system().lower(),
                    "release": platform.release(),
                    "hostname": socket.gethostname(),
                    "cpus": os.cpu_count(),
                },
                "environment": profile.runtime.value,
                "libreOffice": libreoffice_info,
                "remoteApiConfigured": profile.remote_api_configured,
                "timeouts": {
                    "client": settings.CLIENT_TIMEOUT_SECONDS,
                    "clientPdf": settings.CLIENT_PDF_TIMEOUT_SECONDS,
                    "libreOffice": settings.LIBREOFFICE_TIMEOUT_SECONDS,
                    "libreOfficePdf": settings.LIBREOFFICE_PDF_TIMEOUT_SECONDS,
                    "remote": settings.remote_wait_budget_for(""),
                    "remotePdf": settings.remote_wait_budget_for("pdf"),
                },
            }
        )
    except Exception as e:
        logger.exception("Status check failed")
        return JSONResponse(
            content={"error": "Status check failed", "details": str(e)}, status_code=500
        )


@router.get("/formats", response_model=FormatsResponse)
async def get_formats() -> FormatsResponse:
    """Format groups and the targets offered for each source format"""
    groups = [
        FormatGroupInfo(key=group.key, name=group.name, formats=list(group.formats))
        for group in format_registry.groups
    ]
    conversions = {}
    for fmt in format_registry.all_formats:
        targets = format_registry.valid_targets(fmt)
        conversions[fmt] = FormatTargets(
            targets=sorted(targets),
            browser_targets=sorted(
                t for t in targets if format_registry.can_convert_in_browser(fmt, t)
            ),
        )
    return FormatsResponse(groups=groups, conversions=conversions)


@router.get("/debug")
async def get_debug_info(
    detector: EnvironmentDetector = Depends(get_environment_detector),
) -> JSONResponse:
    """Runtime diagnostics for deployment troubleshooting"""
    binaries = {
        command: shutil.which(command) or "Not found"
        for command in settings.LIBREOFFICE_COMMANDS
    }
    return JSONResponse(
        content={
            "environment": {
                "runtime": detector.detect_runtime().value,
                "platform": platform.system().lower(),
                "release": platform.release(),
                "cpus": os.cpu_count(),
                "tmpdir": os.path.abspath(settings.TEMP_DIR),
                "cwd": os.getcwd(),
                "debug": settings.IS_DEBUG,
            },
            "filesystem": {"tempWritable": is_dir_writable(settings.TEMP_DIR)},
            "binaries": binaries,
        }
    )


@router.get("/test-conversion-api")
async def test_conversion_api(
    zamzar: ZamzarFacade = Depends(get_zamzar_facade),
) -> JSONResponse:
    """Check that the configured remote API key works"""
    try:
        info = await zamzar.verify_api_key()
    except ConversionError as e:
        status_code = 400 if e.kind == ErrorKind.INVALID_REQUEST else e.http_status
        return JSONResponse(
            content={"status": "error", "message": e.message, "details": e.details},
            status_code=status_code,
        )
    except Exception as e:
        logger.exception("API key validation failed")
        return JSONResponse(
            content={
                "status": "error",
                "message": "Failed to validate API key",
                "details": str(e),
            },
            status_code=500,
        )

    return JSONResponse(
        content={
            "status": "success",
            "message": "API key is valid and working correctly",
            "supportedFormats": info["supported_formats"],
        }
    )
