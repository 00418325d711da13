import logging
from typing import Protocol

from file_converter.common.errors import ConversionError, ErrorKind, NoConversionPathError
from file_converter.libreoffice import LibreOfficeConverter, libreoffice_converter
from file_converter.utils.environment import (
    EnvironmentDetector,
    EnvironmentProfile,
    environment_detector,
)
from file_converter.utils.formats import FormatRegistry, format_registry, get_content_type
from file_converter.utils.schemas import (
    ClientSideConversion,
    ConversionRequest,
    ConversionResult,
)
from file_converter.zamzar import ZamzarFacade

logger = logging.getLogger(__name__)


class EnvironmentProvider(Protocol):
    async def detect(self) -> EnvironmentProfile: ...


class ConversionDispatcher:
    """Picks exactly one conversion path per request.

    There is no retry across paths: a LibreOffice failure is reported even
    when a remote API key is configured.
    """

    def __init__(
        self,
        environment: EnvironmentProvider,
        local_converter: LibreOfficeConverter,
        remote_converter: ZamzarFacade,
        registry: FormatRegistry = format_registry,
    ) -> None:
        self.environment = environment
        self.local_converter = local_converter
        self.remote_converter = remote_converter
        self.registry = registry

    def validate(self, request: ConversionRequest) -> None:
        if not request.file_name or not request.file_bytes or not request.target_format:
            raise ConversionError(
                ErrorKind.INVALID_REQUEST, "File and target format are required"
            )

        source_format = request.source_format
        target_format = request.target_format.lower()
        if not self.registry.is_known(source_format):
            raise ConversionError(
                ErrorKind.UNSUPPORTED_CONVERSION,
                "Unsupported file type",
                details=f"Files of type {source_format or 'unknown'!r} cannot be converted",
            )
        if target_format not in self.registry.valid_targets(source_format):
            raise ConversionError(
                ErrorKind.UNSUPPORTED_CONVERSION,
                "Unsupported conversion combination",
                details=f"Converting {source_format} to {target_format} is not supported",
            )

    async def dispatch(
        self,
        request: ConversionRequest,
        allow_client_side: bool = True,
    ) -> ConversionResult | ClientSideConversion:
        self.validate(request)
        source_format = request.source_format
        target_format = request.target_format.lower()

        if allow_client_side and self.registry.can_convert_in_browser(
            source_format, target_format
        ):
            logger.info("Delegating %s -> %s to the client", source_format, target_format)
            return ClientSideConversion(
                source_format=source_format, target_format=target_format
            )

        profile = await self.environment.detect()

        if profile.libreoffice_available:
            logger.info("Using LibreOffice to convert %s to %s", source_format, target_format)
            converted = await self.local_converter.convert(
                request.file_bytes,
                source_format,
                target_format,
                command=profile.libreoffice_command,
            )
            converter = "libreoffice"
        elif profile.remote_api_configured:
            logger.info("Using Zamzar to convert %s to %s", source_format, target_format)
            converted = await self.remote_converter.convert(
                request.file_bytes, request.file_name, target_format
            )
            converter = "zamzar"
        else:
            raise self.no_path_error(profile, source_format, target_format)

        return ConversionResult(
            file_bytes=converted,
            file_name=request.output_file_name,
            content_type=get_content_type(target_format),
            converter=converter,
        )

    @staticmethod
    def no_path_error(
        profile: EnvironmentProfile, source_format: str, target_format: str
    ) -> NoConversionPathError:
        if profile.is_restricted:
            missing = "LibreOffice (not available in this serverless environment)"
        else:
            missing = "LibreOffice (not installed or not on PATH)"
        return NoConversionPathError(
            "Conversion not available in this environment",
            details=(
                f"Converting from {source_format} to {target_format} requires either "
                f"{missing} or a configured CONVERSION_API_KEY."
            ),
            restricted_runtime=profile.is_restricted,
        )


zamzar_facade = ZamzarFacade()

conversion_dispatcher = ConversionDispatcher(
    environment=environment_detector,
    local_converter=libreoffice_converter,
    remote_converter=zamzar_facade,
)


def get_environment_detector() -> EnvironmentDetector:
    return environment_detector


def get_zamzar_facade() -> ZamzarFacade:
    return zamzar_facade


def get_dispatcher() -> ConversionDispatcher:
    return conversion_dispatcher
