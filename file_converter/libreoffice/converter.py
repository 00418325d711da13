"""
Local document conversion utility
Runs a headless LibreOffice process and picks up the file it writes
"""

import logging
import os
import time
from dataclasses import dataclass
from typing import Awaitable, Callable

from file_converter.common.errors import ConversionError, ErrorKind
from file_converter.common.settings import Settings, settings as default_settings
from file_converter.utils.files import (
    cleanup_temp_dir,
    cleanup_temp_file,
    create_request_dir,
    create_temp_input_file,
)
from file_converter.utils.process import CommandResult, run_command

logger = logging.getLogger(__name__)

CommandRunner = Callable[[list[str], float], Awaitable[CommandResult]]

PDF_IMPORT_FILTER = "writer_pdf_import"

# Explicit export filters for the PDF -> text document retry
PDF_FALLBACK_EXPORT_FILTERS = {
    "docx": "docx:MS Word 2007 XML",
    "doc": "doc:MS Word 97",
    "odt": "odt:writer8",
}


@dataclass
class ConversionAttempt:
    """One LibreOffice invocation"""

    args: list[str]
    timeout: float
    is_fallback: bool = False


class LibreOfficeConverter:
    """Headless LibreOffice converter.

    Every conversion runs in its own directory under `TEMP_DIR`, so the
    output scan can only ever see files produced for this request.
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

    @property
    def default_command(self) -> str:
        return self.settings.LIBREOFFICE_COMMANDS[-1]

    def build_command(
        self,
        input_path: str,
        output_dir: str,
        source_format: str,
        target_format: str,
        command: str | None = None,
        export_filter: str | None = None,
    ) -> list[str]:
        args = [command or self.default_command, "--headless"]
        if source_format == "pdf":
            # The default importer opens PDFs in Draw
            args.append(f"--infilter={PDF_IMPORT_FILTER}")
        args += [
            "--convert-to",
            export_filter or target_format,
            "--outdir",
            output_dir,
            input_path,
        ]
        return args

    def fallback_filter(self, source_format: str, target_format: str) -> str | None:
        if source_format != "pdf":
            return None
        return PDF_FALLBACK_EXPORT_FILTERS.get(target_format)

    async def convert(
        self,
        file_bytes: bytes,
        source_format: str,
        target_format: str,
        command: str | None = None,
    ) -> bytes:
        """
        Convert `file_bytes` and return the converted file's content

        The primary attempt and the fallback share one deadline, so the whole
        conversion never takes longer than the source format's timeout.
        """
        source_format = source_format.lower()
        target_format = target_format.lower()
        timeout = self.settings.libreoffice_timeout_for(source_format)
        deadline = self._clock() + timeout

        work_dir = create_request_dir(self.settings.TEMP_DIR)
        input_path = None
        output_path = None
        try:
            input_path = create_temp_input_file(file_bytes, source_format, work_dir)
            logger.info(
                "Processing file conversion: %s -> %s (%s)",
                source_format,
                target_format,
                input_path,
            )

            primary = ConversionAttempt(
                args=self.build_command(
                    input_path, work_dir, source_format, target_format, command
                ),
                timeout=timeout,
            )
            result = await self._run(primary)

            attempt = primary
            if not result.ok:
                export_filter = self.fallback_filter(source_format, target_format)
                if export_filter is None:
                    raise self._tool_failure(
                        result,
                        "Initial conversion failed and no alternative method available",
                    )

                remaining = deadline - self._clock()
                if remaining <= 0:
                    raise self._tool_failure(
                        result, "Conversion timed out before an alternative method could run"
                    )

                logger.info(
                    "First conversion attempt failed, trying alternative approach (%.1fs left)...",
                    remaining,
                )
                attempt = ConversionAttempt(
                    args=self.build_command(
                        input_path,
                        work_dir,
                        source_format,
                        target_format,
                        command,
                        export_filter=export_filter,
                    ),
                    timeout=remaining,
                    is_fallback=True,
                )
                result = await self._run(attempt)
                if not result.ok:
                    raise self._tool_failure(result, "All conversion attempts failed")

            output_path = self.find_output_file(
                work_dir,
                input_path,
                target_format,
                newer_than_input=attempt.is_fallback,
            )
            with open(output_path, "rb") as f:
                converted = f.read()
            logger.info("Successfully read converted file, size: %s", len(converted))

            if not converted:
                raise ConversionError(ErrorKind.EMPTY_OUTPUT, "Converted file is empty")
            return converted
        finally:
            cleanup_temp_file(input_path)
            cleanup_temp_file(output_path)
            cleanup_temp_dir(work_dir)

    @staticmethod
    def find_output_file(
        output_dir: str,
        input_path: str,
        target_format: str,
        newer_than_input: bool = False,
    ) -> str:
        """
        Locate the file LibreOffice wrote for `input_path`

        Candidates contain the input's base name and end with the target
        extension; when `newer_than_input` is set they must also be modified
        after the input. The most recently modified candidate wins.
        """
        input_name = os.path.basename(input_path)
        stem = os.path.splitext(input_name)[0]
        suffix = f".{target_format}"
        input_mtime = os.stat(input_path).st_mtime_ns

        candidates = []
        for name in os.listdir(output_dir):
            if name == input_name or stem not in name or not name.lower().endswith(suffix):
                continue
            path = os.path.join(output_dir, name)
            if not os.path.isfile(path):
                continue
            mtime = os.stat(path).st_mtime_ns
            if newer_than_input and mtime <= input_mtime:
                continue
            candidates.append((mtime, path))

        if not candidates:
            logger.warning("Directory contents after conversion: %s", os.listdir(output_dir))
            raise ConversionError(
                ErrorKind.OUTPUT_NOT_FOUND, "No converted output file found"
            )

        candidates.sort(reverse=True)
        logger.info("Found output file: %s", candidates[0][1])
        return candidates[0][1]

    async def _run(self, attempt: ConversionAttempt) -> CommandResult:
        try:
            result = await self._runner(attempt.args, attempt.timeout)
        except OSError as e:
            raise ConversionError(
                ErrorKind.EXTERNAL_TOOL_FAILURE,
                "Could not start LibreOffice",
                details=str(e),
            ) from e

        if result.timed_out:
            logger.error("LibreOffice timed out after %ss", attempt.timeout)
        elif result.returncode != 0:
            logger.error("LibreOffice conversion error, exit code %s", result.returncode)
            logger.error("Stderr: %s", result.stderr)
        else:
            logger.debug("LibreOffice stdout: %s", result.stdout)
        return result

    @staticmethod
    def _tool_failure(result: CommandResult, message: str) -> ConversionError:
        if result.timed_out:
            details = "LibreOffice did not finish in time"
        else:
            details = result.stderr.strip() or f"LibreOffice exited with code {result.returncode}"
        return ConversionError(ErrorKind.EXTERNAL_TOOL_FAILURE, message, details=details)


# Create singleton instance
libreoffice_converter = LibreOfficeConverter()
