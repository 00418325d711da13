"""
Supported formats, grouped by category, and which conversions are offered
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class FormatGroup:
    key: str
    name: str
    formats: tuple[str, ...]


FORMAT_GROUPS: tuple[FormatGroup, ...] = (
    FormatGroup("document", "Document", ("odt", "doc", "docx", "pdf", "rtf", "txt")),
    FormatGroup("spreadsheet", "Spreadsheet", ("ods", "xls", "xlsx", "csv")),
    FormatGroup("presentation", "Presentation", ("odp", "ppt", "pptx")),
    FormatGroup("image", "Image", ("jpg", "jpeg", "png", "gif", "svg", "webp")),
)

_DOCUMENT_TARGETS = {"odt", "doc", "docx", "pdf", "rtf", "txt"}
_SPREADSHEET_TARGETS = {"ods", "xls", "xlsx", "csv", "pdf"}
_PRESENTATION_TARGETS = {"odp", "ppt", "pptx", "pdf", "png", "jpg"}
_IMAGE_TARGETS = {"jpg", "jpeg", "png", "gif", "webp", "pdf"}

COMPATIBILITY_MATRIX: dict[str, set[str]] = {
    **{fmt: _DOCUMENT_TARGETS - {fmt} for fmt in ("odt", "doc", "docx", "rtf", "txt")},
    "pdf": {"odt", "doc", "docx", "rtf", "txt", "png", "jpg"},
    **{fmt: _SPREADSHEET_TARGETS - {fmt} for fmt in ("ods", "xls", "xlsx", "csv")},
    **{fmt: _PRESENTATION_TARGETS - {fmt} for fmt in ("odp", "ppt", "pptx")},
    **{fmt: _IMAGE_TARGETS - {fmt} for fmt in ("jpg", "jpeg", "png", "gif", "webp")},
    "svg": {"png", "jpg", "pdf"},
}

# Raster pairs a browser canvas can re-encode without the server
BROWSER_CONVERSIONS: dict[str, set[str]] = {
    "png": {"jpeg", "jpg", "webp"},
    "jpeg": {"png", "webp"},
    "jpg": {"png", "webp"},
    "webp": {"png", "jpeg", "jpg"},
}

CONTENT_TYPES = {
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "ppt": "application/vnd.ms-powerpoint",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "odt": "application/vnd.oasis.opendocument.text",
    "ods": "application/vnd.oasis.opendocument.spreadsheet",
    "odp": "application/vnd.oasis.opendocument.presentation",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "webp": "image/webp",
    "txt": "text/plain",
    "rtf": "application/rtf",
    "csv": "text/csv",
}

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def get_extension(file_name: str) -> str:
    """Lower-cased extension without the dot, empty when there is none"""
    return os.path.splitext(file_name)[1][1:].lower()


def get_content_type(target_format: str) -> str:
    return CONTENT_TYPES.get(target_format.lower(), DEFAULT_CONTENT_TYPE)


class FormatRegistry:
    """Pure lookups over the format groups and the compatibility matrix.

    A source format that is known but has no matrix entry may target every
    known format except itself. Unknown source formats have no targets.
    """

    def __init__(
        self,
        groups: tuple[FormatGroup, ...] = FORMAT_GROUPS,
        matrix: dict[str, set[str]] | None = None,
        browser_conversions: dict[str, set[str]] | None = None,
    ) -> None:
        self.groups = groups
        self.matrix = COMPATIBILITY_MATRIX if matrix is None else matrix
        self.browser_conversions = (
            BROWSER_CONVERSIONS if browser_conversions is None else browser_conversions
        )
        self._group_by_format: dict[str, FormatGroup] = {}
        for group in groups:
            for fmt in group.formats:
                if fmt in self._group_by_format:
                    raise ValueError(
                        f"Format {fmt!r} is listed in both "
                        f"{self._group_by_format[fmt].key!r} and {group.key!r}"
                    )
                self._group_by_format[fmt] = group

    @property
    def all_formats(self) -> list[str]:
        return [fmt for group in self.groups for fmt in group.formats]

    def group_of(self, fmt: str) -> FormatGroup | None:
        return self._group_by_format.get(fmt.lower())

    def is_known(self, fmt: str) -> bool:
        return fmt.lower() in self._group_by_format

    def valid_format(self, file_name: str) -> bool:
        return self.is_known(get_extension(file_name))

    def valid_targets(self, source_format: str) -> set[str]:
        source_format = source_format.lower()
        if not self.is_known(source_format):
            return set()
        if source_format in self.matrix:
            targets = set(self.matrix[source_format])
        else:
            targets = set(self.all_formats)
        targets.discard(source_format)
        return targets

    def is_external_tool_format(self, fmt: str) -> bool:
        group = self.group_of(fmt)
        return group is not None and group.key != "image"

    def is_image_format(self, fmt: str) -> bool:
        group = self.group_of(fmt)
        return group is not None and group.key == "image"

    def can_convert_in_browser(self, source_format: str, target_format: str) -> bool:
        source_format = source_format.lower()
        target_format = target_format.lower()
        if not (self.is_image_format(source_format) and self.is_image_format(target_format)):
            return False
        return target_format in self.browser_conversions.get(source_format, set())


format_registry = FormatRegistry()
