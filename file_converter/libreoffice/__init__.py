"""
Local LibreOffice conversion package
"""

from .converter import (
    LibreOfficeConverter,
    ConversionAttempt,
    PDF_FALLBACK_EXPORT_FILTERS,
    libreoffice_converter,
)

__all__ = [
    "LibreOfficeConverter",
    "ConversionAttempt",
    "PDF_FALLBACK_EXPORT_FILTERS",
    "libreoffice_converter",
]
