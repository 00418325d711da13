import os

from pydantic import BaseModel, Field

from file_converter.utils.formats import get_extension


class ConversionRequest(BaseModel):
    file_name: str
    file_bytes: bytes = Field(repr=False)
    target_format: str

    @property
    def source_format(self) -> str:
        return get_extension(self.file_name)

    @property
    def base_name(self) -> str:
        """File name without directories and its last extension"""
        name = os.path.basename(self.file_name.replace("\\", "/"))
        base = os.path.splitext(name)[0]
        return base or "converted"

    @property
    def output_file_name(self) -> str:
        return f"{self.base_name}.{self.target_format.lower()}"


class ConversionResult(BaseModel):
    file_bytes: bytes = Field(repr=False)
    file_name: str
    content_type: str = "application/octet-stream"
    converter: str


class ClientSideConversion(BaseModel):
    """The browser can re-encode this pair itself"""

    source_format: str
    target_format: str
    message: str = "Image conversions should be handled on the client side"
