from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    error: str
    details: str | None = None


class ClientSideConversionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_side_conversion: bool = Field(True, alias="clientSideConversion")
    message: str


class SelfHostingErrorResponse(ErrorResponse):
    model_config = ConfigDict(populate_by_name=True)

    self_hosting_info: bool = Field(True, alias="selfHostingInfo")


class FormatGroupInfo(BaseModel):
    key: str
    name: str
    formats: list[str]


class FormatTargets(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    targets: list[str]
    browser_targets: list[str] = Field(alias="browserTargets")


class FormatsResponse(BaseModel):
    groups: list[FormatGroupInfo]
    conversions: dict[str, FormatTargets]
