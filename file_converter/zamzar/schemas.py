from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class JobState(StrEnum):
    SUBMITTED = "submitted"
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


TERMINAL_STATES = {JobState.SUCCEEDED, JobState.FAILED, JobState.TIMED_OUT}


class ZamzarFile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: Optional[str] = None
    size: Optional[int] = None


class ZamzarFailure(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: Optional[int] = None
    message: Optional[str] = None


class ZamzarJob(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    key: Optional[str] = None
    status: str
    failure: Optional[ZamzarFailure] = None
    failure_reason: Optional[str] = None
    target_format: Optional[str] = None
    target_files: list[ZamzarFile] = Field(default_factory=list)

    @property
    def failure_message(self) -> str:
        if self.failure and self.failure.message:
            return self.failure.message
        return self.failure_reason or "Unknown reason"
