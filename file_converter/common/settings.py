from pydantic_settings import BaseSettings
from pydantic import Field, model_validator


class Settings(BaseSettings):
    IS_DEBUG: bool = Field(
        default=False,
        description="Debug mode flag",
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Root log level",
    )
    HOST: str = Field(
        default="0.0.0.0",
        description="Bind address for uvicorn",
    )
    PORT: int = Field(
        default=3000,
        description="Bind port for uvicorn",
    )
    TEMP_DIR: str = Field(
        default="temp/file-converter",
        description="Process-scoped directory for per-request conversion files",
    )

    # Deployment signals
    VERCEL: str | None = Field(
        default=None,
        description="Set to 1 on Vercel deployments",
    )
    VERCEL_ENV: str | None = Field(
        default=None,
        description="Vercel environment name",
    )
    DOCKER_CONTAINER: str | None = Field(
        default=None,
        description="Set inside the docker image",
    )
    CONTAINER: str | None = Field(
        default=None,
        description="Generic container marker",
    )

    # Remote conversion API
    CONVERSION_API_KEY: str | None = Field(
        default=None,
        description="Zamzar API key, remote conversion is disabled without it",
    )
    ZAMZAR_API_BASE: str = Field(
        default="https://api.zamzar.com/v1",
        description="Zamzar API base URL",
    )
    ZAMZAR_POLL_INTERVAL_SECONDS: float = Field(
        default=2,
        gt=0,
        description="Delay between job status polls",
    )
    ZAMZAR_MAX_POLL_ATTEMPTS: int = Field(
        default=60,
        description="Maximum number of job status polls",
    )

    # LibreOffice
    LIBREOFFICE_COMMANDS: list[str] = Field(
        default=["libreoffice", "soffice"],
        description="Candidate LibreOffice executables, in probe order",
    )
    LIBREOFFICE_PROBE_TIMEOUT_SECONDS: float = Field(
        default=3,
        description="Timeout of the `--version` availability probe",
    )
    LIBREOFFICE_PROBE_TTL_SECONDS: float = Field(
        default=300,
        description="How long a successful probe is trusted",
    )
    LIBREOFFICE_TIMEOUT_SECONDS: float = Field(
        default=60,
        description="Conversion timeout for non-PDF sources",
    )
    LIBREOFFICE_PDF_TIMEOUT_SECONDS: float = Field(
        default=120,
        description="Conversion timeout for PDF sources",
    )

    # How long the browser waits before aborting a request
    CLIENT_TIMEOUT_SECONDS: float = Field(
        default=60,
        description="Client abort timeout for non-PDF sources",
    )
    CLIENT_PDF_TIMEOUT_SECONDS: float = Field(
        default=120,
        description="Client abort timeout for PDF sources",
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @model_validator(mode="after")
    def check_timeouts(self) -> "Settings":
        """Server side work must not outlive the client's wait"""
        if self.LIBREOFFICE_TIMEOUT_SECONDS > self.CLIENT_TIMEOUT_SECONDS:
            raise ValueError(
                "LIBREOFFICE_TIMEOUT_SECONDS must not exceed CLIENT_TIMEOUT_SECONDS"
            )
        if self.LIBREOFFICE_PDF_TIMEOUT_SECONDS > self.CLIENT_PDF_TIMEOUT_SECONDS:
            raise ValueError(
                "LIBREOFFICE_PDF_TIMEOUT_SECONDS must not exceed CLIENT_PDF_TIMEOUT_SECONDS"
            )
        if self.remote_wait_budget > self.CLIENT_PDF_TIMEOUT_SECONDS:
            raise ValueError(
                "ZAMZAR_POLL_INTERVAL_SECONDS * ZAMZAR_MAX_POLL_ATTEMPTS "
                "must not exceed CLIENT_PDF_TIMEOUT_SECONDS"
            )
        # At least one status check has to fit into the shorter client wait
        if self.ZAMZAR_POLL_INTERVAL_SECONDS > self.CLIENT_TIMEOUT_SECONDS:
            raise ValueError(
                "ZAMZAR_POLL_INTERVAL_SECONDS must not exceed CLIENT_TIMEOUT_SECONDS"
            )
        return self

    @property
    def is_serverless(self) -> bool:
        return self.VERCEL == "1" or bool(self.VERCEL_ENV)

    @property
    def is_container(self) -> bool:
        return bool(self.DOCKER_CONTAINER or self.CONTAINER)

    @property
    def remote_wait_budget(self) -> float:
        return self.ZAMZAR_POLL_INTERVAL_SECONDS * self.ZAMZAR_MAX_POLL_ATTEMPTS

    def max_poll_attempts_for(self, source_format: str) -> int:
        """
        Status checks allowed for a job whose source is `source_format`

        The sleeps between checks stay below the client's wait for that
        source, capped by ZAMZAR_MAX_POLL_ATTEMPTS.
        """
        budget = self.client_timeout_for(source_format)
        attempts = int(budget // self.ZAMZAR_POLL_INTERVAL_SECONDS)
        return max(1, min(self.ZAMZAR_MAX_POLL_ATTEMPTS, attempts))

    def remote_wait_budget_for(self, source_format: str) -> float:
        return self.ZAMZAR_POLL_INTERVAL_SECONDS * (
            self.max_poll_attempts_for(source_format) - 1
        )

    def libreoffice_timeout_for(self, source_format: str) -> float:
        if source_format == "pdf":
            return self.LIBREOFFICE_PDF_TIMEOUT_SECONDS
        return self.LIBREOFFICE_TIMEOUT_SECONDS

    def client_timeout_for(self, source_format: str) -> float:
        if source_format == "pdf":
            return self.CLIENT_PDF_TIMEOUT_SECONDS
        return self.CLIENT_TIMEOUT_SECONDS


settings = Settings()
