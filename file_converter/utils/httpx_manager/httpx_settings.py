from pydantic_settings import BaseSettings


class HttpxSettings(BaseSettings):
    MAX_CONCURRENT_REQUESTS: int = 1000
    MAX_CONNECTIONS: int = 200
    MAX_KEEPALIVE_CONNECTIONS: int = 10
    TIMEOUT: int = 30
    CLIENT_REQUEST_LIMIT: int = 50
    CLIENT_EXPIRE_SECONDS: int = 300  # 5 mins
    CLIENT_POOL_SIZE: int = 10

    class Config:
        env_prefix = "HTTPX_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


httpx_settings = HttpxSettings()
