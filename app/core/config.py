import os
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # 数据库配置
    POSTGRES_USER: str = os.getenv("POSTGRES_USER", "postgres")
    POSTGRES_PASSWORD: str = os.getenv("POSTGRES_PASSWORD", "123456")
    POSTGRES_HOST: str = os.getenv("POSTGRES_HOST", "localhost")
    POSTGRES_PORT: int = int(os.getenv("POSTGRES_PORT", "5432"))
    POSTGRES_DB: str = os.getenv("POSTGRES_DB", "toko")
    
    # Redis 配置
    REDIS_HOST: str = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT: int = int(os.getenv("REDIS_PORT", "6379"))
    REDIS_DB: int = int(os.getenv("REDIS_DB", "0"))

    # 省市区参考数据（EMSIFA）
    EMSIFA_BASE: str = os.getenv("EMSIFA_BASE", "https://www.emsifa.com/api-wilayah-indonesia/api")
    HTTP_TIMEOUT_MS: int = int(os.getenv("HTTP_TIMEOUT_MS", "5000"))
    HTTP_RETRY: int = int(os.getenv("HTTP_RETRY", "2"))
    CACHE_TTL_SECONDS: int = int(os.getenv("CACHE_TTL_SECONDS", "86400"))

    # 订单配置
    ORDER_DEFAULT_LIMIT: int = int(os.getenv("ORDER_DEFAULT_LIMIT", "10"))
    ORDER_MAX_LIMIT: int = int(os.getenv("ORDER_MAX_LIMIT", "100"))
    INVOICE_PREFIX: str = os.getenv("INVOICE_PREFIX", "INV")
    INVOICE_MAX_ATTEMPTS: int = int(os.getenv("INVOICE_MAX_ATTEMPTS", "3"))

    @property
    def database_url(self) -> str:
        return (
            f"postgresql+psycopg://"
            f"{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/"
            f"{self.POSTGRES_DB}"
        )

    @property
    def redis_url(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

settings = Settings()
