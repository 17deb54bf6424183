from pydantic import field_validator
from pydantic_settings import BaseSettings

from idgen.utils.id_layout import BUCKET_CAPACITY, MAX_BUCKET_ATTEMPTS
from idgen.utils.server_ids import parse_server_ids

# Largest batch one generation call can ever fill
MAX_IDS_PER_CALL = MAX_BUCKET_ATTEMPTS * BUCKET_CAPACITY


class Settings(BaseSettings):
    ENV: str = "dev"
    NAMESPACE: str = "id_generator"
    SERVER_IDS: str = "0"
    MAX_BATCH_SIZE: int = MAX_IDS_PER_CALL
    GENERATE_TIMEOUT: float = 5.0
    LOG_LEVEL: str = "INFO"
    REDIS_HOST_EXTERNAL: str = "localhost"
    REDIS_HOST_INTERNAL: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_USERNAME: str | None = None
    REDIS_PASSWORD: str | None = None
    REDIS_SOCKET_TIMEOUT: float = 10.0
    REDIS_SOCKET_CONNECT_TIMEOUT: float = 20.0
    REDIS_HEALTH_CHECK_INTERVAL: int = 30

    class Config:
        env_file = ".env"

    @field_validator("MAX_BATCH_SIZE")
    @classmethod
    def validate_max_batch_size(cls, value: int) -> int:
        """Reject batch sizes a single call can never fill."""
        if not 1 <= value <= MAX_IDS_PER_CALL:
            raise ValueError(f"MAX_BATCH_SIZE must be between 1 and {MAX_IDS_PER_CALL}")
        return value

    @property
    def server_id_pool(self) -> list[int]:
        """Server ids parsed from ``SERVER_IDS``, e.g. ``"1,2,10-12"``."""
        return parse_server_ids(self.SERVER_IDS)


settings = Settings()
