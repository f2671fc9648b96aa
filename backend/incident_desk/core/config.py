from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    DBHOST: str = "localhost"
    DBPORT: int = 3306
    DBUSER: str = "root"
    DBPASS: str = ""
    DBNAME: str = "incidencias"
    PORT: int = 3300

    BCRYPT_ROUNDS: int = 10
    # Zone used to render incoming ISO timestamps; None means the server's local time
    TIMESTAMP_TIMEZONE: Optional[str] = None

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]

    @field_validator("TIMESTAMP_TIMEZONE")
    @classmethod
    def check_timezone(cls, value: Optional[str]) -> Optional[str]:
        if not value or value.upper() == "UTC":
            return value or None
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown time zone: {value}") from e
        return value

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
