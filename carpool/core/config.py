from typing import Annotated, Any, Literal, Optional

from pydantic import AnyUrl, BeforeValidator, HttpUrl, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_cors(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",")]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "carpool"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    LOG_LEVEL: str = "INFO"

    SENTRY_DSN: Optional[HttpUrl] = None

    BACKEND_CORS_ORIGINS: Annotated[
        list[AnyUrl] | str, BeforeValidator(parse_cors)
    ] = []

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> list[str]:
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS]

    SQLALCHEMY_DATABASE_URI: str = "sqlite:///./carpool.db"

    # Route metrics
    AVERAGE_SPEED_KMH: float = 30.0
    COST_WEIGHT_DISTANCE: float = 0.7
    COST_WEIGHT_DURATION: float = 0.3

    # Wall-clock guard for the annealing loop, unset means iterations only
    ANNEALING_TIME_LIMIT_SECONDS: Optional[float] = None


settings = Settings()  # type: ignore
