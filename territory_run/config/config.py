from pathlib import Path
from dotenv import dotenv_values
from pydantic import Field
from pydantic_settings import BaseSettings

import os

# Explicitly load .env for local/dev environments only if values are missing from the environment
BASE_DIR = Path(__file__).resolve().parent.parent.parent
env_file = BASE_DIR / ".env"

if env_file.exists():
    file_env = dotenv_values(env_file)
    missing_keys = {k: v for k, v in file_env.items() if k not in os.environ}
    for k, v in missing_keys.items():
        os.environ[k] = v


class Settings(BaseSettings):
    """Application settings pulled from environment variables."""

    # Database Configuration
    db_host: str = Field(default="localhost", description="Database host")
    db_port: int = Field(default=5432, description="Database port")
    db_name: str = Field(default="territory_run", description="Database name")
    db_user: str = Field(default="postgres", description="Database user")
    db_password: str = Field(default="password", description="Database password")

    @property
    def database_url(self) -> str:
        """Construct full database URL."""
        return f"postgresql://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=5000, description="API port")
    debug: bool = Field(default=False, description="Enable debug mode")
    allowed_origins: str = Field(default="*", description="CORS allowed origins, comma separated")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (console or json)")

    # Conquest rules, fixed per deployment
    min_territory_area_m2: float = Field(default=200.0, gt=0, description="Smallest run polygon that may become a territory")
    score_weight_speed: float = Field(default=1000.0, gt=0, description="Battle score weight of average speed")
    score_weight_laps: float = Field(default=10.0, gt=0, description="Battle score weight of laps")
    size_ratio_min: float = Field(default=0.8, gt=0, description="Lower bound of the comparable-size band")
    size_ratio_max: float = Field(default=1.2, gt=0, description="Upper bound of the comparable-size band")

    # Concurrency
    max_conflict_retries: int = Field(default=3, ge=0, description="Retries of a run evaluation after a concurrent territory change")

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "forbid"  # Explicitly forbid undeclared env vars


# Instantiate singleton settings object
settings = Settings()
