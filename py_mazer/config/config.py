from pathlib import Path
from dotenv import dotenv_values
from pydantic import Field
from pydantic_settings import BaseSettings

import os

# Load .env for local/dev environments only for values missing from the environment
BASE_DIR = Path(__file__).resolve().parent.parent.parent
env_file = BASE_DIR / ".env"

if env_file.exists():
    file_env = dotenv_values(env_file)
    missing_keys = {k: v for k, v in file_env.items() if k not in os.environ and v is not None}
    for k, v in missing_keys.items():
        os.environ[k] = v


class Settings(BaseSettings):
    """Application settings pulled from environment variables."""

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (plain or json)")

    # Simulation Configuration
    default_seed: str = Field(default="", description="Seed used when a request gives none (empty = random)")
    default_radius: float = Field(default=420.0, description="Radius of the default initial circle")
    default_num_points: int = Field(default=75, description="Point count of the default initial curve")
    max_initial_points: int = Field(default=1000, description="Max points allowed in an initial curve")

    # Performance Configuration
    executor_kind: str = Field(default="process", description="Batch executor: process, thread or inline")
    max_workers: int = Field(default=2, description="Workers shared by all simulations")
    max_steps_per_request: int = Field(default=500, description="Max steps in a single batch")
    max_simulations: int = Field(default=32, description="Max concurrently held simulations")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Instantiate singleton settings object
settings = Settings()
