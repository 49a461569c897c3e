# rvce_calculator/config.py

from pathlib import Path
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Where the saved buckets live (one JSON file per key)
    STORAGE_DIR: str = str(Path.home() / ".rvce_calculator")

    # Prefix for every stored key, keep stable or saved data is lost
    STORAGE_NAMESPACE: str = "rvce_calculator"

    # Credit weight of a cycle when its SGPA is entered directly
    CYCLE_OVERRIDE_CREDITS: int = 20

    LOG_LEVEL: str = "INFO"

    class Config:
        env_prefix = "RVCE_CALC_"
        case_sensitive = False


CONFIG = Settings()
