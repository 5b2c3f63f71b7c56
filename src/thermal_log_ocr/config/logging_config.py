# ============================================================================
# src/thermal_log_ocr/config/logging_config.py
# ============================================================================
"""
Logging Settings
- Log level
- Output format
- Log file
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="THERMAL_LOG_")

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level"
    )
    LOG_FORMAT_JSON: bool = Field(
        default=False,
        description="Emit log records as JSON lines"
    )
    LOG_FILE: Optional[str] = Field(
        default=None,
        description="Optional file that receives a copy of every log record"
    )

logging_settings = LoggingSettings()
