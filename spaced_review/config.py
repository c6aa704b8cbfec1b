from pydantic_settings import BaseSettings
from pathlib import Path

# Get the project root directory (parent of the package folder)
PROJECT_ROOT = Path(__file__).parent.parent

class Settings(BaseSettings):
    """Engine configuration loaded from environment variables"""
    database_url: str = "sqlite:///./spaced_review.db"

    # Logging
    log_level: str = "INFO"
    log_to_file: bool = False

    # Scheduling knobs
    partial_dampening: float = 0.75  # growth multiplier for "partial" reviews
    max_interval_days: int = 365  # cap on interval growth
    default_difficulty: int = 3
    default_schedule_days: int = 7

    # Reminder feed
    risk_threshold: float = 60.0  # retention % below which a topic is at risk
    due_soon_hours: int = 48
    reminder_limit: int = 20

    class Config:
        env_file = str(PROJECT_ROOT / ".env")
        env_prefix = "SPACED_REVIEW_"
        extra = "ignore"

settings = Settings()
