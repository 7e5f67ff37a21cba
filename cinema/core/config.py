from dataclasses import dataclass
from datetime import timedelta

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Cinema Scheduler API"
    API_V1_STR: str = "/api/v1"

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "cinema_db"
    POSTGRES_PORT: int = 5432
    DATABASE_URL: str = ""

    # Business day
    DAY_OPEN_HOUR: int = 9
    LATEST_START_HOUR: int = 21
    CLEANING_BUFFER_MINUTES: int = 30
    ALLOW_PAST_SCHEDULING: bool = False

    # Slot suggestions
    MAX_SUGGESTIONS: int = 4
    ROUNDING_MINUTES: int = 5
    LATE_SLOT_SLACK_MINUTES: int = 15

    # Seat holds
    HOLD_TTL_MINUTES: int = 10
    MAX_SEATS_PER_HOLD: int = 10
    REFUND_DEADLINE_MINUTES: int = 120
    SWEEP_INTERVAL_SECONDS: int = 300

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    def assemble_db_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"


settings = Settings()
settings.DATABASE_URL = settings.assemble_db_url()


@dataclass(frozen=True)
class ScheduleRules:
    """Business-day constraints handed to the scheduling service."""

    day_open_hour: int = 9
    latest_start_hour: int = 21
    cleaning_buffer_minutes: int = 30
    max_suggestions: int = 4
    rounding_minutes: int = 5
    late_slot_slack_minutes: int = 15

    def __post_init__(self) -> None:
        if not (0 <= self.day_open_hour <= 23 and 0 <= self.latest_start_hour <= 23):
            raise ValueError("Business hours must be between 0 and 23")
        if self.day_open_hour > self.latest_start_hour:
            raise ValueError("Opening hour cannot be after the latest start hour")
        if self.cleaning_buffer_minutes < 0:
            raise ValueError("Cleaning buffer cannot be negative")
        if self.max_suggestions < 1 or self.rounding_minutes < 1:
            raise ValueError("Suggestion count and rounding step must be positive")
        if self.late_slot_slack_minutes < 0:
            raise ValueError("Late slot slack cannot be negative")

    @property
    def cleaning_buffer(self) -> timedelta:
        return timedelta(minutes=self.cleaning_buffer_minutes)

    @property
    def granularity(self) -> timedelta:
        return timedelta(minutes=self.rounding_minutes)

    @property
    def late_slack(self) -> timedelta:
        return timedelta(minutes=self.late_slot_slack_minutes)

    @classmethod
    def from_settings(cls, s: Settings) -> "ScheduleRules":
        return cls(
            day_open_hour=s.DAY_OPEN_HOUR,
            latest_start_hour=s.LATEST_START_HOUR,
            cleaning_buffer_minutes=s.CLEANING_BUFFER_MINUTES,
            max_suggestions=s.MAX_SUGGESTIONS,
            rounding_minutes=s.ROUNDING_MINUTES,
            late_slot_slack_minutes=s.LATE_SLOT_SLACK_MINUTES,
        )


@dataclass(frozen=True)
class ReservationRules:
    """Hold lifetime and refund policy handed to the reservation service."""

    hold_ttl_minutes: int = 10
    max_seats_per_hold: int = 10
    refund_deadline_minutes: int = 120

    def __post_init__(self) -> None:
        if self.hold_ttl_minutes < 1:
            raise ValueError("Hold TTL must be positive")
        if self.max_seats_per_hold < 1:
            raise ValueError("Seat limit per hold must be positive")
        if self.refund_deadline_minutes < 0:
            raise ValueError("Refund deadline cannot be negative")

    @classmethod
    def from_settings(cls, s: Settings) -> "ReservationRules":
        return cls(
            hold_ttl_minutes=s.HOLD_TTL_MINUTES,
            max_seats_per_hold=s.MAX_SEATS_PER_HOLD,
            refund_deadline_minutes=s.REFUND_DEADLINE_MINUTES,
        )
