# ABOUTME: Pydantic model for heartbeat monitor settings
# ABOUTME: Validates interval strings and exposes them as timedelta properties

from datetime import timedelta

from pydantic import BaseModel, computed_field, field_validator, model_validator

from pulsewatch.monitor.interval import parse_interval


class MonitorConfig(BaseModel):
    """
    Configuration for heartbeat detection and status derivation.

    Attributes:
        marker: Substring a heartbeat title must contain (case-sensitive)
        service_name: Name of the monitored service shown in status messages
        offline_threshold: Silence after which the service counts as offline
        heartbeat_interval: How often the service is expected to post
        check_every: Period of the re-evaluation tick
    """

    marker: str = "EverLink Status"
    service_name: str = "EverLink"
    offline_threshold: str = "10m"
    heartbeat_interval: str = "8m"
    check_every: str = "30s"

    @field_validator("offline_threshold", "heartbeat_interval", "check_every")
    @classmethod
    def validate_interval(cls, v: str) -> str:
        """Reject interval strings that parse_interval can't handle."""
        try:
            parse_interval(v)
            return v
        except ValueError as e:
            raise ValueError(f"Invalid interval format: {e}") from e

    @field_validator("marker")
    @classmethod
    def validate_marker(cls, v: str) -> str:
        if not v:
            raise ValueError("Heartbeat marker must not be empty")
        return v

    @model_validator(mode="after")
    def check_interval_fits_threshold(self) -> "MonitorConfig":
        # A service posting slower than the threshold would flap offline between posts
        if self.heartbeat_interval_delta >= self.offline_threshold_delta:
            raise ValueError("heartbeat_interval must be shorter than offline_threshold")
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def offline_threshold_delta(self) -> timedelta:
        return parse_interval(self.offline_threshold)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def heartbeat_interval_delta(self) -> timedelta:
        return parse_interval(self.heartbeat_interval)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def check_every_delta(self) -> timedelta:
        return parse_interval(self.check_every)
