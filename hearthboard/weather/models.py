"""Weather data models for the ``/api/weather`` boundary."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN_ICON = "🌡️"


class CurrentConditions(BaseModel):
    """Current temperature and condition."""

    temp: Optional[int] = None
    condition: str = "Unavailable"
    icon: str = UNKNOWN_ICON

    model_config = ConfigDict(frozen=True)


class DailyRange(BaseModel):
    """Today's forecast high and low."""

    high: Optional[int] = None
    low: Optional[int] = None

    model_config = ConfigDict(frozen=True)


class WeatherReport(BaseModel):
    """Weather snapshot; temperatures are whole degrees Fahrenheit."""

    current: CurrentConditions = Field(default_factory=CurrentConditions)
    today: DailyRange = Field(default_factory=DailyRange)
    error: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def available(self) -> bool:
        return self.error is None and self.current.temp is not None

    @classmethod
    def unavailable(cls, error: str) -> "WeatherReport":
        """Null-filled report returned when weather could not be retrieved."""
        return cls(error=error)

    def to_api_dict(self) -> dict[str, Any]:
        """Serialize for the HTTP boundary; ``error`` only appears when set."""
        body = self.model_dump(exclude={"error"})
        if self.error is not None:
            body["error"] = self.error
        return body

    @classmethod
    def from_api_dict(cls, data: Any) -> "WeatherReport":
        """Parse a boundary payload."""
        return cls.model_validate(data)
