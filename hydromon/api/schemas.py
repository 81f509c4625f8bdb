"""Validation schemas for data entered through the dashboard."""

from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, StrictBool
from pydantic import ValidationError as PydanticValidationError

from hydromon.shared.exceptions import ValidationError
from hydromon.shared.models import AlertSettings, DecodedReading

Model = TypeVar("Model", bound=BaseModel)


class ManualReadingInput(BaseModel):
    """A reading typed in by hand; bypasses the decoder.

    Expected format:
    {"temperature": 24.5, "ph": 6.1, "tdsLevel": 720, "humidity": 65}
    """

    model_config = ConfigDict(populate_by_name=True)

    temperature: float = Field(..., ge=-50, le=100, allow_inf_nan=False)
    ph: float = Field(..., ge=0, le=14, allow_inf_nan=False)
    tds_level: float = Field(..., alias="tdsLevel", ge=0, le=5000, allow_inf_nan=False)
    humidity: Optional[float] = Field(default=None, ge=0, le=100, allow_inf_nan=False)
    moisture: Optional[float] = Field(default=None, ge=0, le=100, allow_inf_nan=False)
    ec: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    light: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)

    def to_reading(self) -> DecodedReading:
        return DecodedReading(
            temperature=self.temperature,
            ph=self.ph,
            tds_level=self.tds_level,
            moisture=self.moisture,
            ec=self.ec,
            humidity=self.humidity,
            light=self.light,
        )


class AlertSettingsInput(BaseModel):
    """Full replacement of the alert toggles."""

    model_config = ConfigDict(populate_by_name=True)

    temperature_alerts: StrictBool = Field(..., alias="temperatureAlerts")
    ph_alerts: StrictBool = Field(..., alias="phAlerts")
    tds_level_alerts: StrictBool = Field(..., alias="tdsLevelAlerts")

    def to_settings(self) -> AlertSettings:
        return AlertSettings(
            temperature_alerts=self.temperature_alerts,
            ph_alerts=self.ph_alerts,
            tds_level_alerts=self.tds_level_alerts,
        )


def validate_payload(model: Type[Model], payload: Any) -> Model:
    """Validate a payload, converting pydantic errors to ValidationError.

    Raises:
        ValidationError: With one entry per violated constraint.
    """
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        errors = []
        for err in e.errors():
            location = ".".join(str(part) for part in err["loc"]) or "body"
            errors.append(f"{location}: {err['msg']}")
        raise ValidationError(f"Invalid {model.__name__}: {'; '.join(errors)}", errors) from e
