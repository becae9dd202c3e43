"""Pydantic models for threshold rules, telemetry, and action intents."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, field_validator, model_validator


class Sensor(str, Enum):
    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"


class Operator(str, Enum):
    GT = ">"
    LT = "<"
    GE = ">="
    LE = "<="
    EQ = "=="
    BETWEEN = "between"


class Logic(str, Enum):
    AND = "AND"
    OR = "OR"


class Condition(BaseModel):
    sensor: Sensor
    operator: Operator
    value: float | None = None
    value_min: float | None = None  # between only
    value_max: float | None = None  # between only

    @model_validator(mode="after")
    def _check_operands(self) -> Condition:
        if self.operator is Operator.BETWEEN:
            if self.value_min is None or self.value_max is None:
                raise ValueError("'between' requires value_min and value_max")
            if self.value_min > self.value_max:
                raise ValueError(
                    f"value_min ({self.value_min}) must be <= value_max ({self.value_max})"
                )
        elif self.value is None:
            raise ValueError(f"operator '{self.operator.value}' requires value")
        return self

    def describe(self) -> str:
        if self.operator is Operator.BETWEEN:
            return f"{self.sensor.value} between {self.value_min:g} and {self.value_max:g}"
        return f"{self.sensor.value} {self.operator.value} {self.value:g}"


class AlertAction(BaseModel):
    type: Literal["alert"] = "alert"
    message: str = "Alert triggered"


class DeviceControlAction(BaseModel):
    type: Literal["device_control"] = "device_control"
    target_device_id: str
    command: str = "toggle"

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_target(cls, data: Any) -> Any:
        # Dashboard exports name the field "target"
        if isinstance(data, dict) and "target" in data and "target_device_id" not in data:
            data = {**data, "target_device_id": data["target"]}
            data.pop("target")
        return data


class WebhookAction(BaseModel):
    type: Literal["webhook"] = "webhook"
    url: str


Action = Annotated[
    Union[AlertAction, DeviceControlAction, WebhookAction],
    Field(discriminator="type"),
]


class Rule(BaseModel):
    id: str = ""  # Assigned by RuleStore.add
    name: str = ""
    device_ids: list[str] = Field(default_factory=list)
    conditions: list[Condition] = Field(min_length=1)
    logic: Logic = Logic.AND
    action: Action = Field(default_factory=AlertAction)
    enabled: bool = True
    created_at: datetime = Field(default_factory=datetime.now)

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_devices(cls, data: Any) -> Any:
        if isinstance(data, dict) and "devices" in data and "device_ids" not in data:
            data = {**data, "device_ids": data["devices"]}
            data.pop("devices")
        return data

    @field_validator("device_ids")
    @classmethod
    def _dedupe_devices(cls, v: list[str]) -> list[str]:
        return list(dict.fromkeys(v))


class TelemetrySample(BaseModel):
    device_id: str
    temperature: float | None = None
    humidity: float | None = None
    timestamp: datetime = Field(default_factory=datetime.now)

    def reading(self, sensor: Sensor | str) -> float | None:
        """Return the reading for ``sensor``, or None if the sample lacks it."""
        try:
            sensor = Sensor(sensor)
        except ValueError:
            return None
        return getattr(self, sensor.value)


class TriggerResult(BaseModel):
    rule_id: str
    device_id: str
    matched: bool
    sample: TelemetrySample


def new_intent_id() -> str:
    return f"ai_{uuid.uuid4().hex[:10]}"


class ActionIntent(BaseModel):
    """A rule fired for a device; handed to an action-delivery collaborator."""

    id: str = Field(default_factory=new_intent_id)
    rule_id: str
    rule_name: str = ""
    device_id: str
    action: Action
    sample: TelemetrySample
    triggered_at: datetime = Field(default_factory=datetime.now)
