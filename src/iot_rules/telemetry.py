"""Telemetry input: parse samples and group them into evaluation ticks.

A telemetry file is a sequence of ticks. In a ``.json`` file the top-level
array holds the ticks; in a JSON Lines file each non-blank line is one
tick. A tick is either a single sample object or an array of samples
evaluated together as one batch.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .exceptions import InvalidFormatError
from .rules.models import TelemetrySample

logger = logging.getLogger("iot-rules")

Tick = list[TelemetrySample]


def parse_sample(data: Any) -> TelemetrySample:
    if not isinstance(data, dict):
        raise InvalidFormatError(
            f"Telemetry sample must be an object, got {type(data).__name__}"
        )
    try:
        return TelemetrySample.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        loc = ".".join(str(p) for p in first["loc"])
        raise InvalidFormatError(f"Invalid telemetry sample ({loc}): {first['msg']}") from e


def parse_tick(data: Any) -> Tick:
    if isinstance(data, list):
        return [parse_sample(item) for item in data]
    return [parse_sample(data)]


def parse_ticks(data: Any) -> list[Tick]:
    if not isinstance(data, list):
        raise InvalidFormatError("Telemetry file must contain a JSON array of ticks")
    return [parse_tick(item) for item in data]


def load_ticks(path: str | Path) -> list[Tick]:
    """Read ticks from a ``.json`` array file or a JSON Lines file."""
    path = Path(path).expanduser()
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise InvalidFormatError(f"{path} is not UTF-8 text: {e}") from e

    if path.suffix == ".json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise InvalidFormatError(f"Invalid JSON in {path}: {e}") from e
        ticks = parse_ticks(data)
    else:
        ticks = []
        for lineno, line in enumerate(text.splitlines(), 1):
            if not line.strip():
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError as e:
                raise InvalidFormatError(f"{path}:{lineno}: invalid JSON: {e}") from e
            ticks.append(parse_tick(data))

    logger.debug(f"Loaded {len(ticks)} tick(s) from {path}")
    return ticks


def group_by_device(samples: Iterable[TelemetrySample]) -> dict[str, TelemetrySample]:
    """Latest sample per device. On equal timestamps the later entry wins."""
    latest: dict[str, TelemetrySample] = {}
    for sample in samples:
        current = latest.get(sample.device_id)
        if current is None or _not_older(sample, current):
            latest[sample.device_id] = sample
    return latest


def _not_older(sample: TelemetrySample, current: TelemetrySample) -> bool:
    try:
        return sample.timestamp >= current.timestamp
    except TypeError:
        # Naive vs aware timestamps: fall back to arrival order
        return True
