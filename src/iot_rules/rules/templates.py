"""Pre-built threshold rule templates for common monitoring scenarios.

Provides ready-to-use rule presets so operators can pick from a menu
instead of composing conditions from scratch.
"""

from __future__ import annotations

from dataclasses import dataclass

from .models import AlertAction, Condition, Logic, Rule
from .payload import parse_condition


@dataclass(frozen=True)
class RuleTemplate:
    """A pre-defined threshold rule template."""

    id: str
    name: str
    description: str
    category: str
    conditions: tuple[str, ...]  # Condition phrases, see payload.parse_condition
    logic: str  # "AND" | "OR"
    message: str
    icon: str  # Emoji for display


# ── Built-in templates ────────────────────────────────────────────
TEMPLATES: list[RuleTemplate] = [
    # ── Climate ───────────────────────────────────────────────────
    RuleTemplate(
        id="high-temperature",
        name="High Temperature",
        description="Alert when a device reports more than 30 °C",
        category="climate",
        conditions=("temperature > 30",),
        logic="AND",
        message="Temperature above 30 °C",
        icon="🌡️",
    ),
    RuleTemplate(
        id="frost-risk",
        name="Frost Risk",
        description="Alert when temperature drops to freezing",
        category="climate",
        conditions=("temperature <= 0",),
        logic="AND",
        message="Temperature at or below 0 °C",
        icon="❄️",
    ),
    RuleTemplate(
        id="heat-stress",
        name="Heat Stress",
        description="Hot and humid at the same time",
        category="climate",
        conditions=("temperature > 32", "humidity > 70"),
        logic="AND",
        message="Hot and humid conditions",
        icon="🥵",
    ),
    # ── Humidity ──────────────────────────────────────────────────
    RuleTemplate(
        id="dry-air",
        name="Dry Air",
        description="Alert when relative humidity falls below 30 %",
        category="humidity",
        conditions=("humidity < 30",),
        logic="AND",
        message="Humidity below 30 %",
        icon="🏜️",
    ),
    RuleTemplate(
        id="condensation-risk",
        name="Condensation Risk",
        description="Alert when relative humidity exceeds 85 %",
        category="humidity",
        conditions=("humidity > 85",),
        logic="AND",
        message="Humidity above 85 %",
        icon="💧",
    ),
    # ── Storage ───────────────────────────────────────────────────
    RuleTemplate(
        id="cold-chain-breach",
        name="Cold Chain Breach",
        description="Refrigerated storage leaves the 2–8 °C band",
        category="storage",
        conditions=("temperature < 2", "temperature > 8"),
        logic="OR",
        message="Cold storage outside 2–8 °C",
        icon="🧊",
    ),
    RuleTemplate(
        id="server-room",
        name="Server Room Out of Range",
        description="Server room temperature or humidity outside recommended range",
        category="storage",
        conditions=("temperature > 27", "humidity > 60"),
        logic="OR",
        message="Server room environment out of range",
        icon="🖥️",
    ),
    # ── Comfort ───────────────────────────────────────────────────
    RuleTemplate(
        id="comfort-band",
        name="Comfortable Room",
        description="Room is within the comfort band (18–24 °C, 40–60 %)",
        category="comfort",
        conditions=("temperature between 18 24", "humidity between 40 60"),
        logic="AND",
        message="Room is comfortable",
        icon="🛋️",
    ),
]

# Index for fast lookup
_TEMPLATES_BY_ID: dict[str, RuleTemplate] = {t.id: t for t in TEMPLATES}


def list_templates(category: str | None = None) -> list[RuleTemplate]:
    """Return all templates, optionally filtered by category."""
    if category:
        return [t for t in TEMPLATES if t.category == category]
    return list(TEMPLATES)


def get_template(template_id: str) -> RuleTemplate | None:
    """Look up a template by ID."""
    return _TEMPLATES_BY_ID.get(template_id)


def get_categories() -> list[str]:
    """Return sorted list of unique categories."""
    return sorted({t.category for t in TEMPLATES})


def template_conditions(template: RuleTemplate) -> list[Condition]:
    return [parse_condition(text) for text in template.conditions]


def rule_from_template(
    template: RuleTemplate,
    device_ids: list[str],
    name: str | None = None,
) -> Rule:
    """Instantiate a template as a new (unsaved) rule."""
    return Rule(
        name=name or template.name,
        device_ids=list(device_ids),
        conditions=template_conditions(template),
        logic=Logic(template.logic),
        action=AlertAction(message=template.message),
    )
