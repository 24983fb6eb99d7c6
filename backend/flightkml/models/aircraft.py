"""
Entity presets for supported aircraft models.

Offsets are meters East/North/Up from the reported aircraft position.
"""

from flightkml.models.track import EntitySpec, ModelStyle

PHANTOM3_BODY_MODEL = "phantom_3_body_dec2.dae"
PHANTOM3_PROP_MODEL = "phantom_3_prop_singl_run2.dae"

PROP_ARM = 0.0109   # meters from center along each axis
PROP_HEIGHT = 0.15  # meters above reported position


def _prop(index: int, x: float, y: float) -> EntitySpec:
    return EntitySpec(
        name=f"Prop{index}",
        offset=(x, y, PROP_HEIGHT),
        model=ModelStyle(href=PHANTOM3_PROP_MODEL, line_style="noLineNoPoly"),
    )


PHANTOM3_ENTITIES: list[EntitySpec] = [
    EntitySpec(
        name="Body",
        offset=(0.0, 0.0, 0.1),
        model=ModelStyle(href=PHANTOM3_BODY_MODEL, line_style="yellowLineGreenPoly"),
    ),
    _prop(1, PROP_ARM, PROP_ARM),
    _prop(2, PROP_ARM, -PROP_ARM),
    _prop(3, -PROP_ARM, -PROP_ARM),
    _prop(4, -PROP_ARM, PROP_ARM),
]


def find_entity(name: str, entities: list[EntitySpec] = PHANTOM3_ENTITIES):
    """Look up a preset entity by name (case-insensitive)."""
    for entity in entities:
        if entity.name.lower() == name.lower():
            return entity
    return None
