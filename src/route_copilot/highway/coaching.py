"""Coaching metadata and spoken text for highway bend markers."""

from __future__ import annotations

from enum import Enum

from route_copilot.route.models import LEFT, Bend

BASE_TARGET_MPH = 75


class HighwayMode(str, Enum):
    BASIC = "basic"
    """Direction and angle only."""

    COMPANION = "companion"
    """Adds target speeds and rhythm narration."""


# ---------------------------------------------------------------------------
# Coaching metadata
# ---------------------------------------------------------------------------

def optimal_speed(bend: Bend, base: int = BASE_TARGET_MPH) -> int:
    """Suggested speed through *bend* (mph)."""
    angle = bend.angle
    speed = base
    if angle > 30:
        speed -= 15
    elif angle > 20:
        speed -= 10
    elif angle > 15:
        speed -= 5
    elif angle > 10:
        speed -= 3
    if bend.is_s_sweep:
        speed -= 5
    return speed


def throttle_advice(bend: Bend) -> str:
    if bend.is_s_sweep:
        return "Lift through transition, power out of second bend"
    if bend.angle < 10:
        return "Maintain throttle"
    if bend.angle < 15:
        return "Light lift, smooth through"
    if bend.angle < 25:
        return "Ease off entry, progressive throttle from apex"
    return "Brake before entry, accelerate from apex"


def severity(angle: float) -> int:
    """Severity 1 (gentle) to 5 (hard)."""
    if angle < 10:
        return 1
    if angle < 20:
        return 2
    if angle < 30:
        return 3
    if angle < 40:
        return 4
    return 5


def modifier(bend: Bend) -> str | None:
    if bend.is_s_sweep:
        return "S-SWEEP"
    if bend.length_m > 300:
        return "LONG"
    if bend.angle < 10:
        return "GENTLE"
    return None


def apply_coaching(bends: list[Bend], base: int = BASE_TARGET_MPH) -> list[Bend]:
    """Fill the coaching fields of every marker in place and return the list."""
    for bend in bends:
        bend.optimal_speed = optimal_speed(bend, base)
        bend.throttle_advice = throttle_advice(bend)
        bend.severity = severity(bend.angle)
        bend.modifier = modifier(bend)
    return bends


# ---------------------------------------------------------------------------
# Spoken text
# ---------------------------------------------------------------------------

def _dir(direction: str) -> str:
    return "left" if direction == LEFT else "right"


def _dir_title(direction: str) -> str:
    return "Left" if direction == LEFT else "Right"


def section_narration(children: list[Bend], base: int = BASE_TARGET_MPH) -> str:
    """Rhythm narration for a run of bends, e.g.

    ``"Active section, 3 bends. Right entry 65. Then left 70. Final right 72. Exit clear."``
    """
    parts = [f"Active section, {len(children)} bends."]
    last = len(children) - 1
    for i, child in enumerate(children):
        speed = optimal_speed(child, base)
        if i == 0:
            parts.append(f"{_dir_title(child.direction)} entry {speed}.")
        elif i == last:
            parts.append(f"Final {_dir(child.direction)} {speed}.")
        else:
            parts.append(f"Then {_dir(child.direction)} {speed}.")
    parts.append("Exit clear.")
    return " ".join(parts)


def highway_callout_type(bend: Bend) -> str:
    if bend.is_section:
        return "highway_section"
    if bend.is_s_sweep:
        return "s_sweep"
    return "highway_bend"


def generate_highway_callout(bend: Bend, mode: HighwayMode = HighwayMode.BASIC) -> str:
    """Spoken text for a bend, S-sweep or section marker."""
    companion = HighwayMode(mode) is HighwayMode.COMPANION

    if bend.is_section:
        if companion and bend.narration:
            return bend.narration
        return f"Active section, {bend.bend_count} bends"

    if bend.is_s_sweep and len(bend.bends) >= 2:
        first, second = bend.bends[0], bend.bends[1]
        text = (
            f"S sweep: {_dir(first.direction)} {first.angle}, "
            f"then {_dir(second.direction)} {second.angle}."
        )
        if bend.gap_m is not None and bend.gap_m < 100:
            text += " Quick transition."
        if companion and bend.optimal_speed:
            text += f" Target {bend.optimal_speed}."
        return text

    direction = _dir(bend.direction)
    if bend.angle < 15:
        length = "very long " if bend.length_m > 500 else "long " if bend.length_m > 300 else ""
        return f"{length}gentle {direction} sweep, {bend.angle} degrees".capitalize()

    text = f"{_dir_title(bend.direction)} sweep, {bend.angle} degrees."
    if companion and bend.optimal_speed:
        text += f" Target {bend.optimal_speed}."
    return text
