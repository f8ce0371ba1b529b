# validation.py
"""
Build validation and hard invariant checks.

`validate_character` reports problems a player should fix before leaving
creation (overspent BP, quality caps...). `invariant_violations` lists
states no operation may ever produce; the session treats any hit as a bug.
"""
from collections import Counter
from typing import Iterable, List

from pydantic import BaseModel

from ..character_pkg.schemas import Character
from . import calculations, core

ERROR = "error"
WARNING = "warning"


class ValidationIssue(BaseModel):
    severity: str
    code: str
    message: str


def _duplicates(names: Iterable[str]) -> List[str]:
    return [name for name, count in Counter(names).items() if count > 1]


def invariant_violations(character: Character) -> List[str]:
    problems = []
    if character.nuyen < 0:
        problems.append(f"nuyen is negative ({character.nuyen})")
    if character.karma < 0:
        problems.append(f"karma is negative ({character.karma})")
    if character.essence < 0:
        problems.append(f"essence is negative ({character.essence})")

    for item in character.equipment.gear:
        if item.capacity_used > item.capacity:
            problems.append(f"gear '{item.name}' holds {item.capacity_used} of {item.capacity} capacity")
    for armor in character.equipment.armor:
        if armor.capacity_used > armor.capacity:
            problems.append(f"armor '{armor.name}' holds {armor.capacity_used} of {armor.capacity} capacity")

    if calculations.free_metamagic_slots(character) < 0:
        problems.append("more metamagics than initiate grades")
    if calculations.free_echo_slots(character) < 0:
        problems.append("more echoes than submersion grades")

    collections = {
        "qualities": [q.name for q in character.qualities],
        "skills": [s.name for s in character.skills],
        "knowledge skills": [s.name for s in character.knowledge_skills],
    }
    if character.magic is not None:
        collections["spells"] = [s.name for s in character.magic.spells]
        collections["powers"] = [p.name for p in character.magic.powers]
    if character.resonance is not None:
        collections["complex forms"] = [f.name for f in character.resonance.complex_forms]
    for label, names in collections.items():
        for name in _duplicates(names):
            problems.append(f"duplicate entry '{name}' in {label}")
    return problems


def validate_character(character: Character) -> List[ValidationIssue]:
    """
    Checks a build against the creation rules.

    Returns:
        List[ValidationIssue]: Empty when the build is legal.
    """
    issues: List[ValidationIssue] = []

    remaining = calculations.remaining_bp(character)
    if remaining < 0:
        issues.append(ValidationIssue(
            severity=ERROR, code="bp_overspent",
            message=f"Build points overspent by {-remaining}",
        ))
    elif remaining > 0 and not character.is_career:
        issues.append(ValidationIssue(
            severity=WARNING, code="bp_unspent",
            message=f"{remaining} build points unspent",
        ))

    if not character.identity.metatype:
        issues.append(ValidationIssue(severity=ERROR, code="no_metatype", message="No metatype selected"))

    positive = sum(q.bp for q in character.qualities if q.category == "Positive")
    negative = -sum(q.bp for q in character.qualities if q.category == "Negative")
    if positive > core.MAX_POSITIVE_QUALITY_BP:
        issues.append(ValidationIssue(
            severity=ERROR, code="positive_qualities",
            message=f"Positive qualities cost {positive} BP (max {core.MAX_POSITIVE_QUALITY_BP})",
        ))
    if negative > core.MAX_NEGATIVE_QUALITY_BP:
        issues.append(ValidationIssue(
            severity=ERROR, code="negative_qualities",
            message=f"Negative qualities grant {negative} BP (max {core.MAX_NEGATIVE_QUALITY_BP})",
        ))

    if character.build_points_spent.resources > core.MAX_RESOURCES_BP:
        issues.append(ValidationIssue(
            severity=ERROR, code="resources",
            message=f"Resources cost {character.build_points_spent.resources} BP (max {core.MAX_RESOURCES_BP})",
        ))

    for code, value in character.attributes.items():
        limit = character.attribute_limits.get(code)
        if limit is None:
            continue
        if value.base < limit.min or value.base > limit.max:
            name = core.ATTRIBUTE_NAMES.get(code, code)
            issues.append(ValidationIssue(
                severity=ERROR, code="attribute_limits",
                message=f"{name} {value.base} is outside {limit.min}-{limit.max}",
            ))

    if character.magic is not None and character.resonance is not None:
        issues.append(ValidationIssue(
            severity=ERROR, code="magic_and_resonance",
            message="A character cannot be both awakened and a technomancer",
        ))

    for problem in invariant_violations(character):
        issues.append(ValidationIssue(severity=ERROR, code="invariant", message=problem))
    return issues


def is_valid(character: Character) -> bool:
    return not any(issue.severity == ERROR for issue in validate_character(character))
