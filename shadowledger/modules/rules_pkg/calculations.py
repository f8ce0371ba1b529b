# calculations.py
"""
Derived projections over a character snapshot.

Everything here is pure and recomputed on read. Nothing is cached on the
snapshot, so a change to qualities or equipment is always reflected.
"""
import math
from typing import Dict, List

from pydantic import BaseModel

from ..character_pkg.schemas import Character, CharacterArmor
from . import core
from .core import MagicType


# --- Attributes ---

def attribute_total(character: Character, code: str) -> int:
    """Base + karma + bonus, or 0 when the attribute is absent (mag/res)."""
    value = character.attributes.get(code)
    if value is None:
        return 0
    return value.total


def attribute_rating(character: Character, code: str) -> int:
    """Natural rating (base + karma) without augmentation bonuses."""
    value = character.attributes.get(code)
    if value is None:
        return 0
    return value.rating


def current_essence(character: Character) -> float:
    return core.round_essence(character.essence)


def essence_spent(character: Character) -> float:
    """Total essence carried by installed cyberware and bioware."""
    total = sum(c.essence for c in character.equipment.cyberware)
    total += sum(b.essence for b in character.equipment.bioware)
    return core.round_essence(total)


# --- Build points / money ---

def total_bp_spent(character: Character) -> int:
    return character.build_points_spent.total()


def remaining_bp(character: Character) -> int:
    return character.build_points - total_bp_spent(character)


def bp_breakdown(character: Character) -> Dict[str, int]:
    return character.build_points_spent.model_dump()


def remaining_nuyen(character: Character) -> int:
    return character.nuyen


def equipment_cost(character: Character) -> int:
    """Nuyen currently tied up in owned equipment (lifestyle prepaid included)."""
    equipment = character.equipment
    total = 0
    for weapon in equipment.weapons:
        total += weapon.cost + sum(a.cost for a in weapon.accessories)
    for armor in equipment.armor:
        total += armor.cost + sum(m.cost for m in armor.modifications)
    total += sum(c.cost for c in equipment.cyberware)
    total += sum(b.cost for b in equipment.bioware)
    total += sum(v.cost for v in equipment.vehicles)
    total += sum(g.cost * g.quantity for g in equipment.gear)
    if equipment.lifestyle is not None:
        total += equipment.lifestyle.prepaid_cost
    if character.magic is not None:
        total += sum(f.cost for f in character.magic.foci)
    return total


# --- Magic / resonance ---

def magic_type(character: Character) -> MagicType:
    return core.classify_magic((q.name, q.capability) for q in character.qualities)


def is_awakened(character: Character) -> bool:
    return magic_type(character) in core.AWAKENED_TYPES


def is_technomancer(character: Character) -> bool:
    return magic_type(character) == MagicType.TECHNOMANCER


def power_points_remaining(character: Character) -> float:
    if character.magic is None:
        return 0.0
    return round(character.magic.power_points - character.magic.power_points_used, 2)


def free_metamagic_slots(character: Character) -> int:
    if character.magic is None:
        return 0
    return character.magic.initiate_grade - len(character.magic.metamagics)


def free_echo_slots(character: Character) -> int:
    if character.resonance is None:
        return 0
    return character.resonance.submersion_grade - len(character.resonance.echoes)


# --- Condition monitors ---

def physical_condition_max(character: Character) -> int:
    return math.ceil(attribute_total(character, "bod") / 2) + 8


def stun_condition_max(character: Character) -> int:
    return math.ceil(attribute_total(character, "wil") / 2) + 8


def overflow_boxes(character: Character) -> int:
    return attribute_total(character, "bod")


def wound_modifier(character: Character) -> int:
    """
    Dice pool penalty from damage taken, as a positive number.

    Every full three boxes on either track is one point.
    """
    condition = character.condition
    return condition.physical_current // 3 + condition.stun_current // 3


def edge_remaining(character: Character) -> int:
    return max(0, attribute_total(character, "edg") - character.condition.edge_current)


# --- Initiative ---

def initiative(character: Character) -> int:
    return attribute_total(character, "rea") + attribute_total(character, "int")


def initiative_passes(character: Character) -> int:
    passes = 1
    for cyber in character.equipment.cyberware:
        name = cyber.name.lower()
        rating = cyber.rating or 1
        if "wired reflexes" in name or "synaptic booster" in name or "move-by-wire" in name:
            passes = max(passes, rating + 1)
    if character.magic is not None:
        for power in character.magic.powers:
            if "improved reflexes" in power.name.lower():
                passes = max(passes, power.level + 1)
    return passes


def initiative_bonus(character: Character) -> int:
    bonus = 0
    for cyber in character.equipment.cyberware:
        name = cyber.name.lower()
        rating = cyber.rating or 1
        if "wired reflexes" in name or "synaptic booster" in name:
            bonus = max(bonus, rating)
        elif "move-by-wire" in name:
            bonus = max(bonus, rating * 2)
        elif "reaction enhancers" in name:
            bonus += rating
    if character.magic is not None:
        for power in character.magic.powers:
            if "improved reflexes" in power.name.lower():
                bonus = max(bonus, power.level)
    return bonus


def astral_initiative(character: Character) -> int:
    return attribute_total(character, "int") * 2


def matrix_initiative(character: Character) -> int:
    return attribute_total(character, "int") + attribute_total(character, "res")


# --- Limits ---

def physical_limit(character: Character) -> int:
    strength = attribute_total(character, "str")
    return math.ceil((strength * 2 + attribute_total(character, "bod") + attribute_total(character, "rea")) / 3)


def mental_limit(character: Character) -> int:
    logic = attribute_total(character, "log")
    return math.ceil((logic * 2 + attribute_total(character, "int") + attribute_total(character, "wil")) / 3)


def social_limit(character: Character) -> int:
    charisma = attribute_total(character, "cha")
    return math.ceil((charisma * 2 + attribute_total(character, "wil") + math.floor(character.essence)) / 3)


# --- Armor ---

def _stacked(values: List[int]) -> int:
    """Highest piece counts in full, every other piece adds half (rounded down)."""
    if not values:
        return 0
    ordered = sorted(values, reverse=True)
    return ordered[0] + sum(v // 2 for v in ordered[1:])


def equipped_armor(character: Character) -> List[CharacterArmor]:
    return [a for a in character.equipment.armor if a.equipped]


def armor_ballistic(character: Character) -> int:
    return _stacked([a.ballistic for a in equipped_armor(character)])


def armor_impact(character: Character) -> int:
    return _stacked([a.impact for a in equipped_armor(character)])


def armor_encumbrance(character: Character) -> int:
    """
    Agility and Reaction penalty from worn armor.

    One point per full two points the higher armor value exceeds BOD x 2.
    """
    worn = max(armor_ballistic(character), armor_impact(character))
    threshold = attribute_total(character, "bod") * 2
    return max(0, (worn - threshold) // 2)


# --- Pools that only need attributes ---

def composure(character: Character) -> int:
    return attribute_total(character, "cha") + attribute_total(character, "wil")


def judge_intentions(character: Character) -> int:
    return attribute_total(character, "cha") + attribute_total(character, "int")


def memory(character: Character) -> int:
    return attribute_total(character, "log") + attribute_total(character, "wil")


def lift_carry(character: Character) -> int:
    return attribute_total(character, "bod") + attribute_total(character, "str")


class CharacterCalculations(BaseModel):
    remaining_bp: int
    remaining_nuyen: int
    essence: float
    magic_type: MagicType

    physical_cm: int
    stun_cm: int
    overflow: int
    wound_modifier: int
    edge_remaining: int

    initiative: int
    initiative_bonus: int
    initiative_passes: int
    astral_initiative: int
    matrix_initiative: int

    physical_limit: int
    mental_limit: int
    social_limit: int

    armor_ballistic: int
    armor_impact: int
    armor_encumbrance: int

    composure: int
    judge_intentions: int
    memory: int
    lift_carry: int

    power_points_remaining: float
    free_metamagic_slots: int
    free_echo_slots: int
    equipment_cost: int


def calculate_all(character: Character) -> CharacterCalculations:
    """Bundles every projection for one snapshot."""
    return CharacterCalculations(
        remaining_bp=remaining_bp(character),
        remaining_nuyen=remaining_nuyen(character),
        essence=current_essence(character),
        magic_type=magic_type(character),
        physical_cm=physical_condition_max(character),
        stun_cm=stun_condition_max(character),
        overflow=overflow_boxes(character),
        wound_modifier=wound_modifier(character),
        edge_remaining=edge_remaining(character),
        initiative=initiative(character),
        initiative_bonus=initiative_bonus(character),
        initiative_passes=initiative_passes(character),
        astral_initiative=astral_initiative(character),
        matrix_initiative=matrix_initiative(character),
        physical_limit=physical_limit(character),
        mental_limit=mental_limit(character),
        social_limit=social_limit(character),
        armor_ballistic=armor_ballistic(character),
        armor_impact=armor_impact(character),
        armor_encumbrance=armor_encumbrance(character),
        composure=composure(character),
        judge_intentions=judge_intentions(character),
        memory=memory(character),
        lift_carry=lift_carry(character),
        power_points_remaining=power_points_remaining(character),
        free_metamagic_slots=free_metamagic_slots(character),
        free_echo_slots=free_echo_slots(character),
        equipment_cost=equipment_cost(character),
    )
