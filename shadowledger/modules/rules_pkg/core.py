# core.py
"""
Rule tables and pure cost formulas.

Nothing in here touches a character snapshot directly; the ledger
operations call these helpers to price a change before applying it.
"""
import math
import re
from enum import Enum
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

from .models_catalog import AttributeLimits

# --- Attribute codes ---
PHYSICAL_ATTRIBUTES = ("bod", "agi", "rea", "str")
MENTAL_ATTRIBUTES = ("cha", "int", "log", "wil")
STANDARD_ATTRIBUTES = PHYSICAL_ATTRIBUTES + MENTAL_ATTRIBUTES + ("edg",)

ATTRIBUTE_NAMES = {
    "bod": "Body", "agi": "Agility", "rea": "Reaction", "str": "Strength",
    "cha": "Charisma", "int": "Intuition", "log": "Logic", "wil": "Willpower",
    "edg": "Edge", "mag": "Magic", "res": "Resonance", "ini": "Initiative",
    "ess": "Essence",
}

DEFAULT_ATTRIBUTE_LIMITS: Dict[str, AttributeLimits] = {
    **{code: AttributeLimits(min=1, max=6, aug=9) for code in PHYSICAL_ATTRIBUTES + MENTAL_ATTRIBUTES},
    "edg": AttributeLimits(min=1, max=6, aug=6),
    "mag": AttributeLimits(min=1, max=6, aug=6),
    "res": AttributeLimits(min=1, max=6, aug=6),
    "ini": AttributeLimits(min=2, max=12, aug=18),
    "ess": AttributeLimits(min=0, max=6, aug=6),
}

STARTING_ESSENCE = 6.0
ESSENCE_PRECISION = 4

# --- Build points ---

BP_COSTS = {
    "ACTIVE_SKILL_PER_RATING": 4,
    "KNOWLEDGE_SKILL_PER_RATING": 2,
    "SPECIALIZATION": 2,
    "SPELL": 5,
    "COMPLEX_FORM": 5,
    "MARTIAL_ART_STYLE": 5,
    "MARTIAL_ART_TECHNIQUE": 2,
    "MENTOR": 5,
    "ATTRIBUTE_POINT": 10,
}

MAX_SKILL_RATING = 6
MAX_RESOURCES_BP = 50
MAX_POSITIVE_QUALITY_BP = 35
MAX_NEGATIVE_QUALITY_BP = 35
CONTACT_RATING_RANGE = (1, 6)
ADEPT_POWER_POINTS = 6.0

# Highest tier the BP amount reaches wins.
BP_TO_NUYEN_RATES: List[Tuple[int, int]] = [
    (0, 0),
    (5, 20000),
    (10, 50000),
    (20, 90000),
    (30, 150000),
    (40, 225000),
    (50, 275000),
]

# --- Karma (career mode) ---
KARMA_COSTS = {
    "IMPROVE_ATTRIBUTE_MULTIPLIER": 5,
    "IMPROVE_SKILL_MULTIPLIER": 2,
    "NEW_SKILL": 4,
    "IMPROVE_KNOWLEDGE_MULTIPLIER": 1,
    "NEW_KNOWLEDGE_SKILL": 2,
    "NEW_SPECIALIZATION": 2,
    "NEW_SPELL": 5,
    "NEW_COMPLEX_FORM": 5,
    "INITIATION_BASE": 10,
    "INITIATION_MULTIPLIER": 3,
    "NEW_SKILL_GROUP": 10,
    "IMPROVE_SKILL_GROUP_MULTIPLIER": 5,
}


class GradeMultiplier(NamedTuple):
    name: str
    essence: float
    cost: float


CYBERWARE_GRADES: Dict[str, GradeMultiplier] = {
    "Standard": GradeMultiplier("Standard", 1.0, 1),
    "Alphaware": GradeMultiplier("Alphaware", 0.8, 2),
    "Betaware": GradeMultiplier("Betaware", 0.7, 4),
    "Deltaware": GradeMultiplier("Deltaware", 0.5, 10),
    "Used": GradeMultiplier("Used", 1.2, 0.5),
}

BIOWARE_GRADES: Dict[str, GradeMultiplier] = {
    "Standard": GradeMultiplier("Standard", 1.0, 1),
    "Alphaware": GradeMultiplier("Alphaware", 0.8, 2),
    "Betaware": GradeMultiplier("Betaware", 0.7, 4),
    "Deltaware": GradeMultiplier("Deltaware", 0.5, 10),
}


class MagicType(str, Enum):
    MAGICIAN = "magician"
    MYSTIC_ADEPT = "mystic_adept"
    ADEPT = "adept"
    ASPECTED_MAGICIAN = "aspected_magician"
    TECHNOMANCER = "technomancer"
    MUNDANE = "mundane"


AWAKENED_TYPES = (
    MagicType.MAGICIAN,
    MagicType.MYSTIC_ADEPT,
    MagicType.ADEPT,
    MagicType.ASPECTED_MAGICIAN,
)
POWER_POINT_TYPES = (MagicType.ADEPT, MagicType.MYSTIC_ADEPT)

# Exact quality names, checked in priority order.
MAGIC_QUALITY_NAMES: List[Tuple[str, MagicType]] = [
    ("Magician", MagicType.MAGICIAN),
    ("Mystic Adept", MagicType.MYSTIC_ADEPT),
    ("Adept", MagicType.ADEPT),
]
ASPECTED_PREFIX = "Aspected Magician"
TECHNOMANCER_QUALITY_NAMES = ("Technomancer", "Latent Technomancer")

CLASSIFICATION_PRIORITY = [
    MagicType.MAGICIAN,
    MagicType.MYSTIC_ADEPT,
    MagicType.ADEPT,
    MagicType.ASPECTED_MAGICIAN,
    MagicType.TECHNOMANCER,
]


def capability_for_quality(name: str, capability: Optional[str] = None) -> Optional[MagicType]:
    """
    Resolves the magic capability a single quality grants.

    A stable capability tag wins; otherwise the quality name is matched
    against the known magic and resonance quality names.
    """
    if capability:
        try:
            return MagicType(capability)
        except ValueError:
            return None
    for quality_name, magic_type in MAGIC_QUALITY_NAMES:
        if name == quality_name:
            return magic_type
    if name.startswith(ASPECTED_PREFIX):
        return MagicType.ASPECTED_MAGICIAN
    if name in TECHNOMANCER_QUALITY_NAMES:
        return MagicType.TECHNOMANCER
    return None


def classify_magic(qualities: Iterable[Tuple[str, Optional[str]]]) -> MagicType:
    """
    Derives the magic classification from (name, capability) pairs.

    Priority: Magician, Mystic Adept, Adept, Aspected Magician,
    Technomancer. Anything else is mundane.
    """
    found = set()
    for name, capability in qualities:
        magic_type = capability_for_quality(name, capability)
        if magic_type is not None and magic_type != MagicType.MUNDANE:
            found.add(magic_type)
    for magic_type in CLASSIFICATION_PRIORITY:
        if magic_type in found:
            return magic_type
    return MagicType.MUNDANE


def bp_to_nuyen(bp: int) -> int:
    """
    Converts resources BP into starting nuyen.

    Args:
        bp (int): Build points spent on resources.

    Returns:
        int: Nuyen from the highest tier the BP reaches (0 below 5 BP).
    """
    for tier_bp, nuyen in reversed(BP_TO_NUYEN_RATES):
        if bp >= tier_bp:
            return nuyen
    return 0


def nuyen_to_bp(nuyen: int) -> int:
    """Returns the tier BP for the highest tier a nuyen amount reaches."""
    for tier_bp, tier_nuyen in reversed(BP_TO_NUYEN_RATES):
        if nuyen >= tier_nuyen:
            return tier_bp
    return 0


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def round_essence(value: float) -> float:
    return round(value, ESSENCE_PRECISION)


def apply_grade(base_essence: float, base_cost: int, grade: GradeMultiplier) -> Tuple[float, int]:
    """
    Applies a grade to a piece of ware.

    Essence is rounded to four decimals, nuyen cost is floored.

    Returns:
        Tuple[float, int]: (essence cost, nuyen cost)
    """
    essence = round_essence(base_essence * grade.essence)
    cost = math.floor(base_cost * grade.cost)
    return essence, cost


_AMMO_PATTERN = re.compile(r"^\s*(\d+)")


def get_max_ammo(ammo: str) -> int:
    """
    Parses an ammo capacity string.

    '15(c)' -> 15, '2x(b)' -> 2, 'NA' or '' -> 0.
    """
    if not ammo:
        return 0
    match = _AMMO_PATTERN.match(ammo)
    return int(match.group(1)) if match else 0


# --- Karma formulas ---

def attribute_karma_cost(new_rating: int) -> int:
    return new_rating * KARMA_COSTS["IMPROVE_ATTRIBUTE_MULTIPLIER"]


def skill_karma_cost(new_rating: int) -> int:
    """A brand-new skill at rating 1 has its own flat price."""
    if new_rating <= 1:
        return KARMA_COSTS["NEW_SKILL"]
    return new_rating * KARMA_COSTS["IMPROVE_SKILL_MULTIPLIER"]


def knowledge_karma_cost(new_rating: int) -> int:
    if new_rating <= 1:
        return KARMA_COSTS["NEW_KNOWLEDGE_SKILL"]
    return new_rating * KARMA_COSTS["IMPROVE_KNOWLEDGE_MULTIPLIER"]


def skill_group_karma_cost(new_rating: int) -> int:
    if new_rating <= 1:
        return KARMA_COSTS["NEW_SKILL_GROUP"]
    return new_rating * KARMA_COSTS["IMPROVE_SKILL_GROUP_MULTIPLIER"]


def initiation_karma_cost(new_grade: int) -> int:
    """Initiation and submersion share one formula: 10 + grade x 3."""
    return KARMA_COSTS["INITIATION_BASE"] + new_grade * KARMA_COSTS["INITIATION_MULTIPLIER"]


# --- BP formulas ---

def active_skill_bp(rating: int, has_specialization: bool) -> int:
    bp = rating * BP_COSTS["ACTIVE_SKILL_PER_RATING"]
    if has_specialization:
        bp += BP_COSTS["SPECIALIZATION"]
    return bp


def knowledge_skill_bp(rating: int, has_specialization: bool) -> int:
    bp = rating * BP_COSTS["KNOWLEDGE_SKILL_PER_RATING"]
    if has_specialization:
        bp += BP_COSTS["SPECIALIZATION"]
    return bp


def contact_bp(loyalty: int, connection: int) -> int:
    return loyalty + connection


def martial_art_bp(technique_count: int) -> int:
    """The style includes its first technique; each extra one is paid for."""
    extra = max(0, technique_count - 1)
    return BP_COSTS["MARTIAL_ART_STYLE"] + extra * BP_COSTS["MARTIAL_ART_TECHNIQUE"]


def attribute_points_bp(bases: Dict[str, int], limits: Dict[str, AttributeLimits]) -> int:
    """
    BP tied up in attributes: every point above the natural minimum costs 10.
    """
    total = 0
    for code, base in bases.items():
        minimum = limits[code].min if code in limits else 1
        total += max(0, base - minimum) * BP_COSTS["ATTRIBUTE_POINT"]
    return total
