# shadowledger/modules/character_pkg/services.py
"""
Creation-mode ledger operations plus the mode-independent bookkeeping
(identity, contacts, condition, reputation).

Every operation takes the current snapshot and returns a LedgerResult. On
failure the snapshot passed in is untouched and no partial change exists.
"""
import logging
from typing import Optional

from ...shared import generate_id, utc_now_iso
from ..rules_pkg import calculations, core
from ..rules_pkg.models_catalog import GameQuality, Metatype
from . import guards
from .results import (
    ErrorKind,
    LedgerResult,
    at_limit,
    duplicate,
    fail,
    insufficient,
    invalid,
    not_found,
    ok,
)
from .schemas import (
    AttributeValue,
    BuildMethod,
    Character,
    CharacterBackground,
    CharacterIdentity,
    CharacterQuality,
    CharacterSettings,
    CharacterSkill,
    Contact,
    KnowledgeSkill,
)

logger = logging.getLogger("shadowledger.character.services")

QUALITY_CATEGORIES = ("Positive", "Negative")
IDENTITY_FIELDS = tuple(f for f in CharacterIdentity.model_fields if f not in ("metatype", "metavariant"))
BACKGROUND_FIELDS = tuple(CharacterBackground.model_fields)
REPUTATION_FIELDS = ("street_cred", "notoriety", "public_awareness")
DAMAGE_TRACKS = ("physical", "stun")


def new_character(
    owner_id: str = "",
    build_method: str = "bp",
    settings: Optional[CharacterSettings] = None,
    character_id: Optional[str] = None,
) -> Character:
    """
    Creates an empty creation-mode character.

    Standard attributes start at their natural minimum, essence at 6.0 and
    every BP category at zero.

    Args:
        owner_id (str): The owning user.
        build_method (str): 'bp' or 'karma'.
        settings (CharacterSettings): House rules; defaults when omitted.
        character_id (str): Explicit id, generated when omitted.

    Returns:
        Character: The new snapshot.
    """
    method = BuildMethod(build_method)
    settings = settings or CharacterSettings()
    if method == BuildMethod.KARMA:
        build_points = settings.starting_karma
    else:
        build_points = settings.starting_bp

    limits = dict(core.DEFAULT_ATTRIBUTE_LIMITS)
    attributes = {code: AttributeValue(base=limits[code].min) for code in core.STANDARD_ATTRIBUTES}
    now = utc_now_iso()

    character = Character(
        id=character_id or generate_id(),
        owner_id=owner_id,
        build_method=method,
        build_points=build_points,
        attributes=attributes,
        essence=core.STARTING_ESSENCE,
        attribute_limits=limits,
        nuyen=settings.starting_nuyen,
        starting_nuyen=settings.starting_nuyen,
        settings=settings,
        created_at=now,
        updated_at=now,
    )
    logger.info(f"Created character {character.id} ({method.value}, {build_points} points)")
    return character


# --- Identity & background ---

def update_identity(character: Character, field: str, value: str) -> LedgerResult:
    """Sets one free-text identity field. Metatype goes through set_metatype."""
    if field not in IDENTITY_FIELDS:
        return not_found("Identity field", field)
    identity = character.identity.model_copy(update={field: value})
    return ok(guards.touch(character, identity=identity))


def update_background(character: Character, field: str, value: str) -> LedgerResult:
    if field not in BACKGROUND_FIELDS:
        return not_found("Background field", field)
    background = character.background.model_copy(update={field: value})
    return ok(guards.touch(character, background=background))


# --- Metatype & attributes ---

def set_metatype(
    character: Character,
    metatype: Optional[Metatype],
    metavariant_name: Optional[str] = None,
) -> LedgerResult:
    """
    Selects a metatype (and optionally a metavariant).

    Replaces the attribute limits, clamps every attribute base into the new
    range and re-prices the metatype and attribute BP in one check.
    A metavariant's BP cost replaces the metatype's.
    """
    blocked = guards.check_creation(character)
    if blocked:
        return blocked
    if metatype is None:
        return fail(ErrorKind.NOT_FOUND, "Unknown metatype")

    limits = dict(core.DEFAULT_ATTRIBUTE_LIMITS)
    limits.update(metatype.attributes)
    bp_cost = metatype.bp

    if metavariant_name:
        variant = next((v for v in metatype.metavariants if v.name == metavariant_name), None)
        if variant is None:
            return not_found("Metavariant", metavariant_name)
        limits.update(variant.attributes)
        bp_cost = variant.bp

    attributes = {}
    for code, value in character.attributes.items():
        limit = limits.get(code)
        if limit is None:
            attributes[code] = value
            continue
        attributes[code] = value.model_copy(update={"base": core.clamp(value.base, limit.min, limit.max)})

    attribute_bp = core.attribute_points_bp({c: v.base for c, v in attributes.items()}, limits)
    failure, spent = guards.charge_bp(
        character,
        metatype=bp_cost - character.build_points_spent.metatype,
        attributes=attribute_bp - character.build_points_spent.attributes,
    )
    if failure:
        return failure

    identity = character.identity.model_copy(
        update={"metatype": metatype.name, "metavariant": metavariant_name or None}
    )
    logger.info(f"Character {character.id} metatype set to {metatype.name} ({bp_cost} BP)")
    return ok(guards.touch(
        character,
        identity=identity,
        attribute_limits=limits,
        attributes=attributes,
        build_points_spent=spent,
    ))


def set_attribute(character: Character, code: str, value: int) -> LedgerResult:
    """
    Sets an attribute's base rating during creation.

    The value is clamped into the metatype's natural [min, max]. Only
    `base` changes; bonus and karma points stay as they are.
    """
    blocked = guards.check_creation(character)
    if blocked:
        return blocked
    current = character.attributes.get(code)
    limit = character.attribute_limits.get(code)
    if current is None or limit is None:
        return not_found("Attribute", code)

    clamped = core.clamp(value, limit.min, limit.max)
    attributes = {**character.attributes, code: current.model_copy(update={"base": clamped})}
    attribute_bp = core.attribute_points_bp({c: v.base for c, v in attributes.items()}, character.attribute_limits)

    failure, spent = guards.charge_bp(
        character, attributes=attribute_bp - character.build_points_spent.attributes
    )
    if failure:
        return failure
    return ok(guards.touch(character, attributes=attributes, build_points_spent=spent))


# --- Qualities ---

def add_quality(
    character: Character,
    name: str,
    category: str,
    bp: int,
    rating: int = 1,
    capability: Optional[str] = None,
    selected_skill: Optional[str] = None,
    selected_attribute: Optional[str] = None,
) -> LedgerResult:
    """
    Adds a quality and charges its BP.

    The BP value is stored on the instance so removal refunds exactly what
    was charged, whatever the catalog says later.
    """
    blocked = guards.check_creation(character)
    if blocked:
        return blocked
    if category not in QUALITY_CATEGORIES:
        return invalid(f"Quality category must be Positive or Negative (got '{category}')")
    if guards.find_by_name(character.qualities, name):
        return duplicate("quality", name)

    failure, spent = guards.charge_bp(character, qualities=bp)
    if failure:
        return failure

    quality = CharacterQuality(
        id=generate_id(),
        name=name,
        category=category,
        bp=bp,
        rating=rating,
        capability=capability,
        selected_skill=selected_skill,
        selected_attribute=selected_attribute,
    )
    logger.info(f"Character {character.id} gained quality '{name}' ({bp} BP)")
    return ok(guards.touch(character, qualities=character.qualities + (quality,), build_points_spent=spent))


def add_catalog_quality(character: Character, quality: Optional[GameQuality]) -> LedgerResult:
    """Adds a quality straight from its catalog definition."""
    if quality is None:
        return fail(ErrorKind.NOT_FOUND, "Unknown quality")
    return add_quality(
        character, quality.name, quality.category, quality.bp, capability=quality.capability
    )


def remove_quality(character: Character, quality_id: str) -> LedgerResult:
    blocked = guards.check_creation(character)
    if blocked:
        return blocked
    quality = guards.find_by_id(character.qualities, quality_id)
    if quality is None:
        return not_found("Quality", quality_id)

    # Removing a negative quality takes back the BP it granted.
    failure, spent = guards.charge_bp(character, qualities=-quality.bp)
    if failure:
        return failure
    return ok(guards.touch(
        character,
        qualities=guards.without_id(character.qualities, quality_id),
        build_points_spent=spent,
    ))


# --- Skills ---

def set_skill(
    character: Character,
    name: str,
    rating: int,
    specialization: Optional[str] = None,
) -> LedgerResult:
    """
    Creates or updates an active skill bought with BP.

    Costs 4 BP per rating point plus 2 BP for a specialization; only the
    difference from the skill's previous price is charged.
    """
    blocked = guards.check_creation(character)
    if blocked:
        return blocked
    if rating < 0:
        return invalid(f"Skill rating cannot be negative (got {rating})")
    if rating > core.MAX_SKILL_RATING:
        return at_limit(f"Skill rating cannot exceed {core.MAX_SKILL_RATING}")

    existing = guards.find_by_name(character.skills, name)
    specialization = specialization or None
    new_bp = core.active_skill_bp(rating, bool(specialization))
    old_bp = existing.bp if existing else 0

    failure, spent = guards.charge_bp(character, skills=new_bp - old_bp)
    if failure:
        return failure

    if existing:
        updated = existing.model_copy(update={"rating": rating, "specialization": specialization, "bp": new_bp})
        skills = tuple(updated if s.name == name else s for s in character.skills)
    else:
        skills = character.skills + (CharacterSkill(name=name, rating=rating, specialization=specialization, bp=new_bp),)
    return ok(guards.touch(character, skills=skills, build_points_spent=spent))


def remove_skill(character: Character, name: str) -> LedgerResult:
    """Drops an active skill and refunds its BP. Unknown names change nothing."""
    blocked = guards.check_creation(character)
    if blocked:
        return blocked
    existing = guards.find_by_name(character.skills, name)
    if existing is None:
        return ok(character)

    _, spent = guards.charge_bp(character, skills=-existing.bp)
    skills = tuple(s for s in character.skills if s.name != name)
    return ok(guards.touch(character, skills=skills, build_points_spent=spent))


def set_knowledge_skill(
    character: Character,
    name: str,
    rating: int,
    category: str = "Academic",
    specialization: Optional[str] = None,
) -> LedgerResult:
    """Creates or updates a knowledge skill at 2 BP per rating point."""
    blocked = guards.check_creation(character)
    if blocked:
        return blocked
    if rating < 0:
        return invalid(f"Skill rating cannot be negative (got {rating})")
    if rating > core.MAX_SKILL_RATING:
        return at_limit(f"Skill rating cannot exceed {core.MAX_SKILL_RATING}")

    existing = guards.find_by_name(character.knowledge_skills, name)
    specialization = specialization or None
    new_bp = core.knowledge_skill_bp(rating, bool(specialization))
    old_bp = existing.bp if existing else 0

    failure, spent = guards.charge_bp(character, knowledge_skills=new_bp - old_bp)
    if failure:
        return failure

    if existing:
        updated = existing.model_copy(
            update={"rating": rating, "category": category, "specialization": specialization, "bp": new_bp}
        )
        skills = guards.replace_by_id(character.knowledge_skills, existing.id, updated)
    else:
        skill = KnowledgeSkill(
            id=generate_id(), name=name, category=category, rating=rating,
            specialization=specialization, bp=new_bp,
        )
        skills = character.knowledge_skills + (skill,)
    return ok(guards.touch(character, knowledge_skills=skills, build_points_spent=spent))


def remove_knowledge_skill(character: Character, skill_id: str) -> LedgerResult:
    blocked = guards.check_creation(character)
    if blocked:
        return blocked
    skill = guards.find_by_id(character.knowledge_skills, skill_id)
    if skill is None:
        return not_found("Knowledge skill", skill_id)
    _, spent = guards.charge_bp(character, knowledge_skills=-skill.bp)
    return ok(guards.touch(
        character,
        knowledge_skills=guards.without_id(character.knowledge_skills, skill_id),
        build_points_spent=spent,
    ))


# --- Contacts ---

def add_contact(
    character: Character,
    name: str,
    contact_type: str = "",
    loyalty: int = 1,
    connection: int = 1,
) -> LedgerResult:
    """
    Adds a contact. Loyalty and connection are clamped to 1-6.

    During creation the contact costs loyalty + connection BP; contacts met
    in career mode are free.
    """
    low, high = core.CONTACT_RATING_RANGE
    loyalty = core.clamp(loyalty, low, high)
    connection = core.clamp(connection, low, high)

    bp = 0 if character.is_career else core.contact_bp(loyalty, connection)
    failure, spent = guards.charge_bp(character, contacts=bp)
    if failure:
        return failure

    contact = Contact(
        id=generate_id(), name=name, type=contact_type,
        loyalty=loyalty, connection=connection, bp=bp,
    )
    return ok(guards.touch(character, contacts=character.contacts + (contact,), build_points_spent=spent))


def remove_contact(character: Character, contact_id: str) -> LedgerResult:
    contact = guards.find_by_id(character.contacts, contact_id)
    if contact is None:
        return not_found("Contact", contact_id)
    _, spent = guards.charge_bp(character, contacts=-contact.bp)
    return ok(guards.touch(
        character,
        contacts=guards.without_id(character.contacts, contact_id),
        build_points_spent=spent,
    ))


# --- Resources ---

def set_resources_bp(character: Character, bp: int) -> LedgerResult:
    """
    Sets the BP spent on resources and re-derives starting nuyen.

    BP is clamped to 0-50. Current nuyen moves by the change in starting
    nuyen, so money already spent on equipment stays spent.
    """
    blocked = guards.check_creation(character)
    if blocked:
        return blocked
    bp = core.clamp(bp, 0, core.MAX_RESOURCES_BP)
    new_starting = core.bp_to_nuyen(bp)
    new_nuyen = character.nuyen + new_starting - character.starting_nuyen

    if new_nuyen < 0:
        already_spent = character.starting_nuyen - character.nuyen
        return insufficient("nuyen", already_spent, new_starting)

    failure, spent = guards.charge_bp(character, resources=bp - character.build_points_spent.resources)
    if failure:
        return failure

    logger.info(f"Character {character.id} resources set to {bp} BP ({new_starting} nuyen)")
    return ok(guards.touch(character, starting_nuyen=new_starting, nuyen=new_nuyen, build_points_spent=spent))


# --- Condition, edge, reputation ---

def apply_damage(character: Character, track: str, boxes: int) -> LedgerResult:
    """
    Marks damage on the physical or stun track.

    Stun beyond the stun monitor spills over into physical damage box for
    box. Physical damage stops at the monitor plus overflow (BOD).
    """
    if track not in DAMAGE_TRACKS:
        return not_found("Damage track", track)
    failure = guards.check_positive(boxes, "Damage")
    if failure:
        return failure

    condition = character.condition
    physical = condition.physical_current
    stun = condition.stun_current
    stun_max = calculations.stun_condition_max(character)
    physical_cap = calculations.physical_condition_max(character) + calculations.overflow_boxes(character)

    if track == "stun":
        stun += boxes
        if stun > stun_max:
            physical += stun - stun_max
            stun = stun_max
    else:
        physical += boxes
    physical = min(physical, physical_cap)

    new_condition = condition.model_copy(update={"physical_current": physical, "stun_current": stun})
    return ok(guards.touch(character, condition=new_condition))


def heal_damage(character: Character, track: str, boxes: int) -> LedgerResult:
    if track not in DAMAGE_TRACKS:
        return not_found("Damage track", track)
    failure = guards.check_positive(boxes, "Healing")
    if failure:
        return failure
    field = f"{track}_current"
    current = getattr(character.condition, field)
    new_condition = character.condition.model_copy(update={field: max(0, current - boxes)})
    return ok(guards.touch(character, condition=new_condition))


def spend_edge(character: Character, points: int = 1) -> LedgerResult:
    failure = guards.check_positive(points, "Edge spent")
    if failure:
        return failure
    available = calculations.edge_remaining(character)
    if points > available:
        return insufficient("edge", points, available)
    new_condition = character.condition.model_copy(
        update={"edge_current": character.condition.edge_current + points}
    )
    return ok(guards.touch(character, condition=new_condition))


def refresh_edge(character: Character) -> LedgerResult:
    new_condition = character.condition.model_copy(update={"edge_current": 0})
    return ok(guards.touch(character, condition=new_condition))


def adjust_reputation(character: Character, field: str, delta: int) -> LedgerResult:
    """Moves street cred, notoriety or public awareness; never below zero."""
    if field not in REPUTATION_FIELDS:
        return not_found("Reputation field", field)
    current = getattr(character.reputation, field)
    reputation = character.reputation.model_copy(update={field: max(0, current + delta)})
    return ok(guards.touch(character, reputation=reputation))
