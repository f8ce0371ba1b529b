# shadowledger/modules/character_pkg/magic.py
"""
Awakened and technomancer operations: initialization, spells, adept powers,
spirits, foci, metamagics, complex forms, sprites and echoes.

Whether a character may use any of this is derived from its qualities on
every call (see calculations.magic_type), never stored.
"""
import logging
from typing import Optional

from ...shared import generate_id
from ..rules_pkg import calculations, core
from ..rules_pkg.core import MagicType
from ..rules_pkg.models_catalog import GameComplexForm, GamePower, GameSpell
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
    BoundSpirit,
    Character,
    CharacterMagic,
    CharacterPower,
    CharacterResonance,
    CharacterSpell,
    CompiledSprite,
    ComplexForm,
    Focus,
)

logger = logging.getLogger("shadowledger.character.magic")

NOT_AWAKENED = "Character is not awakened"
NOT_TECHNOMANCER = "Character is not a technomancer"


def _check_magic(character: Character) -> Optional[LedgerResult]:
    if character.magic is None:
        return fail(ErrorKind.NOT_ELIGIBLE, NOT_AWAKENED)
    return None


def _check_resonance(character: Character) -> Optional[LedgerResult]:
    if character.resonance is None:
        return fail(ErrorKind.NOT_ELIGIBLE, NOT_TECHNOMANCER)
    return None


def _with_magic(character: Character, **changes) -> Character:
    return guards.touch(character, magic=character.magic.model_copy(update=changes))


def _with_resonance(character: Character, **changes) -> Character:
    return guards.touch(character, resonance=character.resonance.model_copy(update=changes))


# --- Magic ---

def initialize_magic(character: Character, tradition: str = "") -> LedgerResult:
    """
    Gives an awakened character its magic block and a Magic rating of 1.

    Only legal when the qualities classify the character as a magician,
    mystic adept, adept or aspected magician. Adepts and mystic adepts
    receive their power points here.
    """
    magic_type = calculations.magic_type(character)
    if magic_type not in core.AWAKENED_TYPES:
        return fail(ErrorKind.NOT_ELIGIBLE, NOT_AWAKENED)
    if character.magic is not None:
        return fail(ErrorKind.DUPLICATE, "Magic is already initialized")

    power_points = core.ADEPT_POWER_POINTS if magic_type in core.POWER_POINT_TYPES else 0.0
    magic = CharacterMagic(tradition=tradition, power_points=power_points)
    minimum = character.attribute_limits["mag"].min if "mag" in character.attribute_limits else 1
    attributes = {**character.attributes, "mag": AttributeValue(base=minimum)}

    logger.info(f"Character {character.id} awakened as {magic_type.value} ({tradition or 'no tradition'})")
    return ok(guards.touch(character, magic=magic, attributes=attributes))


def set_tradition(character: Character, tradition: str) -> LedgerResult:
    blocked = _check_magic(character)
    if blocked:
        return blocked
    return ok(_with_magic(character, tradition=tradition))


def set_mentor(character: Character, mentor: Optional[str], bp: int = core.BP_COSTS["MENTOR"]) -> LedgerResult:
    """
    Chooses (or clears, with None) the mentor spirit.

    The previous mentor's BP is refunded and the new one charged in a
    single check.
    """
    blocked = guards.check_creation(character) or _check_magic(character)
    if blocked:
        return blocked
    new_bp = bp if mentor else 0
    failure, spent = guards.charge_bp(character, mentor=new_bp - character.magic.mentor_bp)
    if failure:
        return failure
    magic = character.magic.model_copy(update={"mentor": mentor, "mentor_bp": new_bp})
    return ok(guards.touch(character, magic=magic, build_points_spent=spent))


def add_spell(character: Character, spell: Optional[GameSpell]) -> LedgerResult:
    """Buys a spell for a flat 5 BP during creation."""
    blocked = guards.check_creation(character) or _check_magic(character)
    if blocked:
        return blocked
    if spell is None:
        return fail(ErrorKind.NOT_FOUND, "Unknown spell")
    if calculations.magic_type(character) == MagicType.ADEPT:
        return fail(ErrorKind.NOT_ELIGIBLE, "Adepts cannot learn spells")
    if guards.find_by_name(character.magic.spells, spell.name):
        return duplicate("spell", spell.name)

    bp = core.BP_COSTS["SPELL"]
    failure, spent = guards.charge_bp(character, spells=bp)
    if failure:
        return failure

    new_spell = build_spell(spell, bp=bp)
    magic = character.magic.model_copy(update={"spells": character.magic.spells + (new_spell,)})
    return ok(guards.touch(character, magic=magic, build_points_spent=spent))


def build_spell(spell: GameSpell, bp: int = 0, karma: int = 0) -> CharacterSpell:
    return CharacterSpell(
        id=generate_id(),
        name=spell.name,
        category=spell.category,
        type=spell.type,
        range=spell.range,
        damage=spell.damage,
        duration=spell.duration,
        dv=spell.dv,
        bp=bp,
        karma=karma,
    )


def remove_spell(character: Character, spell_id: str) -> LedgerResult:
    blocked = guards.check_creation(character) or _check_magic(character)
    if blocked:
        return blocked
    spell = guards.find_by_id(character.magic.spells, spell_id)
    if spell is None:
        return not_found("Spell", spell_id)
    _, spent = guards.charge_bp(character, spells=-spell.bp)
    magic = character.magic.model_copy(update={"spells": guards.without_id(character.magic.spells, spell_id)})
    return ok(guards.touch(character, magic=magic, build_points_spent=spent))


def add_power(character: Character, power: Optional[GamePower], level: int = 1) -> LedgerResult:
    """
    Takes an adept power, paid for with power points.

    Leveled powers cost their per-level price times the level.
    """
    blocked = _check_magic(character)
    if blocked:
        return blocked
    if power is None:
        return fail(ErrorKind.NOT_FOUND, "Unknown power")
    if calculations.magic_type(character) not in core.POWER_POINT_TYPES:
        return fail(ErrorKind.NOT_ELIGIBLE, "Only adepts and mystic adepts can take adept powers")
    if guards.find_by_name(character.magic.powers, power.name):
        return duplicate("power", power.name)
    if level < 1:
        return invalid(f"Power level must be at least 1 (got {level})")
    max_level = power.max_levels if power.levels else 1
    if level > max_level:
        return at_limit(f"{power.name} cannot exceed level {max_level}")

    cost = round(power.points * level, 2)
    available = calculations.power_points_remaining(character)
    if cost > available:
        return insufficient("power points", cost, available)

    new_power = CharacterPower(id=generate_id(), name=power.name, points=cost, level=level)
    return ok(_with_magic(
        character,
        powers=character.magic.powers + (new_power,),
        power_points_used=round(character.magic.power_points_used + cost, 2),
    ))


def remove_power(character: Character, power_id: str) -> LedgerResult:
    blocked = _check_magic(character)
    if blocked:
        return blocked
    power = guards.find_by_id(character.magic.powers, power_id)
    if power is None:
        return not_found("Power", power_id)
    return ok(_with_magic(
        character,
        powers=guards.without_id(character.magic.powers, power_id),
        power_points_used=round(max(0.0, character.magic.power_points_used - power.points), 2),
    ))


# --- Spirits ---

def add_spirit(character: Character, spirit_type: str, force: int, services: int = 0, bound: bool = False) -> LedgerResult:
    blocked = _check_magic(character)
    if blocked:
        return blocked
    if force < 1:
        return invalid(f"Spirit force must be at least 1 (got {force})")
    if services < 0:
        return invalid(f"Spirit services cannot be negative (got {services})")
    spirit = BoundSpirit(id=generate_id(), type=spirit_type, force=force, services=services, bound=bound)
    return ok(_with_magic(character, spirits=character.magic.spirits + (spirit,)))


def use_spirit_service(character: Character, spirit_id: str) -> LedgerResult:
    """Consumes one service owed by a spirit."""
    blocked = _check_magic(character)
    if blocked:
        return blocked
    spirit = guards.find_by_id(character.magic.spirits, spirit_id)
    if spirit is None:
        return not_found("Spirit", spirit_id)
    if spirit.services <= 0:
        return at_limit(f"{spirit.type} spirit has no services remaining")
    updated = spirit.model_copy(update={"services": spirit.services - 1})
    return ok(_with_magic(character, spirits=guards.replace_by_id(character.magic.spirits, spirit_id, updated)))


def release_spirit(character: Character, spirit_id: str) -> LedgerResult:
    blocked = _check_magic(character)
    if blocked:
        return blocked
    if guards.find_by_id(character.magic.spirits, spirit_id) is None:
        return not_found("Spirit", spirit_id)
    return ok(_with_magic(character, spirits=guards.without_id(character.magic.spirits, spirit_id)))


# --- Foci ---

def add_focus(character: Character, name: str, focus_type: str, force: int, cost: int) -> LedgerResult:
    """Buys a magical focus with nuyen."""
    blocked = _check_magic(character)
    if blocked:
        return blocked
    if force < 1:
        return invalid(f"Focus force must be at least 1 (got {force})")
    if cost < 0:
        return invalid(f"Focus cost cannot be negative (got {cost})")
    failure = guards.check_nuyen(character, cost)
    if failure:
        return failure
    focus = Focus(id=generate_id(), name=name, type=focus_type, force=force, cost=cost)
    magic = character.magic.model_copy(update={"foci": character.magic.foci + (focus,)})
    return ok(guards.touch(character, magic=magic, nuyen=character.nuyen - cost))


def remove_focus(character: Character, focus_id: str) -> LedgerResult:
    blocked = _check_magic(character)
    if blocked:
        return blocked
    focus = guards.find_by_id(character.magic.foci, focus_id)
    if focus is None:
        return not_found("Focus", focus_id)
    magic = character.magic.model_copy(update={"foci": guards.without_id(character.magic.foci, focus_id)})
    return ok(guards.touch(character, magic=magic, nuyen=character.nuyen + focus.cost))


# --- Metamagic ---

def add_metamagic(character: Character, name: str) -> LedgerResult:
    """Learns a metamagic; each initiate grade opens exactly one slot."""
    blocked = _check_magic(character)
    if blocked:
        return blocked
    if name in character.magic.metamagics:
        return duplicate("metamagic", name)
    if calculations.free_metamagic_slots(character) <= 0:
        return at_limit(f"No free metamagic slots (initiate grade {character.magic.initiate_grade})")
    return ok(_with_magic(character, metamagics=character.magic.metamagics + (name,)))


def remove_metamagic(character: Character, name: str) -> LedgerResult:
    blocked = _check_magic(character)
    if blocked:
        return blocked
    if name not in character.magic.metamagics:
        return not_found("Metamagic", name)
    return ok(_with_magic(character, metamagics=tuple(m for m in character.magic.metamagics if m != name)))


# --- Resonance ---

def initialize_resonance(character: Character, stream: str = "") -> LedgerResult:
    """Gives a technomancer its resonance block and a Resonance rating of 1."""
    if not calculations.is_technomancer(character):
        return fail(ErrorKind.NOT_ELIGIBLE, NOT_TECHNOMANCER)
    if character.resonance is not None:
        return fail(ErrorKind.DUPLICATE, "Resonance is already initialized")

    minimum = character.attribute_limits["res"].min if "res" in character.attribute_limits else 1
    attributes = {**character.attributes, "res": AttributeValue(base=minimum)}
    logger.info(f"Character {character.id} emerged as technomancer ({stream or 'no stream'})")
    return ok(guards.touch(character, resonance=CharacterResonance(stream=stream), attributes=attributes))


def set_stream(character: Character, stream: str) -> LedgerResult:
    blocked = _check_resonance(character)
    if blocked:
        return blocked
    return ok(_with_resonance(character, stream=stream))


def add_complex_form(character: Character, form: Optional[GameComplexForm], rating: int = 1) -> LedgerResult:
    """Threads a complex form for a flat 5 BP during creation."""
    blocked = guards.check_creation(character) or _check_resonance(character)
    if blocked:
        return blocked
    if form is None:
        return fail(ErrorKind.NOT_FOUND, "Unknown complex form")
    if guards.find_by_name(character.resonance.complex_forms, form.name):
        return duplicate("complex form", form.name)
    if rating < 1:
        return invalid(f"Complex form rating must be at least 1 (got {rating})")

    bp = core.BP_COSTS["COMPLEX_FORM"]
    failure, spent = guards.charge_bp(character, complex_forms=bp)
    if failure:
        return failure

    new_form = build_complex_form(form, rating, bp=bp)
    resonance = character.resonance.model_copy(
        update={"complex_forms": character.resonance.complex_forms + (new_form,)}
    )
    return ok(guards.touch(character, resonance=resonance, build_points_spent=spent))


def build_complex_form(form: GameComplexForm, rating: int = 1, bp: int = 0, karma: int = 0) -> ComplexForm:
    return ComplexForm(
        id=generate_id(),
        name=form.name,
        rating=rating,
        target=form.target,
        duration=form.duration,
        bp=bp,
        karma=karma,
    )


def remove_complex_form(character: Character, form_id: str) -> LedgerResult:
    blocked = guards.check_creation(character) or _check_resonance(character)
    if blocked:
        return blocked
    form = guards.find_by_id(character.resonance.complex_forms, form_id)
    if form is None:
        return not_found("Complex form", form_id)
    _, spent = guards.charge_bp(character, complex_forms=-form.bp)
    resonance = character.resonance.model_copy(
        update={"complex_forms": guards.without_id(character.resonance.complex_forms, form_id)}
    )
    return ok(guards.touch(character, resonance=resonance, build_points_spent=spent))


def add_sprite(character: Character, sprite_type: str, rating: int, tasks: int = 0, registered: bool = False) -> LedgerResult:
    blocked = _check_resonance(character)
    if blocked:
        return blocked
    if rating < 1:
        return invalid(f"Sprite rating must be at least 1 (got {rating})")
    if tasks < 0:
        return invalid(f"Sprite tasks cannot be negative (got {tasks})")
    sprite = CompiledSprite(id=generate_id(), type=sprite_type, rating=rating, tasks=tasks, registered=registered)
    return ok(_with_resonance(character, sprites=character.resonance.sprites + (sprite,)))


def use_sprite_task(character: Character, sprite_id: str) -> LedgerResult:
    blocked = _check_resonance(character)
    if blocked:
        return blocked
    sprite = guards.find_by_id(character.resonance.sprites, sprite_id)
    if sprite is None:
        return not_found("Sprite", sprite_id)
    if sprite.tasks <= 0:
        return at_limit(f"{sprite.type} sprite has no tasks remaining")
    updated = sprite.model_copy(update={"tasks": sprite.tasks - 1})
    return ok(_with_resonance(character, sprites=guards.replace_by_id(character.resonance.sprites, sprite_id, updated)))


def remove_sprite(character: Character, sprite_id: str) -> LedgerResult:
    blocked = _check_resonance(character)
    if blocked:
        return blocked
    if guards.find_by_id(character.resonance.sprites, sprite_id) is None:
        return not_found("Sprite", sprite_id)
    return ok(_with_resonance(character, sprites=guards.without_id(character.resonance.sprites, sprite_id)))


def add_echo(character: Character, name: str) -> LedgerResult:
    """Learns an echo; each submersion grade opens exactly one slot."""
    blocked = _check_resonance(character)
    if blocked:
        return blocked
    if name in character.resonance.echoes:
        return duplicate("echo", name)
    if calculations.free_echo_slots(character) <= 0:
        return at_limit(f"No free echo slots (submersion grade {character.resonance.submersion_grade})")
    return ok(_with_resonance(character, echoes=character.resonance.echoes + (name,)))


def remove_echo(character: Character, name: str) -> LedgerResult:
    blocked = _check_resonance(character)
    if blocked:
        return blocked
    if name not in character.resonance.echoes:
        return not_found("Echo", name)
    return ok(_with_resonance(character, echoes=tuple(e for e in character.resonance.echoes if e != name)))
