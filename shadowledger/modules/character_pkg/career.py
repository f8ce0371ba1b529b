# shadowledger/modules/character_pkg/career.py
"""
Career advancement: the one-way creation -> career transition and every
karma-priced improvement.

Karma spending always runs the same way: price the change from the
current snapshot, refuse if the character cannot afford it, otherwise
deduct the karma, log one signed expense entry and apply the effect, all
in the same new snapshot.
"""
import logging
from typing import List, Optional

from ...shared import generate_id
from ..rules_pkg import calculations, core
from ..rules_pkg.core import MagicType
from ..rules_pkg.models_catalog import GameComplexForm, GameSpell
from . import guards, magic
from .results import (
    ErrorKind,
    LedgerResult,
    at_limit,
    duplicate,
    fail,
    invalid,
    not_found,
    ok,
)
from .schemas import (
    Character,
    CharacterSkill,
    CharacterStatus,
    ExpenseEntry,
    KnowledgeSkill,
)

logger = logging.getLogger("shadowledger.character.career")

KARMA = "karma"
NUYEN = "nuyen"


def enter_career_mode(character: Character) -> LedgerResult:
    """
    Finalizes creation. Spent BP stays as it is; from here on improvements
    are bought with karma.
    """
    if character.is_career:
        return fail(ErrorKind.INVALID_MODE, "Character is already in career mode")
    logger.info(f"Character {character.id} entered career mode with {calculations.remaining_bp(character)} BP unspent")
    return ok(guards.touch(character, status=CharacterStatus.CAREER))


def _spend_karma(character: Character, cost: int, reason: str, **changes) -> LedgerResult:
    """
    Shared two-phase karma spend. `changes` are applied to the snapshot
    together with the deduction and the log entry.
    """
    failure = guards.check_karma(character, cost)
    if failure:
        logger.info(f"Character {character.id} cannot afford '{reason}': {failure.error}")
        return failure
    entry = guards.expense(KARMA, -cost, reason)
    logger.info(f"Character {character.id} spent {cost} karma: {reason}")
    return ok(guards.touch(
        character,
        karma=character.karma - cost,
        expense_log=character.expense_log + (entry,),
        **changes,
    ))


# --- Awards & generic spending ---

def award_karma(character: Character, amount: int, reason: str = "Karma award") -> LedgerResult:
    failure = guards.check_positive(amount, "Karma award")
    if failure:
        return failure
    entry = guards.expense(KARMA, amount, reason)
    return ok(guards.touch(
        character,
        karma=character.karma + amount,
        total_karma=character.total_karma + amount,
        expense_log=character.expense_log + (entry,),
    ))


def spend_karma(character: Character, amount: int, reason: str) -> LedgerResult:
    """Spends karma on something the ledger does not model itself."""
    blocked = guards.check_career(character) or guards.check_positive(amount, "Karma spent")
    if blocked:
        return blocked
    return _spend_karma(character, amount, reason)


def award_nuyen(character: Character, amount: int, reason: str = "Nuyen award") -> LedgerResult:
    failure = guards.check_positive(amount, "Nuyen award")
    if failure:
        return failure
    entry = guards.expense(NUYEN, amount, reason)
    return ok(guards.touch(
        character,
        nuyen=character.nuyen + amount,
        expense_log=character.expense_log + (entry,),
    ))


def spend_nuyen(character: Character, amount: int, reason: str) -> LedgerResult:
    failure = guards.check_positive(amount, "Nuyen spent") or guards.check_nuyen(character, amount)
    if failure:
        return failure
    entry = guards.expense(NUYEN, -amount, reason)
    return ok(guards.touch(
        character,
        nuyen=character.nuyen - amount,
        expense_log=character.expense_log + (entry,),
    ))


def get_expense_log(character: Character, entry_type: Optional[str] = None) -> List[ExpenseEntry]:
    """Expense history in the order it was written, optionally one currency only."""
    if entry_type is None:
        return list(character.expense_log)
    return [e for e in character.expense_log if e.type == entry_type]


# --- Attributes ---

def improve_attribute(character: Character, code: str) -> LedgerResult:
    """
    Raises an attribute by one point for new rating x 5 karma.

    The natural rating (base + karma points) may not pass the augmented
    maximum for the metatype.
    """
    blocked = guards.check_career(character)
    if blocked:
        return blocked
    current = character.attributes.get(code)
    limit = character.attribute_limits.get(code)
    if current is None or limit is None:
        return not_found("Attribute", code)

    name = core.ATTRIBUTE_NAMES.get(code, code)
    new_rating = current.rating + 1
    if new_rating > limit.aug:
        return at_limit(f"{name} is already at maximum ({limit.aug})")

    cost = core.attribute_karma_cost(new_rating)
    attributes = {**character.attributes, code: current.model_copy(update={"karma": current.karma + 1})}
    return _spend_karma(character, cost, f"Improved {name} to {new_rating}", attributes=attributes)


# --- Active skills ---

def improve_skill(character: Character, name: str) -> LedgerResult:
    """Raises an existing active skill by one for new rating x 2 karma."""
    blocked = guards.check_career(character)
    if blocked:
        return blocked
    skill = guards.find_by_name(character.skills, name)
    if skill is None:
        return not_found("Skill", name)
    if skill.rating >= core.MAX_SKILL_RATING:
        return at_limit(f"{name} is already at maximum rating ({core.MAX_SKILL_RATING})")

    new_rating = skill.rating + 1
    cost = core.skill_karma_cost(new_rating)
    updated = skill.model_copy(update={"rating": new_rating, "karma_spent": skill.karma_spent + cost})
    skills = tuple(updated if s.name == name else s for s in character.skills)
    return _spend_karma(character, cost, f"Improved {name} to {new_rating}", skills=skills)


def learn_new_skill(character: Character, name: str) -> LedgerResult:
    """Learns an active skill at rating 1 for a flat 4 karma."""
    blocked = guards.check_career(character)
    if blocked:
        return blocked
    existing = guards.find_by_name(character.skills, name)
    if existing is not None and existing.rating > 0:
        return duplicate("skill", name)

    cost = core.skill_karma_cost(1)
    if existing is not None:
        learned = existing.model_copy(update={"rating": 1, "karma_spent": existing.karma_spent + cost})
        skills = tuple(learned if s.name == name else s for s in character.skills)
    else:
        skills = character.skills + (CharacterSkill(name=name, rating=1, karma_spent=cost),)
    return _spend_karma(character, cost, f"Learned {name}", skills=skills)


def add_specialization(character: Character, name: str, specialization: str) -> LedgerResult:
    blocked = guards.check_career(character)
    if blocked:
        return blocked
    skill = guards.find_by_name(character.skills, name)
    if skill is None:
        return not_found("Skill", name)
    if skill.specialization:
        return fail(ErrorKind.DUPLICATE, f"{name} already has a specialization ({skill.specialization})")
    if not specialization:
        return invalid("Specialization name cannot be empty")

    cost = core.KARMA_COSTS["NEW_SPECIALIZATION"]
    updated = skill.model_copy(update={"specialization": specialization, "karma_spent": skill.karma_spent + cost})
    skills = tuple(updated if s.name == name else s for s in character.skills)
    return _spend_karma(character, cost, f"Specialized {name} in {specialization}", skills=skills)


# --- Knowledge skills ---

def learn_knowledge_skill(character: Character, name: str, category: str = "Academic") -> LedgerResult:
    """Learns a knowledge skill at rating 1 for a flat 2 karma."""
    blocked = guards.check_career(character)
    if blocked:
        return blocked
    if guards.find_by_name(character.knowledge_skills, name):
        return duplicate("knowledge skill", name)

    cost = core.knowledge_karma_cost(1)
    skill = KnowledgeSkill(id=generate_id(), name=name, category=category, rating=1, karma_spent=cost)
    return _spend_karma(
        character, cost, f"Learned knowledge skill {name}",
        knowledge_skills=character.knowledge_skills + (skill,),
    )


def improve_knowledge_skill(character: Character, skill_id: str) -> LedgerResult:
    blocked = guards.check_career(character)
    if blocked:
        return blocked
    skill = guards.find_by_id(character.knowledge_skills, skill_id)
    if skill is None:
        return not_found("Knowledge skill", skill_id)
    if skill.rating >= core.MAX_SKILL_RATING:
        return at_limit(f"{skill.name} is already at maximum rating ({core.MAX_SKILL_RATING})")

    new_rating = skill.rating + 1
    cost = core.knowledge_karma_cost(new_rating)
    updated = skill.model_copy(update={"rating": new_rating, "karma_spent": skill.karma_spent + cost})
    return _spend_karma(
        character, cost, f"Improved {skill.name} to {new_rating}",
        knowledge_skills=guards.replace_by_id(character.knowledge_skills, skill_id, updated),
    )


# --- Magic & resonance ---

def learn_spell(character: Character, spell: Optional[GameSpell]) -> LedgerResult:
    blocked = guards.check_career(character)
    if blocked:
        return blocked
    if character.magic is None:
        return fail(ErrorKind.NOT_ELIGIBLE, magic.NOT_AWAKENED)
    if spell is None:
        return fail(ErrorKind.NOT_FOUND, "Unknown spell")
    if calculations.magic_type(character) == MagicType.ADEPT:
        return fail(ErrorKind.NOT_ELIGIBLE, "Adepts cannot learn spells")
    if guards.find_by_name(character.magic.spells, spell.name):
        return duplicate("spell", spell.name)

    cost = core.KARMA_COSTS["NEW_SPELL"]
    learned = magic.build_spell(spell, karma=cost)
    new_magic = character.magic.model_copy(update={"spells": character.magic.spells + (learned,)})
    return _spend_karma(character, cost, f"Learned spell {spell.name}", magic=new_magic)


def learn_complex_form(character: Character, form: Optional[GameComplexForm], rating: int = 1) -> LedgerResult:
    blocked = guards.check_career(character)
    if blocked:
        return blocked
    if character.resonance is None:
        return fail(ErrorKind.NOT_ELIGIBLE, magic.NOT_TECHNOMANCER)
    if form is None:
        return fail(ErrorKind.NOT_FOUND, "Unknown complex form")
    if guards.find_by_name(character.resonance.complex_forms, form.name):
        return duplicate("complex form", form.name)

    cost = core.KARMA_COSTS["NEW_COMPLEX_FORM"]
    learned = magic.build_complex_form(form, rating, karma=cost)
    resonance = character.resonance.model_copy(
        update={"complex_forms": character.resonance.complex_forms + (learned,)}
    )
    return _spend_karma(character, cost, f"Learned complex form {form.name}", resonance=resonance)


def initiate(character: Character) -> LedgerResult:
    """Raises the initiate grade by one (10 + new grade x 3 karma), opening one metamagic slot."""
    blocked = guards.check_career(character)
    if blocked:
        return blocked
    if character.magic is None:
        return fail(ErrorKind.NOT_ELIGIBLE, magic.NOT_AWAKENED)

    new_grade = character.magic.initiate_grade + 1
    cost = core.initiation_karma_cost(new_grade)
    new_magic = character.magic.model_copy(update={"initiate_grade": new_grade})
    return _spend_karma(character, cost, f"Initiated to grade {new_grade}", magic=new_magic)


def submerge(character: Character) -> LedgerResult:
    """Raises the submersion grade by one (10 + new grade x 3 karma), opening one echo slot."""
    blocked = guards.check_career(character)
    if blocked:
        return blocked
    if character.resonance is None:
        return fail(ErrorKind.NOT_ELIGIBLE, magic.NOT_TECHNOMANCER)

    new_grade = character.resonance.submersion_grade + 1
    cost = core.initiation_karma_cost(new_grade)
    resonance = character.resonance.model_copy(update={"submersion_grade": new_grade})
    return _spend_karma(character, cost, f"Submerged to grade {new_grade}", resonance=resonance)
