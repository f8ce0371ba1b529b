# shadowledger/modules/character_pkg/equipment.py
"""
Equipment purchases and sales.

Every purchase checks affordability (nuyen, and essence for implants)
before anything changes, and stores the price actually charged on the new
instance. Removal refunds that stored price, so a buy followed by a sell
always returns the character to the same totals.
"""
import logging
from typing import Iterable, Optional

from ...shared import generate_id
from ..rules_pkg import core, inventory_logic
from ..rules_pkg.models_catalog import (
    GameArmor,
    GameArmorModification,
    GameBioware,
    GameCyberware,
    GameGear,
    GameMartialArt,
    GameVehicle,
    GameWeapon,
    GameWeaponAccessory,
)
from . import guards
from .results import (
    ErrorKind,
    LedgerResult,
    duplicate,
    fail,
    insufficient,
    invalid,
    not_found,
    ok,
)
from .schemas import (
    ArmorModification,
    Character,
    CharacterArmor,
    CharacterBioware,
    CharacterCyberware,
    CharacterEquipment,
    CharacterGear,
    CharacterLifestyle,
    CharacterMartialArt,
    CharacterVehicle,
    CharacterWeapon,
    WeaponAccessory,
)

logger = logging.getLogger("shadowledger.character.equipment")


def _with_equipment(character: Character, nuyen_delta: int = 0, essence: Optional[float] = None, **changes) -> Character:
    equipment: CharacterEquipment = character.equipment.model_copy(update=changes)
    update = {"equipment": equipment, "nuyen": character.nuyen + nuyen_delta}
    if essence is not None:
        update["essence"] = essence
    return guards.touch(character, **update)


def _unknown(what: str) -> LedgerResult:
    return fail(ErrorKind.NOT_FOUND, f"Unknown {what}")


# --- Weapons ---

def add_weapon(character: Character, weapon: Optional[GameWeapon]) -> LedgerResult:
    """
    Buys a weapon. Ammo-fed weapons come loaded to their parsed capacity.
    """
    if weapon is None:
        return _unknown("weapon")
    failure = guards.check_nuyen(character, weapon.cost)
    if failure:
        return failure

    owned = CharacterWeapon(
        id=generate_id(),
        name=weapon.name,
        category=weapon.category,
        type=weapon.type,
        reach=weapon.reach,
        damage=weapon.damage,
        ap=weapon.ap,
        mode=weapon.mode,
        rc=weapon.rc,
        ammo=weapon.ammo,
        current_ammo=core.get_max_ammo(weapon.ammo),
        conceal=weapon.conceal,
        cost=weapon.cost,
    )
    logger.info(f"Character {character.id} bought {weapon.name} for {weapon.cost} nuyen")
    return ok(_with_equipment(character, -weapon.cost, weapons=character.equipment.weapons + (owned,)))


def remove_weapon(character: Character, weapon_id: str) -> LedgerResult:
    """Sells a weapon together with its accessories."""
    weapon = guards.find_by_id(character.equipment.weapons, weapon_id)
    if weapon is None:
        return not_found("Weapon", weapon_id)
    refund = weapon.cost + sum(a.cost for a in weapon.accessories)
    return ok(_with_equipment(
        character, refund, weapons=guards.without_id(character.equipment.weapons, weapon_id)
    ))


def add_weapon_accessory(character: Character, weapon_id: str, accessory: Optional[GameWeaponAccessory]) -> LedgerResult:
    weapon = guards.find_by_id(character.equipment.weapons, weapon_id)
    if weapon is None:
        return not_found("Weapon", weapon_id)
    if accessory is None:
        return _unknown("weapon accessory")
    mountable, message = inventory_logic.can_mount(weapon, accessory.mount)
    if not mountable:
        return fail(ErrorKind.CAPACITY_EXCEEDED, message)
    failure = guards.check_nuyen(character, accessory.cost)
    if failure:
        return failure

    owned = WeaponAccessory(id=generate_id(), name=accessory.name, mount=accessory.mount, cost=accessory.cost)
    updated = weapon.model_copy(update={"accessories": weapon.accessories + (owned,)})
    return ok(_with_equipment(
        character, -accessory.cost,
        weapons=guards.replace_by_id(character.equipment.weapons, weapon_id, updated),
    ))


def remove_weapon_accessory(character: Character, weapon_id: str, accessory_id: str) -> LedgerResult:
    weapon = guards.find_by_id(character.equipment.weapons, weapon_id)
    if weapon is None:
        return not_found("Weapon", weapon_id)
    accessory = guards.find_by_id(weapon.accessories, accessory_id)
    if accessory is None:
        return not_found("Accessory", accessory_id)
    updated = weapon.model_copy(update={"accessories": guards.without_id(weapon.accessories, accessory_id)})
    return ok(_with_equipment(
        character, accessory.cost,
        weapons=guards.replace_by_id(character.equipment.weapons, weapon_id, updated),
    ))


def _set_current_ammo(character: Character, weapon: CharacterWeapon, amount: int) -> Character:
    updated = weapon.model_copy(update={"current_ammo": amount})
    return _with_equipment(character, weapons=guards.replace_by_id(character.equipment.weapons, weapon.id, updated))


def spend_ammo(character: Character, weapon_id: str, rounds: int = 1) -> LedgerResult:
    weapon = guards.find_by_id(character.equipment.weapons, weapon_id)
    if weapon is None:
        return not_found("Weapon", weapon_id)
    failure = guards.check_positive(rounds, "Rounds fired")
    if failure:
        return failure
    if rounds > weapon.current_ammo:
        return insufficient("ammo", rounds, weapon.current_ammo)
    return ok(_set_current_ammo(character, weapon, weapon.current_ammo - rounds))


def reload_weapon(character: Character, weapon_id: str) -> LedgerResult:
    weapon = guards.find_by_id(character.equipment.weapons, weapon_id)
    if weapon is None:
        return not_found("Weapon", weapon_id)
    return ok(_set_current_ammo(character, weapon, core.get_max_ammo(weapon.ammo)))


def set_ammo(character: Character, weapon_id: str, amount: int) -> LedgerResult:
    """Sets loaded rounds directly, clamped to [0, capacity]."""
    weapon = guards.find_by_id(character.equipment.weapons, weapon_id)
    if weapon is None:
        return not_found("Weapon", weapon_id)
    amount = core.clamp(amount, 0, core.get_max_ammo(weapon.ammo))
    return ok(_set_current_ammo(character, weapon, amount))


# --- Armor ---

def add_armor(character: Character, armor: Optional[GameArmor], equipped: bool = True) -> LedgerResult:
    if armor is None:
        return _unknown("armor")
    failure = guards.check_nuyen(character, armor.cost)
    if failure:
        return failure
    owned = CharacterArmor(
        id=generate_id(),
        name=armor.name,
        category=armor.category,
        ballistic=armor.ballistic,
        impact=armor.impact,
        capacity=armor.capacity,
        equipped=equipped,
        cost=armor.cost,
    )
    return ok(_with_equipment(character, -armor.cost, armor=character.equipment.armor + (owned,)))


def remove_armor(character: Character, armor_id: str) -> LedgerResult:
    armor = guards.find_by_id(character.equipment.armor, armor_id)
    if armor is None:
        return not_found("Armor", armor_id)
    refund = armor.cost + sum(m.cost for m in armor.modifications)
    return ok(_with_equipment(character, refund, armor=guards.without_id(character.equipment.armor, armor_id)))


def set_armor_equipped(character: Character, armor_id: str, equipped: bool) -> LedgerResult:
    armor = guards.find_by_id(character.equipment.armor, armor_id)
    if armor is None:
        return not_found("Armor", armor_id)
    updated = armor.model_copy(update={"equipped": equipped})
    return ok(_with_equipment(character, armor=guards.replace_by_id(character.equipment.armor, armor_id, updated)))


def add_armor_modification(character: Character, armor_id: str, modification: Optional[GameArmorModification]) -> LedgerResult:
    """Installs a modification; the armor's capacity bounds the total."""
    armor = guards.find_by_id(character.equipment.armor, armor_id)
    if armor is None:
        return not_found("Armor", armor_id)
    if modification is None:
        return _unknown("armor modification")
    fits, message = inventory_logic.can_modify(armor, modification.capacity)
    if not fits:
        return fail(ErrorKind.CAPACITY_EXCEEDED, message)
    failure = guards.check_nuyen(character, modification.cost)
    if failure:
        return failure

    owned = ArmorModification(
        id=generate_id(),
        name=modification.name,
        rating=modification.rating,
        capacity=modification.capacity,
        cost=modification.cost,
    )
    updated = armor.model_copy(update={
        "modifications": armor.modifications + (owned,),
        "capacity_used": armor.capacity_used + modification.capacity,
    })
    return ok(_with_equipment(
        character, -modification.cost,
        armor=guards.replace_by_id(character.equipment.armor, armor_id, updated),
    ))


def remove_armor_modification(character: Character, armor_id: str, modification_id: str) -> LedgerResult:
    armor = guards.find_by_id(character.equipment.armor, armor_id)
    if armor is None:
        return not_found("Armor", armor_id)
    modification = guards.find_by_id(armor.modifications, modification_id)
    if modification is None:
        return not_found("Armor modification", modification_id)
    updated = armor.model_copy(update={
        "modifications": guards.without_id(armor.modifications, modification_id),
        "capacity_used": max(0, armor.capacity_used - modification.capacity),
    })
    return ok(_with_equipment(
        character, modification.cost,
        armor=guards.replace_by_id(character.equipment.armor, armor_id, updated),
    ))


# --- Cyberware / bioware ---

def _check_implant(character: Character, essence_cost: float, cost: int) -> Optional[LedgerResult]:
    if essence_cost > character.essence:
        return insufficient("essence", essence_cost, character.essence)
    return guards.check_nuyen(character, cost)


def add_cyberware(
    character: Character,
    cyberware: Optional[GameCyberware],
    grade: str = "Standard",
    location: str = "",
) -> LedgerResult:
    """
    Installs cyberware of the given grade.

    Essence cost is base x grade multiplier, nuyen cost is
    floor(base x grade multiplier). Both are stored on the implant.
    """
    if cyberware is None:
        return _unknown("cyberware")
    multiplier = core.CYBERWARE_GRADES.get(grade)
    if multiplier is None:
        return not_found("Cyberware grade", grade)

    essence_cost, cost = core.apply_grade(cyberware.ess, cyberware.cost, multiplier)
    failure = _check_implant(character, essence_cost, cost)
    if failure:
        return failure

    implant = CharacterCyberware(
        id=generate_id(),
        name=cyberware.name,
        category=cyberware.category,
        grade=grade,
        rating=cyberware.rating,
        essence=essence_cost,
        cost=cost,
        capacity=cyberware.capacity,
        location=location,
    )
    logger.info(f"Character {character.id} installed {grade} {cyberware.name} ({essence_cost} essence, {cost} nuyen)")
    return ok(_with_equipment(
        character, -cost,
        essence=core.round_essence(character.essence - essence_cost),
        cyberware=character.equipment.cyberware + (implant,),
    ))


def remove_cyberware(character: Character, cyberware_id: str) -> LedgerResult:
    implant = guards.find_by_id(character.equipment.cyberware, cyberware_id)
    if implant is None:
        return not_found("Cyberware", cyberware_id)
    return ok(_with_equipment(
        character, implant.cost,
        essence=core.round_essence(character.essence + implant.essence),
        cyberware=guards.without_id(character.equipment.cyberware, cyberware_id),
    ))


def add_bioware(character: Character, bioware: Optional[GameBioware], grade: str = "Standard") -> LedgerResult:
    if bioware is None:
        return _unknown("bioware")
    multiplier = core.BIOWARE_GRADES.get(grade)
    if multiplier is None:
        return not_found("Bioware grade", grade)

    essence_cost, cost = core.apply_grade(bioware.ess, bioware.cost, multiplier)
    failure = _check_implant(character, essence_cost, cost)
    if failure:
        return failure

    implant = CharacterBioware(
        id=generate_id(),
        name=bioware.name,
        category=bioware.category,
        grade=grade,
        rating=bioware.rating,
        essence=essence_cost,
        cost=cost,
    )
    return ok(_with_equipment(
        character, -cost,
        essence=core.round_essence(character.essence - essence_cost),
        bioware=character.equipment.bioware + (implant,),
    ))


def remove_bioware(character: Character, bioware_id: str) -> LedgerResult:
    implant = guards.find_by_id(character.equipment.bioware, bioware_id)
    if implant is None:
        return not_found("Bioware", bioware_id)
    return ok(_with_equipment(
        character, implant.cost,
        essence=core.round_essence(character.essence + implant.essence),
        bioware=guards.without_id(character.equipment.bioware, bioware_id),
    ))


# --- Vehicles ---

def add_vehicle(character: Character, vehicle: Optional[GameVehicle]) -> LedgerResult:
    if vehicle is None:
        return _unknown("vehicle")
    failure = guards.check_nuyen(character, vehicle.cost)
    if failure:
        return failure
    owned = CharacterVehicle(
        id=generate_id(),
        name=vehicle.name,
        category=vehicle.category,
        handling=vehicle.handling,
        accel=vehicle.accel,
        speed=vehicle.speed,
        pilot=vehicle.pilot,
        body=vehicle.body,
        armor=vehicle.armor,
        sensor=vehicle.sensor,
        cost=vehicle.cost,
    )
    return ok(_with_equipment(character, -vehicle.cost, vehicles=character.equipment.vehicles + (owned,)))


def remove_vehicle(character: Character, vehicle_id: str) -> LedgerResult:
    vehicle = guards.find_by_id(character.equipment.vehicles, vehicle_id)
    if vehicle is None:
        return not_found("Vehicle", vehicle_id)
    return ok(_with_equipment(
        character, vehicle.cost, vehicles=guards.without_id(character.equipment.vehicles, vehicle_id)
    ))


# --- Gear ---

def add_gear(
    character: Character,
    gear: Optional[GameGear],
    quantity: int = 1,
    container_id: Optional[str] = None,
) -> LedgerResult:
    """
    Buys gear, optionally straight into a container.

    Identical gear (same name, rating and price) in the same place stacks
    onto one entry. Placing gear in a container consumes capacity_cost x
    quantity of its capacity.
    """
    if gear is None:
        return _unknown("gear")
    if quantity < 1:
        return invalid(f"Quantity must be at least 1 (got {quantity})")

    items = character.equipment.gear
    load = gear.capacity_cost * quantity
    if container_id is not None:
        container = guards.find_by_id(items, container_id)
        if container is None:
            return not_found("Container", container_id)
        fits, message = inventory_logic.can_hold(container, load)
        if not fits:
            return fail(ErrorKind.CAPACITY_EXCEEDED, message)

    cost = gear.cost * quantity
    failure = guards.check_nuyen(character, cost)
    if failure:
        return failure

    stack = inventory_logic.find_stack(items, gear, container_id) if gear.capacity == 0 else None
    if stack is not None:
        updated = stack.model_copy(update={"quantity": stack.quantity + quantity})
        new_items = list(guards.replace_by_id(items, stack.id, updated))
        item_id = stack.id
    else:
        item_id = generate_id()
        owned = CharacterGear(
            id=item_id,
            name=gear.name,
            category=gear.category,
            rating=gear.rating,
            quantity=quantity,
            cost=gear.cost,
            capacity=gear.capacity,
            capacity_cost=gear.capacity_cost,
            container_id=container_id,
        )
        new_items = list(items) + [owned]

    if container_id is not None:
        new_items = inventory_logic.attach(new_items, item_id, container_id, load)
    return ok(_with_equipment(character, -cost, gear=tuple(new_items)))


def move_gear_to_container(character: Character, gear_id: str, container_id: Optional[str]) -> LedgerResult:
    """
    Moves gear into a container, or to the top level with None.

    Refuses to move an item into itself or into anything nested inside it.
    """
    items = character.equipment.gear
    item = guards.find_by_id(items, gear_id)
    if item is None:
        return not_found("Gear", gear_id)
    if container_id == item.container_id:
        return ok(character)

    allowed, message = inventory_logic.can_move(items, gear_id, container_id)
    if not allowed:
        return invalid(message)

    load = inventory_logic.capacity_load(item)
    if container_id is not None:
        container = guards.find_by_id(items, container_id)
        if container is None:
            return not_found("Container", container_id)
        fits, message = inventory_logic.can_hold(container, load)
        if not fits:
            return fail(ErrorKind.CAPACITY_EXCEEDED, message)

    new_items = inventory_logic.detach(items, item)
    moved = item.model_copy(update={"container_id": container_id})
    new_items = list(guards.replace_by_id(new_items, gear_id, moved))
    if container_id is not None:
        new_items = inventory_logic.attach(new_items, gear_id, container_id, load)
    return ok(_with_equipment(character, gear=tuple(new_items)))


def remove_gear(character: Character, gear_id: str) -> LedgerResult:
    """
    Sells gear. A container goes together with everything nested inside
    it, and every removed item is refunded.
    """
    items = character.equipment.gear
    item = guards.find_by_id(items, gear_id)
    if item is None:
        return not_found("Gear", gear_id)

    removed = set(inventory_logic.subtree_ids(items, gear_id))
    refund = inventory_logic.subtree_value(items, gear_id)
    remaining = [g for g in inventory_logic.detach(items, item) if g.id not in removed]
    if len(removed) > 1:
        logger.info(f"Removing {item.name} with {len(removed) - 1} nested item(s), refund {refund}")
    return ok(_with_equipment(character, refund, gear=tuple(remaining)))


# --- Lifestyle ---

def set_lifestyle(
    character: Character,
    name: str,
    monthly_cost: int,
    months_prepaid: int = 1,
    level: str = "",
) -> LedgerResult:
    """
    Sets the lifestyle, replacing any current one.

    The old lifestyle's prepaid cost is refunded and the new one charged as
    a single balance check.
    """
    if monthly_cost < 0:
        return invalid(f"Monthly cost cannot be negative (got {monthly_cost})")
    if months_prepaid < 1:
        return invalid(f"Months prepaid must be at least 1 (got {months_prepaid})")

    current = character.equipment.lifestyle
    refund = current.prepaid_cost if current else 0
    cost = monthly_cost * months_prepaid
    available = character.nuyen + refund
    if cost > available:
        return insufficient("nuyen", cost, available)

    lifestyle = CharacterLifestyle(
        id=generate_id(),
        name=name,
        level=level or name,
        monthly_cost=monthly_cost,
        months_prepaid=months_prepaid,
    )
    return ok(_with_equipment(character, refund - cost, lifestyle=lifestyle))


def remove_lifestyle(character: Character) -> LedgerResult:
    current = character.equipment.lifestyle
    if current is None:
        return fail(ErrorKind.NOT_FOUND, "No lifestyle to remove")
    return ok(_with_equipment(character, current.prepaid_cost, lifestyle=None))


# --- Martial arts ---

def add_martial_art(
    character: Character,
    martial_art: Optional[GameMartialArt],
    techniques: Iterable[str] = (),
) -> LedgerResult:
    """
    Learns a martial art style during creation.

    The style costs 5 BP including its first technique; each further
    technique costs 2 BP.
    """
    blocked = guards.check_creation(character)
    if blocked:
        return blocked
    if martial_art is None:
        return _unknown("martial art")
    if guards.find_by_name(character.equipment.martial_arts, martial_art.name):
        return duplicate("martial art", martial_art.name)

    chosen = tuple(dict.fromkeys(techniques))
    unknown = [t for t in chosen if martial_art.techniques and t not in martial_art.techniques]
    if unknown:
        return invalid(f"{martial_art.name} does not teach {', '.join(unknown)}")

    bp = core.martial_art_bp(len(chosen))
    failure, spent = guards.charge_bp(character, martial_arts=bp)
    if failure:
        return failure

    style = CharacterMartialArt(id=generate_id(), name=martial_art.name, techniques=chosen, bp=bp)
    equipment = character.equipment.model_copy(
        update={"martial_arts": character.equipment.martial_arts + (style,)}
    )
    return ok(guards.touch(character, equipment=equipment, build_points_spent=spent))


def add_martial_art_technique(
    character: Character,
    martial_art_id: str,
    technique: str,
    martial_art: Optional[GameMartialArt],
) -> LedgerResult:
    """
    Adds one technique to a known style for 2 BP. `martial_art` is the
    style's catalog entry; the technique must be one it teaches.
    """
    blocked = guards.check_creation(character)
    if blocked:
        return blocked
    style = guards.find_by_id(character.equipment.martial_arts, martial_art_id)
    if style is None:
        return not_found("Martial art", martial_art_id)
    if martial_art is None:
        return _unknown("martial art")
    if martial_art.name != style.name:
        return invalid(f"{martial_art.name} is not the style {style.name}")
    if technique in style.techniques:
        return duplicate("technique", technique)
    if martial_art.techniques and technique not in martial_art.techniques:
        return invalid(f"{martial_art.name} does not teach {technique}")

    techniques = style.techniques + (technique,)
    bp = core.martial_art_bp(len(techniques))
    failure, spent = guards.charge_bp(character, martial_arts=bp - style.bp)
    if failure:
        return failure

    updated = style.model_copy(update={"techniques": techniques, "bp": bp})
    equipment = character.equipment.model_copy(
        update={"martial_arts": guards.replace_by_id(character.equipment.martial_arts, martial_art_id, updated)}
    )
    return ok(guards.touch(character, equipment=equipment, build_points_spent=spent))


def remove_martial_art(character: Character, martial_art_id: str) -> LedgerResult:
    blocked = guards.check_creation(character)
    if blocked:
        return blocked
    style = guards.find_by_id(character.equipment.martial_arts, martial_art_id)
    if style is None:
        return not_found("Martial art", martial_art_id)
    _, spent = guards.charge_bp(character, martial_arts=-style.bp)
    equipment = character.equipment.model_copy(
        update={"martial_arts": guards.without_id(character.equipment.martial_arts, martial_art_id)}
    )
    return ok(guards.touch(character, equipment=equipment, build_points_spent=spent))
