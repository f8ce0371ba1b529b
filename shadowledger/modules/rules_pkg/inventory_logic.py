from typing import Dict, List, Optional, Sequence, Tuple

from ..character_pkg.schemas import CharacterArmor, CharacterGear, CharacterWeapon
from .models_catalog import GameGear

# Gear is held as a flat list; these helpers treat it as a forest keyed by id.


def index_gear(gear: Sequence[CharacterGear]) -> Dict[str, CharacterGear]:
    return {item.id: item for item in gear}


def capacity_load(item: CharacterGear) -> int:
    """Capacity an item takes up inside its container."""
    return item.capacity_cost * item.quantity


def descendant_ids(gear: Sequence[CharacterGear], root_id: str) -> List[str]:
    """
    Returns the ids nested under `root_id`, depth-first, children before
    their parent. `root_id` itself is not included.
    """
    by_id = index_gear(gear)
    ordered: List[str] = []

    def walk(item_id: str) -> None:
        item = by_id.get(item_id)
        if item is None:
            return
        for child_id in item.contained_items:
            walk(child_id)
            ordered.append(child_id)

    walk(root_id)
    return ordered


def subtree_ids(gear: Sequence[CharacterGear], root_id: str) -> List[str]:
    """Every id removed together with `root_id`, the root last."""
    return descendant_ids(gear, root_id) + [root_id]


def subtree_value(gear: Sequence[CharacterGear], root_id: str) -> int:
    """Nuyen refunded when `root_id` and everything inside it is removed."""
    by_id = index_gear(gear)
    return sum(by_id[i].cost * by_id[i].quantity for i in subtree_ids(gear, root_id) if i in by_id)


def can_hold(container: CharacterGear, load: int) -> Tuple[bool, str]:
    """
    Checks whether `container` has room for `load` more capacity.
    """
    if container.capacity <= 0:
        return False, f"{container.name} cannot hold other items"
    if container.capacity_used + load > container.capacity:
        free = container.capacity - container.capacity_used
        return False, f"{container.name} does not have enough capacity (need {load}, free {free})"
    return True, "ok"


def can_move(gear: Sequence[CharacterGear], item_id: str, container_id: Optional[str]) -> Tuple[bool, str]:
    """
    Checks that moving `item_id` into `container_id` keeps the tree acyclic.
    A None container means the top level and is always allowed.
    """
    if container_id is None:
        return True, "ok"
    if container_id == item_id:
        return False, "Cannot move an item into itself"
    if container_id in descendant_ids(gear, item_id):
        return False, "Cannot move an item into something it contains"
    return True, "ok"


def detach(gear: Sequence[CharacterGear], item: CharacterGear) -> List[CharacterGear]:
    """
    Removes `item` from its current container's bookkeeping.
    The item itself keeps its container_id; callers replace it afterwards.
    """
    if item.container_id is None:
        return list(gear)
    result = []
    for entry in gear:
        if entry.id == item.container_id:
            entry = entry.model_copy(update={
                "contained_items": tuple(i for i in entry.contained_items if i != item.id),
                "capacity_used": max(0, entry.capacity_used - capacity_load(item)),
            })
        result.append(entry)
    return result


def attach(gear: Sequence[CharacterGear], item_id: str, container_id: str, load: int) -> List[CharacterGear]:
    """Adds `item_id` and its load to the container's bookkeeping."""
    result = []
    for entry in gear:
        if entry.id == container_id:
            contained = entry.contained_items
            if item_id not in contained:
                contained = contained + (item_id,)
            entry = entry.model_copy(update={
                "contained_items": contained,
                "capacity_used": entry.capacity_used + load,
            })
        result.append(entry)
    return result


def find_stack(gear: Sequence[CharacterGear], incoming: GameGear, container_id: Optional[str]) -> Optional[CharacterGear]:
    """
    Finds an entry that `incoming` can stack onto: same name, rating, unit
    price and capacity cost, in the same place. Every unit of a stack
    carries the same price.
    """
    for item in gear:
        if (
            item.name == incoming.name
            and item.rating == incoming.rating
            and item.cost == incoming.cost
            and item.capacity_cost == incoming.capacity_cost
            and item.capacity == 0
            and item.container_id == container_id
            and not item.contained_items
        ):
            return item
    return None


def can_mount(weapon: CharacterWeapon, mount: str) -> Tuple[bool, str]:
    """One accessory per mount point; accessories without a mount never collide."""
    if not mount:
        return True, "ok"
    for accessory in weapon.accessories:
        if accessory.mount == mount:
            return False, f"{weapon.name} already has an accessory on the {mount} mount ({accessory.name})"
    return True, "ok"


def can_modify(armor: CharacterArmor, capacity: int) -> Tuple[bool, str]:
    if armor.capacity_used + capacity > armor.capacity:
        free = armor.capacity - armor.capacity_used
        return False, f"{armor.name} does not have enough capacity (need {capacity}, free {free})"
    return True, "ok"
