import json
import os
import logging
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ValidationError

from ...settings import load_settings
from .models_catalog import (
    GameArmor,
    GameArmorModification,
    GameBioware,
    GameComplexForm,
    GameCyberware,
    GameGear,
    GameLifestyle,
    GameMartialArt,
    GameMentor,
    GamePower,
    GameQuality,
    GameSpell,
    GameTradition,
    GameVehicle,
    GameWeapon,
    GameWeaponAccessory,
    Metatype,
    SkillDefinition,
)

logger = logging.getLogger("shadowledger.rules.data_loader")

# collection name -> item model; each is read from data/<collection>.json
COLLECTION_MODELS: Dict[str, Type[BaseModel]] = {
    "metatypes": Metatype,
    "qualities": GameQuality,
    "skills": SkillDefinition,
    "spells": GameSpell,
    "powers": GamePower,
    "complex_forms": GameComplexForm,
    "traditions": GameTradition,
    "mentors": GameMentor,
    "weapons": GameWeapon,
    "weapon_accessories": GameWeaponAccessory,
    "armor": GameArmor,
    "armor_modifications": GameArmorModification,
    "cyberware": GameCyberware,
    "bioware": GameBioware,
    "vehicles": GameVehicle,
    "gear": GameGear,
    "martial_arts": GameMartialArt,
    "lifestyles": GameLifestyle,
}


def get_data_dir() -> str:
    # Assumes this file is in modules/rules_pkg/
    return os.path.join(os.path.dirname(__file__), "data")


def load_json_data(filename: str, data_dir: Optional[str] = None) -> Any:
    filepath = os.path.join(data_dir or get_data_dir(), filename)
    try:
        with open(filepath, 'r') as f:
            data = json.load(f)
            logger.info(f"Loaded {filename}")
            return data
    except FileNotFoundError:
        logger.error(f"File not found: {filename}")
        return []
    except json.JSONDecodeError as e:
        logger.error(f"Error decoding {filename}: {e}")
        return []


class GameCatalog:
    """
    Read-only, name-indexed game content.

    Lookups never raise: an unknown collection or name gives None (or an
    empty list) so callers can treat it as an invalid choice.
    """

    def __init__(self, collections: Optional[Dict[str, List[BaseModel]]] = None):
        self._collections: Dict[str, List[BaseModel]] = {
            name: list(items) for name, items in (collections or {}).items()
        }

    @property
    def collection_names(self) -> List[str]:
        return sorted(self._collections)

    def all(self, collection: str) -> List[BaseModel]:
        if collection not in self._collections:
            logger.warning(f"Unknown catalog collection '{collection}'")
            return []
        return list(self._collections[collection])

    def find_by_name(self, collection: str, name: str) -> Optional[BaseModel]:
        """
        Finds an item by name. An exact match wins over a case-insensitive one.
        """
        items = self.all(collection)
        for item in items:
            if item.name == name:
                return item
        lowered = name.lower()
        for item in items:
            if item.name.lower() == lowered:
                return item
        return None

    def filter_by_category(self, collection: str, category: str) -> List[BaseModel]:
        return [item for item in self.all(collection) if getattr(item, "category", None) == category]

    def categories(self, collection: str) -> List[str]:
        found = {getattr(item, "category", None) for item in self.all(collection)}
        return sorted(c for c in found if c)


def _parse_collection(name: str, raw: Any) -> List[BaseModel]:
    model = COLLECTION_MODELS[name]
    if not isinstance(raw, list):
        logger.error(f"{name}.json must contain a list, got {type(raw).__name__}")
        return []
    items = []
    for entry in raw:
        try:
            items.append(model.model_validate(entry))
        except ValidationError as e:
            label = entry.get("name", "?") if isinstance(entry, dict) else "?"
            logger.error(f"Skipping invalid {name} entry '{label}': {e}")
    return items


def load_catalog(data_dir: Optional[str] = None) -> GameCatalog:
    """
    Reads every collection file from `data_dir` (the bundled data by default).
    Missing or broken files leave that collection empty.
    """
    collections = {}
    for name in COLLECTION_MODELS:
        collections[name] = _parse_collection(name, load_json_data(f"{name}.json", data_dir))
    total = sum(len(items) for items in collections.values())
    logger.info(f"Game catalog loaded: {total} items in {len(collections)} collections")
    return GameCatalog(collections)


# --- GLOBAL CATALOG ---
_catalog: Optional[GameCatalog] = None


def get_catalog() -> GameCatalog:
    """
    Returns the shared catalog, loading it on first use. The data directory
    comes from the `data_dir` setting when one is configured.
    """
    global _catalog
    if _catalog is None:
        _catalog = load_catalog(load_settings().get("data_dir"))
    return _catalog


def reload_catalog(data_dir: Optional[str] = None) -> GameCatalog:
    global _catalog
    _catalog = load_catalog(data_dir)
    return _catalog
