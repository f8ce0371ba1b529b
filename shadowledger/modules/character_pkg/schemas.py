# shadowledger/modules/character_pkg/schemas.py
"""
Character snapshot models.

Every model here is frozen: ledger operations never edit a snapshot in
place, they build a replacement with `model_copy(update=...)`. Sequences are
tuples and mappings are FrozenDicts, so a reader holding a snapshot cannot
change it either.
"""
from enum import Enum
from typing import Annotated, Any, Dict, Mapping, Optional, Tuple

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from ..rules_pkg.models_catalog import AttributeLimits


class LedgerModel(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)


class FrozenDict(dict):
    """
    A dict that refuses in-place changes.

    Build a changed copy with `{**old, key: value}` and hand it to
    `model_copy(update=...)`.
    """

    def _readonly(self, *args, **kwargs):
        raise TypeError(f"{type(self).__name__} is read-only")

    __setitem__ = __delitem__ = __ior__ = _readonly
    clear = pop = popitem = setdefault = update = _readonly

    def __reduce__(self):
        return (type(self), (dict(self),))


class CharacterStatus(str, Enum):
    CREATION = "creation"
    CAREER = "career"


class BuildMethod(str, Enum):
    BP = "bp"
    KARMA = "karma"


# --- Identity ---

class CharacterIdentity(LedgerModel):
    name: str = ""
    alias: str = ""
    player_name: str = ""
    metatype: str = ""
    metavariant: Optional[str] = None
    sex: str = ""
    age: str = ""
    height: str = ""
    weight: str = ""
    hair: str = ""
    eyes: str = ""
    skin: str = ""


class CharacterBackground(LedgerModel):
    description: str = ""
    background: str = ""
    concept: str = ""
    notes: str = ""


class BuildPointAllocation(LedgerModel):
    """Running BP totals per category."""
    metatype: int = 0
    attributes: int = 0
    skills: int = 0
    skill_groups: int = 0
    knowledge_skills: int = 0
    qualities: int = 0
    spells: int = 0
    complex_forms: int = 0
    contacts: int = 0
    resources: int = 0
    mentor: int = 0
    martial_arts: int = 0

    def total(self) -> int:
        return sum(self.model_dump().values())


class AttributeValue(LedgerModel):
    """
    One attribute rating split by source.

    `base` is bought with BP during creation, `karma` holds points raised in
    career mode, `bonus` comes from augmentations and magic.
    """
    base: int = 1
    bonus: int = 0
    karma: int = 0

    @property
    def rating(self) -> int:
        return self.base + self.karma

    @property
    def total(self) -> int:
        return self.base + self.karma + self.bonus


# --- Skills / qualities / contacts ---

class CharacterSkill(LedgerModel):
    name: str
    rating: int = 0
    specialization: Optional[str] = None
    bonus: int = 0
    karma_spent: int = 0
    bp: int = Field(default=0, description="BP charged for this skill during creation.")


class KnowledgeSkill(LedgerModel):
    id: str
    name: str
    category: str = "Academic"
    rating: int = 0
    specialization: Optional[str] = None
    karma_spent: int = 0
    bp: int = 0


class CharacterQuality(LedgerModel):
    id: str
    name: str
    category: str = Field(..., description="'Positive' or 'Negative'")
    bp: int = Field(..., description="BP captured when the quality was added.")
    rating: int = 1
    notes: str = ""
    capability: Optional[str] = None
    selected_skill: Optional[str] = None
    selected_attribute: Optional[str] = None


class Contact(LedgerModel):
    id: str
    name: str
    type: str = ""
    loyalty: int = 1
    connection: int = 1
    notes: str = ""
    bp: int = 0


# --- Magic ---

class CharacterSpell(LedgerModel):
    id: str
    name: str
    category: str = ""
    type: str = "M"
    range: str = "LOS"
    damage: str = ""
    duration: str = "I"
    dv: str = ""
    notes: str = ""
    bp: int = 0
    karma: int = 0


class CharacterPower(LedgerModel):
    id: str
    name: str
    points: float = Field(..., description="Total power points consumed (cost per level x level).")
    level: int = 1
    notes: str = ""


class BoundSpirit(LedgerModel):
    id: str
    type: str
    force: int = 1
    services: int = 0
    bound: bool = False


class Focus(LedgerModel):
    id: str
    name: str
    type: str = ""
    force: int = 1
    bonded: bool = False
    cost: int = 0


class CharacterMagic(LedgerModel):
    tradition: str = ""
    mentor: Optional[str] = None
    mentor_bp: int = 0
    initiate_grade: int = 0
    power_points: float = 0.0
    power_points_used: float = 0.0
    spells: Tuple[CharacterSpell, ...] = ()
    powers: Tuple[CharacterPower, ...] = ()
    spirits: Tuple[BoundSpirit, ...] = ()
    foci: Tuple[Focus, ...] = ()
    metamagics: Tuple[str, ...] = ()


# --- Resonance ---

class ComplexForm(LedgerModel):
    id: str
    name: str
    rating: int = 1
    target: str = ""
    duration: str = "I"
    notes: str = ""
    bp: int = 0
    karma: int = 0


class CompiledSprite(LedgerModel):
    id: str
    type: str
    rating: int = 1
    tasks: int = 0
    registered: bool = False


class CharacterResonance(LedgerModel):
    stream: str = ""
    submersion_grade: int = 0
    complex_forms: Tuple[ComplexForm, ...] = ()
    sprites: Tuple[CompiledSprite, ...] = ()
    echoes: Tuple[str, ...] = ()


# --- Equipment ---

class WeaponAccessory(LedgerModel):
    id: str
    name: str
    mount: str = ""
    cost: int = 0


class CharacterWeapon(LedgerModel):
    id: str
    name: str
    category: str = ""
    type: str = "Ranged"
    reach: int = 0
    damage: str = ""
    ap: str = "-"
    mode: str = ""
    rc: str = "0"
    ammo: str = ""
    current_ammo: int = 0
    conceal: int = 0
    cost: int = 0
    accessories: Tuple[WeaponAccessory, ...] = ()
    notes: str = ""


class ArmorModification(LedgerModel):
    id: str
    name: str
    rating: int = 1
    capacity: int = 1
    cost: int = 0


class CharacterArmor(LedgerModel):
    id: str
    name: str
    category: str = ""
    ballistic: int = 0
    impact: int = 0
    capacity: int = 0
    capacity_used: int = 0
    equipped: bool = True
    cost: int = 0
    modifications: Tuple[ArmorModification, ...] = ()
    notes: str = ""


class CharacterCyberware(LedgerModel):
    id: str
    name: str
    category: str = ""
    grade: str = "Standard"
    rating: int = 0
    essence: float = Field(..., description="Essence charged at install time, after the grade multiplier.")
    cost: int = Field(..., description="Nuyen charged at install time, after the grade multiplier.")
    capacity: str = ""
    location: str = ""
    notes: str = ""


class CharacterBioware(LedgerModel):
    id: str
    name: str
    category: str = ""
    grade: str = "Standard"
    rating: int = 0
    essence: float
    cost: int
    notes: str = ""


class CharacterVehicle(LedgerModel):
    id: str
    name: str
    category: str = ""
    handling: int = 0
    accel: str = ""
    speed: int = 0
    pilot: int = 0
    body: int = 0
    armor: int = 0
    sensor: int = 0
    cost: int = 0
    notes: str = ""


class CharacterGear(LedgerModel):
    """
    Gear entry in the flat gear arena.

    Containment is kept on both ends: `container_id` points at the parent
    and the parent lists this id in `contained_items`.
    """
    id: str
    name: str
    category: str = ""
    rating: int = 0
    quantity: int = 1
    cost: int = Field(default=0, description="Unit price.")
    capacity: int = 0
    capacity_cost: int = 0
    capacity_used: int = 0
    container_id: Optional[str] = None
    contained_items: Tuple[str, ...] = ()
    location: str = ""
    notes: str = ""


class CharacterMartialArt(LedgerModel):
    id: str
    name: str
    techniques: Tuple[str, ...] = ()
    bp: int = 0


class CharacterLifestyle(LedgerModel):
    id: str
    name: str
    level: str = ""
    monthly_cost: int = 0
    months_prepaid: int = 1
    location: str = ""
    notes: str = ""

    @property
    def prepaid_cost(self) -> int:
        return self.monthly_cost * self.months_prepaid


class CharacterEquipment(LedgerModel):
    weapons: Tuple[CharacterWeapon, ...] = ()
    armor: Tuple[CharacterArmor, ...] = ()
    cyberware: Tuple[CharacterCyberware, ...] = ()
    bioware: Tuple[CharacterBioware, ...] = ()
    vehicles: Tuple[CharacterVehicle, ...] = ()
    gear: Tuple[CharacterGear, ...] = ()
    martial_arts: Tuple[CharacterMartialArt, ...] = ()
    lifestyle: Optional[CharacterLifestyle] = None


# --- Career state ---

class CharacterReputation(LedgerModel):
    street_cred: int = 0
    notoriety: int = 0
    public_awareness: int = 0


class ConditionMonitor(LedgerModel):
    physical_current: int = 0
    stun_current: int = 0
    edge_current: int = Field(default=0, description="Edge points spent since the last refresh.")


class ExpenseEntry(LedgerModel):
    id: str
    date: str
    type: str = Field(..., description="'karma' or 'nuyen'")
    amount: int = Field(..., description="Signed: awards are positive, spending negative.")
    reason: str = ""


class CharacterSettings(LedgerModel):
    starting_bp: int = 400
    starting_karma: int = 750
    starting_nuyen: int = 0
    ignore_rules: bool = False


FROZEN_MAPPINGS = ("attributes", "attribute_limits")


class Character(LedgerModel):
    """
    The root snapshot. One value per point in time.
    """
    id: str
    owner_id: str = ""
    identity: CharacterIdentity = Field(default_factory=CharacterIdentity)
    background: CharacterBackground = Field(default_factory=CharacterBackground)

    status: CharacterStatus = CharacterStatus.CREATION
    build_method: BuildMethod = BuildMethod.BP
    build_points: int = 400
    build_points_spent: BuildPointAllocation = Field(default_factory=BuildPointAllocation)

    attributes: Annotated[Dict[str, AttributeValue], AfterValidator(FrozenDict)] = Field(default_factory=FrozenDict)
    essence: float = 6.0
    attribute_limits: Annotated[Dict[str, AttributeLimits], AfterValidator(FrozenDict)] = Field(default_factory=FrozenDict)

    skills: Tuple[CharacterSkill, ...] = ()
    knowledge_skills: Tuple[KnowledgeSkill, ...] = ()
    qualities: Tuple[CharacterQuality, ...] = ()
    contacts: Tuple[Contact, ...] = ()

    magic: Optional[CharacterMagic] = None
    resonance: Optional[CharacterResonance] = None

    equipment: CharacterEquipment = Field(default_factory=CharacterEquipment)

    nuyen: int = 0
    starting_nuyen: int = 0
    karma: int = 0
    total_karma: int = 0

    reputation: CharacterReputation = Field(default_factory=CharacterReputation)
    condition: ConditionMonitor = Field(default_factory=ConditionMonitor)
    expense_log: Tuple[ExpenseEntry, ...] = ()

    settings: CharacterSettings = Field(default_factory=CharacterSettings)
    created_at: str = ""
    updated_at: str = ""

    @property
    def is_career(self) -> bool:
        return self.status == CharacterStatus.CAREER

    def model_copy(self, *, update: Optional[Mapping[str, Any]] = None, deep: bool = False) -> "Character":
        # model_copy skips validation, so mappings passed in an update are frozen here.
        if update:
            update = {
                key: FrozenDict(value) if key in FROZEN_MAPPINGS and not isinstance(value, FrozenDict) else value
                for key, value in update.items()
            }
        return super().model_copy(update=update, deep=deep)


class CharacterSummary(BaseModel):
    """Listing row returned by the snapshot store."""
    id: str
    owner_id: str
    name: str
    alias: str
    metatype: str
    status: str
    updated_at: str

    class Config:
        from_attributes = True
