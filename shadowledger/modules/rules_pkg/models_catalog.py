from pydantic import BaseModel, Field
from typing import Dict, List, Optional


class AttributeLimits(BaseModel):
    """
    Natural minimum, natural maximum and augmented maximum for one attribute.
    """
    model_config = {"frozen": True}

    min: int = 1
    max: int = 6
    aug: int = 9


class Metavariant(BaseModel):
    name: str
    bp: int = Field(default=0, description="Build point cost, replaces the parent metatype's cost.")
    attributes: Dict[str, AttributeLimits] = Field(default_factory=dict)


class Metatype(BaseModel):
    """
    Represents a playable metatype loaded from metatypes.json.
    """
    name: str
    category: str = "Metahuman"
    bp: int = Field(default=0, description="Build point cost of the metatype.")
    attributes: Dict[str, AttributeLimits] = Field(default_factory=dict,
                                                   description="Attribute code -> limits.")
    movement: str = ""
    qualities: List[str] = Field(default_factory=list, description="Racial qualities granted for free.")
    metavariants: List[Metavariant] = Field(default_factory=list)


class GameQuality(BaseModel):
    name: str
    category: str = Field(..., description="'Positive' or 'Negative'")
    bp: int = Field(..., description="Build point cost; negative qualities carry negative values.")
    capability: Optional[str] = Field(None, description="Stable capability tag, e.g. 'magician' or 'technomancer'.")
    limit: int = 1


class SkillDefinition(BaseModel):
    name: str
    attribute: str = Field(..., description="Linked attribute code, e.g. 'agi'.")
    category: str = ""
    default: bool = True
    skillgroup: str = ""
    specializations: List[str] = Field(default_factory=list)


class GameSpell(BaseModel):
    name: str
    category: str
    type: str = "M"
    range: str = "LOS"
    damage: str = ""
    duration: str = "I"
    dv: str = ""


class GamePower(BaseModel):
    name: str
    points: float = Field(..., description="Power point cost per level.")
    levels: bool = False
    max_levels: int = 1


class GameComplexForm(BaseModel):
    name: str
    target: str = ""
    duration: str = "I"


class GameWeapon(BaseModel):
    name: str
    category: str
    type: str = Field(default="Ranged", description="'Melee' or 'Ranged'")
    reach: int = 0
    damage: str = ""
    ap: str = "-"
    mode: str = ""
    rc: str = "0"
    ammo: str = Field(default="", description="Ammo capacity string, e.g. '15(c)'.")
    conceal: int = 0
    avail: str = ""
    cost: int = 0


class GameWeaponAccessory(BaseModel):
    name: str
    mount: str = Field(default="", description="Mount point, e.g. 'Top', 'Barrel', 'Under'.")
    avail: str = ""
    cost: int = 0


class GameArmor(BaseModel):
    name: str
    category: str = "Armor"
    ballistic: int = 0
    impact: int = 0
    capacity: int = 0
    avail: str = ""
    cost: int = 0


class GameArmorModification(BaseModel):
    name: str
    rating: int = 1
    capacity: int = 1
    avail: str = ""
    cost: int = 0


class GameCyberware(BaseModel):
    name: str
    category: str
    ess: float = Field(..., description="Base essence cost before grade multipliers.")
    capacity: str = ""
    avail: str = ""
    cost: int = 0
    rating: int = 0
    min_rating: int = 0
    max_rating: int = 0


class GameBioware(BaseModel):
    name: str
    category: str
    ess: float
    avail: str = ""
    cost: int = 0
    rating: int = 0
    max_rating: int = 0


class GameVehicle(BaseModel):
    name: str
    category: str
    handling: int = 0
    accel: str = ""
    speed: int = 0
    pilot: int = 0
    body: int = 0
    armor: int = 0
    sensor: int = 0
    avail: str = ""
    cost: int = 0


class GameGear(BaseModel):
    name: str
    category: str
    rating: int = 0
    capacity: int = Field(default=0, description="How much capacity this item offers to contained gear.")
    capacity_cost: int = Field(default=0, description="How much capacity one unit consumes inside a container.")
    avail: str = ""
    cost: int = 0


class GameMartialArt(BaseModel):
    name: str
    techniques: List[str] = Field(default_factory=list)


class GameLifestyle(BaseModel):
    name: str
    cost: int
    dice: int = 0
    multiplier: int = 0


class GameTradition(BaseModel):
    name: str
    drain: str = ""
    spirits: List[str] = Field(default_factory=list)


class GameMentor(BaseModel):
    name: str
    advantage: str = ""
    disadvantage: str = ""
