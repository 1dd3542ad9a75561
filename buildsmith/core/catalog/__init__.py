"""카탈로그 Core: 아이템 정의, 인덱스"""

from .index import CatalogIndex, normalize_record
from .models import (
    ARMOR_SLOTS,
    SUBCLASS_ELEMENTS,
    WEAPON_SLOTS,
    ClassType,
    Element,
    ItemDefinition,
    ItemKind,
    Rarity,
    Slot,
)

__all__ = [
    "ARMOR_SLOTS",
    "CatalogIndex",
    "ClassType",
    "Element",
    "ItemDefinition",
    "ItemKind",
    "Rarity",
    "SUBCLASS_ELEMENTS",
    "Slot",
    "WEAPON_SLOTS",
    "normalize_record",
]
