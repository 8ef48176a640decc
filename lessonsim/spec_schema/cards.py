"""
Card definitions - the static data the engine plays with.

Cards are loaded once (from JSON or compiled from CSV text) and never
mutated. A deck may hold several copies of the same definition; each copy
is simply another element of a zone tuple.
"""

from __future__ import annotations
import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

from .effect_dsl import Condition, Effect

logger = logging.getLogger(__name__)


class CardDataError(ValueError):
    """Raised when card data cannot be turned into a Card."""


class CardType(Enum):
    """Skill card categories."""
    ACTIVE = "active"
    MENTAL = "mental"
    TROUBLE = "trouble"


class CostType(Enum):
    """Which pool pays a card's base cost."""
    NORMAL = "normal"  # genki first, shortfall from HP
    HP = "hp"  # straight from HP


class UsageLimit(Enum):
    ONCE_PER_LESSON = "once_per_lesson"


def _enum_field(enum_cls: type[Enum], raw: Any, card_id: str, field_name: str) -> Any:
    try:
        return enum_cls(raw)
    except ValueError:
        raise CardDataError(f"Card '{card_id}': invalid {field_name} {raw!r}")


@dataclass(frozen=True)
class Card:
    """
    An immutable skill card definition.

    `conditions` gate whether the card may be played at all; `effects`
    run in order when it is played.
    """
    id: str
    name: str
    type: CardType = CardType.ACTIVE
    plan: str = "free"
    cost: int = 0
    cost_type: CostType = CostType.NORMAL
    effects: tuple[Effect, ...] = ()
    conditions: tuple[Condition, ...] = ()
    unique: bool = False
    usage_limit: UsageLimit | None = None
    start_in_hand: bool = False
    rarity: str | None = None
    description: str = ""

    @property
    def is_trouble(self) -> bool:
        return self.type == CardType.TROUBLE

    @property
    def once_per_lesson(self) -> bool:
        return self.usage_limit == UsageLimit.ONCE_PER_LESSON

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Card:
        """Build a card from its JSON form (camelCase or snake_case keys)."""
        try:
            card_id = data["id"]
        except KeyError:
            raise CardDataError(f"Card data missing 'id': {dict(data)!r}")
        if "name" not in data:
            raise CardDataError(f"Card '{card_id}' is missing 'name'")

        usage_raw = data.get("usageLimit", data.get("usage_limit"))
        try:
            effects = tuple(Effect.from_dict(e) for e in data.get("effects") or ())
            conditions = tuple(Condition.from_dict(c) for c in data.get("conditions") or ())
            cost = int(data.get("cost", 0) or 0)
        except (KeyError, TypeError, ValueError) as e:
            raise CardDataError(f"Card '{card_id}': malformed effect data ({e})") from e

        return cls(
            id=card_id,
            name=data["name"],
            type=_enum_field(CardType, data.get("type", "active"), card_id, "type"),
            plan=data.get("plan", "free"),
            cost=cost,
            cost_type=_enum_field(
                CostType,
                data.get("costType", data.get("cost_type", "normal")),
                card_id,
                "costType",
            ),
            effects=effects,
            conditions=conditions,
            unique=bool(data.get("unique", False)),
            usage_limit=(
                _enum_field(UsageLimit, usage_raw, card_id, "usageLimit") if usage_raw else None
            ),
            start_in_hand=bool(data.get("startInHand", data.get("start_in_hand", False))),
            rarity=data.get("rarity"),
            description=data.get("description", data.get("effect", "")) or "",
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "plan": self.plan,
            "cost": self.cost,
            "costType": self.cost_type.value,
            "effects": [e.to_dict() for e in self.effects],
        }
        if self.conditions:
            data["conditions"] = [c.to_dict() for c in self.conditions]
        if self.unique:
            data["unique"] = True
        if self.usage_limit is not None:
            data["usageLimit"] = self.usage_limit.value
        if self.start_in_hand:
            data["startInHand"] = True
        if self.rarity:
            data["rarity"] = self.rarity
        if self.description:
            data["description"] = self.description
        return data


@dataclass(frozen=True)
class PDrink:
    """A one-shot consumable with optional structured effects."""
    id: str
    name: str
    plan: str = "free"
    description: str = ""
    effects: tuple[Effect, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PDrink:
        try:
            return cls(
                id=data["id"],
                name=data["name"],
                plan=data.get("plan", "free"),
                description=data.get("description", data.get("effect", "")) or "",
                effects=tuple(Effect.from_dict(e) for e in data.get("effects") or ()),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise CardDataError(f"Malformed drink data: {e}") from e

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "plan": self.plan,
            "description": self.description,
            "effects": [e.to_dict() for e in self.effects],
        }


def load_cards(path: str | Path) -> list[Card]:
    """
    Load cards from a JSON file.

    Accepts either a list of card objects or an object with a "cards" list.
    """
    path = Path(path)
    with path.open(encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, Mapping):
        data = data.get("cards", [])
    if not isinstance(data, list):
        raise CardDataError(f"{path}: expected a list of cards")

    cards = [Card.from_dict(item) for item in data]
    logger.debug("Loaded %d cards from %s", len(cards), path)
    return cards


def save_cards(cards: list[Card], path: str | Path) -> None:
    """Write cards to a JSON file."""
    path = Path(path)
    with path.open("w", encoding="utf-8") as f:
        json.dump([c.to_dict() for c in cards], f, ensure_ascii=False, indent=2)
