"""
Game State - Immutable snapshot of a lesson in progress.

Design principles:
- Immutable: every field is a value or a tuple; all changes go through
  copy_with() and return a new state
- Single aggregate: zones, pools, buffs and the log trail live together
- Serializable: to_dict() gives the JSON shape consumed by hosts
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping

from ..config import LOGIC_CONSTANTS
from ..spec_schema.cards import Card, PDrink
from ..spec_schema.effect_dsl import Condition, Effect, EffectType, kind_name


class TurnPhase(Enum):
    """Informational turn phases."""
    START = "start"
    MAIN = "main"
    END = "end"


class LessonAttribute(Enum):
    """Per-turn stat that feeds the scoring multiplier."""
    VOCAL = "vocal"
    DANCE = "dance"
    VISUAL = "visual"


@dataclass(frozen=True)
class Buff:
    """
    A persistent modifier attached to the game state.

    duration counts remaining turns (-1 = rest of the lesson); count, when
    set, is a use-based budget consumed by the triggering event instead.
    is_new marks buffs granted during the current turn so the next turn
    boundary clears the marker instead of ticking them down.
    """
    id: str
    type: EffectType | str
    duration: int
    name: str
    count: int | None = None
    value: float | None = None
    ratio: float | None = None
    is_new: bool = False
    triggered_effect: Effect | None = None
    trigger_condition: Condition | None = None
    param: str | None = None
    double_motivation: bool = False

    @property
    def indefinite(self) -> bool:
        return self.duration == LOGIC_CONSTANTS.indefinite_duration

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "type": kind_name(self.type),
            "duration": self.duration,
            "name": self.name,
            "isNew": self.is_new,
        }
        if self.count is not None:
            data["count"] = self.count
        if self.value is not None:
            data["value"] = self.value
        if self.ratio is not None:
            data["ratio"] = self.ratio
        if self.param is not None:
            data["param"] = self.param
        if self.triggered_effect is not None:
            data["triggeredEffect"] = self.triggered_effect.to_dict()
        if self.trigger_condition is not None:
            data["triggerCondition"] = self.trigger_condition.to_dict()
        return data


@dataclass(frozen=True)
class PDrinkState:
    """A drink brought into the lesson and whether it has been used."""
    drink: PDrink
    used: bool = False


@dataclass(frozen=True)
class InitialStatus:
    """Character status a lesson starts from."""
    vocal: int = 0
    dance: int = 0
    visual: int = 0
    hp: int = LOGIC_CONSTANTS.default_hp
    max_hp: int = LOGIC_CONSTANTS.default_hp

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> InitialStatus:
        if not data:
            return cls()
        hp = data.get("hp", LOGIC_CONSTANTS.default_hp)
        return cls(
            vocal=data.get("vocal", 0),
            dance=data.get("dance", 0),
            visual=data.get("visual", 0),
            hp=hp,
            max_hp=data.get("maxHp", data.get("max_hp", hp)),
        )


@dataclass(frozen=True)
class GameState:
    """
    Complete lesson state at a point in time.

    This is the only value the engine reads and writes. Each of the card
    zones holds distinct card instances; a card is in exactly one zone.
    """
    # Turn counters
    turn: int = 1
    max_turns: int = LOGIC_CONSTANTS.max_turns
    phase: TurnPhase = TurnPhase.START
    current_turn_attribute: LessonAttribute = LessonAttribute.VOCAL

    # Base parameters
    vocal: int = 0
    dance: int = 0
    visual: int = 0

    # Resource pools
    hp: int = LOGIC_CONSTANTS.default_hp
    max_hp: int = LOGIC_CONSTANTS.default_hp
    shield: int = 0
    genki: int = 0
    good_impression: int = 0
    motivation: int = 0
    concentration: int = 0

    score: int = 0

    # Card zones
    deck: tuple[Card, ...] = ()  # next card to draw is the last element
    hand: tuple[Card, ...] = ()
    discard: tuple[Card, ...] = ()
    on_hold: tuple[Card, ...] = ()
    excluded: tuple[Card, ...] = ()

    cards_played: int = 0
    buffs: tuple[Buff, ...] = ()
    logs: tuple[str, ...] = ()
    p_drinks: tuple[PDrinkState, ...] = ()

    # Card definitions by id, used for upgrades and trouble generation
    catalog: Mapping[str, Card] = field(default_factory=dict, compare=False, repr=False)

    @property
    def is_finished(self) -> bool:
        return self.turn >= self.max_turns

    @property
    def attribute_stat(self) -> int:
        """Base stat matching the current turn attribute."""
        return getattr(self, self.current_turn_attribute.value)

    def find_in_hand(self, card_id: str) -> Card | None:
        for card in self.hand:
            if card.id == card_id:
                return card
        return None

    def buffs_of(self, kind: EffectType) -> list[Buff]:
        return [b for b in self.buffs if b.type == kind]

    def has_buff(self, kind: EffectType) -> bool:
        return any(b.type == kind for b in self.buffs)

    def sum_buff_values(self, kind: EffectType, param: str | None = None) -> float:
        """Sum of value across active buffs of a kind, optionally filtered by param."""
        return sum(
            (b.value or 0)
            for b in self.buffs
            if b.type == kind and (param is None or b.param == param)
        )

    def with_logs(self, *lines: str) -> GameState:
        """Return new state with log lines appended."""
        if not lines:
            return self
        return self.copy_with(logs=self.logs + tuple(lines))

    def copy_with(self, **kwargs) -> GameState:
        """Create a copy with some fields replaced."""
        return replace(self, **kwargs)

    def to_dict(self) -> dict[str, Any]:
        return {
            "turn": self.turn,
            "maxTurns": self.max_turns,
            "phase": self.phase.value,
            "currentTurnAttribute": self.current_turn_attribute.value,
            "vocal": self.vocal,
            "dance": self.dance,
            "visual": self.visual,
            "hp": self.hp,
            "maxHp": self.max_hp,
            "shield": self.shield,
            "genki": self.genki,
            "goodImpression": self.good_impression,
            "motivation": self.motivation,
            "concentration": self.concentration,
            "score": self.score,
            "deck": [c.id for c in self.deck],
            "hand": [c.to_dict() for c in self.hand],
            "discard": [c.id for c in self.discard],
            "onHold": [c.id for c in self.on_hold],
            "excluded": [c.id for c in self.excluded],
            "cardsPlayed": self.cards_played,
            "buffs": [b.to_dict() for b in self.buffs],
            "logs": list(self.logs),
            "pDrinks": [{"drink": d.drink.to_dict(), "used": d.used} for d in self.p_drinks],
        }
