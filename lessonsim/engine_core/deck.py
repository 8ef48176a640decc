"""Deck utilities: shuffling and drawing with reshuffle-on-empty."""

from __future__ import annotations
import logging
import random
from dataclasses import dataclass
from typing import Sequence

from ..spec_schema.cards import Card

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DrawResult:
    """Zones after a draw. All three are new tuples."""
    deck: tuple[Card, ...]
    discard: tuple[Card, ...]
    hand: tuple[Card, ...]  # only the cards drawn by this call


def shuffle(cards: Sequence[Card], rng: random.Random | None = None) -> list[Card]:
    """Return a uniformly shuffled copy (Fisher-Yates). The input is untouched."""
    rand = rng.random if rng is not None else random.random
    result = list(cards)
    for i in range(len(result) - 1, 0, -1):
        j = int(rand() * (i + 1))
        result[i], result[j] = result[j], result[i]
    return result


def remove_card(zone: tuple[Card, ...], card: Card) -> tuple[Card, ...]:
    """Return the zone without one instance of `card` (matched by identity first)."""
    for i, c in enumerate(zone):
        if c is card:
            return zone[:i] + zone[i + 1:]
    for i, c in enumerate(zone):
        if c == card:
            return zone[:i] + zone[i + 1:]
    return zone


def draw_cards(
    deck: Sequence[Card],
    discard: Sequence[Card],
    count: int,
    current_hand: Sequence[Card] = (),
    rng: random.Random | None = None,
) -> DrawResult:
    """
    Draw up to `count` cards from the end of the deck.

    When the deck runs out the discard pile is shuffled into a new deck.
    A unique card whose id is already in `current_hand` (or was drawn
    earlier in this call) goes to the discard pile instead. The loop is
    bounded, so a pile made entirely of blocked uniques returns fewer
    cards instead of cycling forever.
    """
    new_deck = list(deck)
    new_discard = list(discard)
    drawn: list[Card] = []
    held_ids = {c.id for c in current_hand}

    attempts = 0
    max_attempts = count * 2 + 10
    while len(drawn) < count and attempts < max_attempts:
        attempts += 1
        if not new_deck:
            if not new_discard:
                break
            new_deck = shuffle(new_discard, rng)
            new_discard = []
            logger.debug("Reshuffled %d discarded cards into the deck", len(new_deck))

        card = new_deck.pop()
        if card.unique and card.id in held_ids:
            new_discard.append(card)
            continue

        drawn.append(card)
        held_ids.add(card.id)

    return DrawResult(deck=tuple(new_deck), discard=tuple(new_discard), hand=tuple(drawn))
