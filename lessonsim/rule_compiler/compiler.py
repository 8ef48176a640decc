"""
Card Text Compiler - Compiles card description text into Card records.

The compiler:
1. Normalizes the text (NFKC) and extracts card flags
2. Splits it into fragments and clauses
3. Matches each clause against ordered rule tables
4. Reports what it could not understand instead of failing

IMPORTANT: This runs offline, when card data is authored.
The engine only ever sees the structured result.
"""

from __future__ import annotations
import csv
import logging
import unicodedata
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

from ..spec_schema.cards import Card, CardType, CostType, UsageLimit
from ..spec_schema.effect_dsl import Condition, Effect, EffectType, condition_gate
from ..spec_schema.validation import ValidationResult, validate_card
from . import patterns

logger = logging.getLogger(__name__)


# Buff kinds whose duration "以降のNターンの間" can override
_DURATION_KINDS = frozenset({
    EffectType.BUFF_PERFECT_CONDITION,
    EffectType.BUFF_DOUBLE_STRIKE,
    EffectType.BUFF_DOUBLE_COST,
    EffectType.BUFF_COST_REDUCTION,
    EffectType.BUFF_NO_GENKI_GAIN,
    EffectType.BUFF_SCORE_BONUS,
    EffectType.BUFF_IMPRESSION_GAIN,
    EffectType.BUFF_CARD_BASE_VALUE,
    EffectType.BUFF_TURN_START,
    EffectType.BUFF_ON_CARD_USE,
    EffectType.BUFF_REACTION_ON_COST,
    EffectType.DEBUFF_COST_INCREASE,
    EffectType.REDUCE_HP_COST,
})


class CompilationStatus(Enum):
    """Status of compilation."""
    SUCCESS = "success"
    PARTIAL = "partial"  # Some clauses couldn't be understood
    FAILED = "failed"


@dataclass
class ParsedText:
    """Structured content extracted from one description."""
    effects: list[Effect] = field(default_factory=list)
    conditions: list[Condition] = field(default_factory=list)  # usage conditions
    unparsed: list[str] = field(default_factory=list)
    hp_cost: int | None = None
    unique: bool = False
    once_per_lesson: bool = False
    start_in_hand: bool = False


@dataclass
class CardRow:
    """One row of the card sheet."""
    name: str
    rarity: str | None = None
    plan: str = "free"
    type: str = "active"
    cost: str = ""
    description: str = ""

    @classmethod
    def from_columns(cls, columns: Sequence[str]) -> CardRow:
        """Name, Rarity, Plan, Type, Cost, then description columns."""
        cols = [c.strip() for c in columns]
        cols += [""] * (5 - len(cols))
        return cls(
            name=cols[0],
            rarity=cols[1] or None,
            plan=cols[2] or "free",
            type=cols[3] or "active",
            cost=cols[4],
            description=",".join(c for c in cols[5:] if c),
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> CardRow:
        return cls(
            name=str(data["name"]),
            rarity=data.get("rarity"),
            plan=data.get("plan") or "free",
            type=data.get("type") or "active",
            cost=str(data.get("cost") or ""),
            description=data.get("description") or "",
        )


@dataclass
class CompilationResult:
    """
    Result of compiling one card.
    """
    status: CompilationStatus
    card: Card | None = None
    validation: ValidationResult | None = None

    # Extraction details
    extracted_effects: int = 0
    unparsed: list[str] = field(default_factory=list)

    # Issues encountered
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    source_text: str = ""


def normalize(text: str) -> str:
    """NFKC-normalize and trim card text."""
    return unicodedata.normalize("NFKC", text).strip()


def _normalize_rarity(raw: str | None) -> str | None:
    if raw is None:
        return None
    return "Legend" if raw == "レジェンド" else raw


def _card_type(raw: str) -> CardType:
    lowered = raw.lower()
    if "trouble" in lowered or "トラブル" in raw:
        return CardType.TROUBLE
    if "active" in lowered or "アクティブ" in raw:
        return CardType.ACTIVE
    return CardType.MENTAL


@dataclass
class CardTextCompiler:
    """
    Compiles card description text into effects and Card records.

    Usage:
        compiler = CardTextCompiler()
        result = compiler.compile_card(CardRow(name="...", description="..."))
        if result.status == CompilationStatus.SUCCESS:
            card = result.card
    """
    effect_rules: list[patterns.EffectRule] = field(default_factory=lambda: list(patterns.EFFECT_RULES))
    gate_rules: list[patterns.GateRule] = field(default_factory=lambda: list(patterns.GATE_RULES))
    trigger_rules: list[patterns.TriggerRule] = field(default_factory=lambda: list(patterns.TRIGGER_RULES))

    def compile_effects(self, text: str) -> ParsedText:
        """
        Compile a description into effects, usage conditions and flags.

        Unknown clauses end up in `unparsed`; nothing raises.
        """
        parsed = ParsedText()
        text = normalize(text)

        parsed.unique = bool(patterns.FLAG_UNIQUE.search(text))
        parsed.once_per_lesson = bool(patterns.FLAG_ONCE_PER_LESSON.search(text))
        parsed.start_in_hand = bool(patterns.FLAG_START_IN_HAND.search(text))
        for flag in (patterns.FLAG_UNIQUE, patterns.FLAG_ONCE_PER_LESSON, patterns.FLAG_START_IN_HAND):
            text = flag.sub("", text)

        for m in patterns.USAGE_CONDITION.finditer(text):
            parsed.conditions.append(self._build_gate(f"{m.group(1)}が{m.group(2)}以上の場合"))
        text = patterns.USAGE_CONDITION.sub("", text)

        pending_duration = None
        m = patterns.PENDING_DURATION.search(text)
        if m:
            pending_duration = int(m.group(1))
            text = patterns.PENDING_DURATION.sub("", text)

        fragments = [f.strip(" 、") for f in patterns.FRAGMENT_SPLIT.split(text)]
        fragments = [f for f in fragments if f]

        for i, fragment in enumerate(fragments):
            if i == 0:
                head, _, rest = fragment.partition("、")
                hp_cost = patterns.HP_COST.match(head.strip())
                if hp_cost:
                    parsed.hp_cost = int(hp_cost.group(1))
                    fragment = rest.strip()
                    if not fragment:
                        continue

            trigger = self._compile_trigger(fragment)
            if trigger is not None:
                parsed.effects.append(trigger)
                continue

            effects, unparsed = self._compile_clauses(fragment)
            parsed.effects.extend(effects)
            parsed.unparsed.extend(unparsed)

        if pending_duration is not None:
            parsed.effects = self._apply_duration(parsed.effects, pending_duration)

        return parsed

    def compile_card(self, row: CardRow | Mapping[str, Any] | Sequence[str]) -> CompilationResult:
        """Compile one sheet row into a Card."""
        if isinstance(row, Mapping):
            row = CardRow.from_mapping(row)
        elif not isinstance(row, CardRow):
            row = CardRow.from_columns(row)

        name = normalize(row.name)
        if not name:
            return CompilationResult(
                status=CompilationStatus.FAILED,
                errors=["Row has no card name"],
                source_text=row.description,
            )

        parsed = self.compile_effects(row.description)
        plan = row.plan.strip().lower()

        cost_text = normalize(row.cost)
        cost = int(cost_text) if cost_text.isdigit() else 0
        cost_type = CostType.NORMAL
        if parsed.hp_cost is not None:
            cost_type = CostType.HP
            if cost == 0:
                cost = parsed.hp_cost

        card = Card(
            id=f"{plan}_{name}",
            name=name,
            type=_card_type(row.type),
            plan=plan,
            cost=cost,
            cost_type=cost_type,
            effects=tuple(parsed.effects),
            conditions=tuple(parsed.conditions),
            unique=parsed.unique,
            usage_limit=UsageLimit.ONCE_PER_LESSON if parsed.once_per_lesson else None,
            start_in_hand=parsed.start_in_hand,
            rarity=_normalize_rarity(row.rarity),
            description=normalize(row.description).replace(",", " / "),
        )

        validation = validate_card(card)
        warnings = list(validation.warnings)
        warnings.extend(f"Unparsed clause: {u}" for u in parsed.unparsed)

        if not validation.valid or (parsed.unparsed and not parsed.effects):
            status = CompilationStatus.FAILED
        elif parsed.unparsed:
            status = CompilationStatus.PARTIAL
        else:
            status = CompilationStatus.SUCCESS

        if parsed.unparsed:
            logger.debug("Card %s: %d unparsed clause(s)", card.id, len(parsed.unparsed))

        return CompilationResult(
            status=status,
            card=card,
            validation=validation,
            extracted_effects=len(parsed.effects),
            unparsed=parsed.unparsed,
            warnings=warnings,
            errors=list(validation.errors),
            source_text=row.description,
        )

    def compile_rows(
        self,
        rows: Iterable[Sequence[str]],
        plan: str | None = None,
    ) -> list[CompilationResult]:
        """Compile sheet rows, optionally keeping only one plan."""
        results = []
        for columns in rows:
            if not columns or not columns[0].strip():
                continue
            row = CardRow.from_columns(columns)
            if plan is not None and row.plan.strip().lower() != plan.lower():
                continue
            results.append(self.compile_card(row))
        return results

    def compile_csv(
        self,
        path: str | Path,
        plan: str | None = None,
        skip_header: bool = True,
    ) -> list[CompilationResult]:
        """Compile every card in a CSV sheet."""
        path = Path(path)
        with path.open(encoding="utf-8", newline="") as f:
            reader = csv.reader(f)
            if skip_header:
                next(reader, None)
            results = self.compile_rows(reader, plan=plan)
        logger.info("Compiled %d cards from %s", len(results), path)
        return results

    # ------------------------------------------------------------------

    def _build_gate(self, clause: str) -> Condition | None:
        for rule in self.gate_rules:
            m = rule.pattern.match(clause)
            if m:
                return rule.build(m)
        return None

    def _build_effects(self, clause: str) -> list[Effect] | None:
        for rule in self.effect_rules:
            m = rule.pattern.match(clause)
            if m:
                return rule.build(m)
        return None

    def _compile_clauses(self, fragment: str) -> tuple[list[Effect], list[str]]:
        """
        Compile a fragment of 、-separated clauses.

        Gate clauses accumulate and wrap the next effect clause.
        """
        effects: list[Effect] = []
        unparsed: list[str] = []
        gates: list[Condition] = []
        gate_text: list[str] = []

        for clause in patterns.CLAUSE_SPLIT.split(fragment):
            clause = clause.strip()
            if not clause:
                continue

            gate = self._build_gate(clause)
            if gate is not None:
                gates.append(gate)
                gate_text.append(clause)
                continue

            built = self._build_effects(clause)
            if built is None:
                unparsed.append(clause)
                continue

            if gates:
                effects.append(condition_gate(gates, built))
                gates, gate_text = [], []
            else:
                effects.extend(built)

        # A gate with nothing to guard
        unparsed.extend(gate_text)
        return effects, unparsed

    def _compile_trigger(self, fragment: str) -> Effect | None:
        for rule in self.trigger_rules:
            m = rule.pattern.match(fragment)
            if not m:
                continue

            body = m.group("body")
            double_motivation = bool(patterns.DOUBLE_MOTIVATION.search(body))
            body = patterns.DOUBLE_MOTIVATION.sub("", body).strip(" 、")

            effects, unparsed = self._compile_clauses(body)
            if unparsed or not effects:
                return None

            if double_motivation:
                effects = [
                    replace(e, double_motivation=True) if e.type == EffectType.BUFF_GENKI else e
                    for e in effects
                ]
            payload = effects[0] if len(effects) == 1 else condition_gate([], effects)
            return Effect(
                type=rule.kind,
                duration=-1,
                triggered_effect=payload,
                trigger_condition=rule.trigger_condition(m),
            )
        return None

    def _apply_duration(self, effects: list[Effect], duration: int) -> list[Effect]:
        """Override the duration of the first duration-bearing buff."""
        for i, effect in enumerate(effects):
            if effect.type in _DURATION_KINDS:
                return effects[:i] + [replace(effect, duration=duration)] + effects[i + 1:]
        return effects


def compile_card_text(text: str) -> ParsedText:
    """
    Convenience function to compile one description.
    """
    return CardTextCompiler().compile_effects(text)
