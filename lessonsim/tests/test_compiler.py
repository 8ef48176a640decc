"""
Tests for the card text compiler.

Tests:
- Clause patterns for each effect family
- Gates, triggers and duration overrides
- Card-level flags, usage conditions and HP cost
- Row/CSV handling and compilation status
"""

from ..rule_compiler import CardRow, CardTextCompiler, CompilationStatus, compile_card_text
from ..spec_schema import CardType, ConditionType, CostType, EffectType, UsageLimit


class TestClauses:
    """Tests for single effect clauses."""

    def test_score(self):
        parsed = compile_card_text("パラメータ+10")
        (effect,) = parsed.effects
        assert effect.type == EffectType.SCORE_FIXED
        assert effect.value == 10
        assert parsed.unparsed == []

    def test_full_width_text(self):
        """Full-width digits and signs are normalized before matching."""
        (effect,) = compile_card_text("パラメーター＋１２").effects
        assert effect.value == 12

    def test_repeated_score(self):
        effects = compile_card_text("パラメータ+5(2回)").effects
        assert [e.value for e in effects] == [5, 5]

    def test_concentration_multiplier(self):
        (effect,) = compile_card_text("パラメータ+8(集中効果を1.5倍適用)").effects
        assert effect.multiplier == 1.5

    def test_scale(self):
        (effect,) = compile_card_text("好印象の120%分パラメータ上昇").effects
        assert effect.type == EffectType.SCORE_SCALE_IMPRESSION
        assert effect.ratio == 1.2

    def test_fragments(self):
        effects = compile_card_text("元気+5,好印象+3/やる気+2").effects
        assert [e.type for e in effects] == [
            EffectType.BUFF_GENKI,
            EffectType.BUFF_IMPRESSION,
            EffectType.BUFF_MOTIVATION,
        ]

    def test_buffs(self):
        effects = compile_card_text("好調2ターン,消費体力減少3ターン,低下状態無効(2回)").effects
        perfect, reduction, immunity = effects
        assert perfect.type == EffectType.BUFF_PERFECT_CONDITION and perfect.duration == 2
        assert reduction.type == EffectType.BUFF_COST_REDUCTION and reduction.duration == 3
        assert immunity.type == EffectType.BUFF_NO_DEBUFF and immunity.count == 2

    def test_card_base_value(self):
        (effect,) = compile_card_text("すべてのスキルカードの元気値増加+2").effects
        assert effect.type == EffectType.BUFF_CARD_BASE_VALUE
        assert effect.param == "genki"
        assert effect.duration == -1

    def test_card_effects(self):
        effects = compile_card_text("スキルカードを2枚引く,手札をすべて入れ替える,眠気を山札のランダムな位置に生成").effects
        draw, swap, trouble = effects
        assert draw.type == EffectType.DRAW_CARD and draw.value == 2
        assert swap.type == EffectType.SWAP_HAND
        assert trouble.type == EffectType.GENERATE_TROUBLE
        assert trouble.trouble_id == "trouble_眠気"

    def test_consume(self):
        (effect,) = compile_card_text("パラメータ+1,やる気消費2").effects[1:]
        assert effect.type == EffectType.CONSUME_MOTIVATION
        assert effect.value == 2

    def test_unknown_clause(self):
        parsed = compile_card_text("ふしぎな効果")
        assert parsed.effects == []
        assert parsed.unparsed == ["ふしぎな効果"]


class TestGatesAndTriggers:
    """Tests for conditional and reactive clauses."""

    def test_gate_wraps_next_effect(self):
        effects = compile_card_text("好印象が5以上の場合、パラメータ+10").effects
        (gate,) = effects
        assert gate.type == EffectType.CONDITION_GATE
        assert gate.condition[0].type == ConditionType.IMPRESSION
        assert gate.condition[0].value == 5
        assert gate.sub_effects[0].value == 10

    def test_condition_buff_gate(self):
        (gate,) = compile_card_text("絶好調状態の場合、元気+4").effects
        assert gate.condition[0].type == ConditionType.BUFF
        assert gate.condition[0].buff_type == EffectType.BUFF_DOUBLE_STRIKE

    def test_dangling_gate_is_unparsed(self):
        parsed = compile_card_text("好調状態の場合")
        assert parsed.effects == []
        assert parsed.unparsed == ["好調状態の場合"]

    def test_turn_start_trigger(self):
        (effect,) = compile_card_text("以降、ターン開始時、元気+2").effects
        assert effect.type == EffectType.BUFF_TURN_START
        assert effect.duration == -1
        assert effect.triggered_effect.type == EffectType.BUFF_GENKI

    def test_card_use_trigger_condition(self):
        (effect,) = compile_card_text("以降、メンタルスキルカード使用時、好印象+1").effects
        assert effect.type == EffectType.BUFF_ON_CARD_USE
        assert effect.trigger_condition.type == ConditionType.CARD_TYPE_USAGE
        assert effect.trigger_condition.card_type == "mental"

    def test_double_motivation(self):
        (effect,) = compile_card_text("以降、ターン開始時、元気+3(やる気効果を2倍適用)").effects
        assert effect.triggered_effect.double_motivation

    def test_multi_effect_trigger_body(self):
        (effect,) = compile_card_text("スキルカードコストで体力減少時、好印象+1、パラメータ+2").effects
        assert effect.type == EffectType.BUFF_REACTION_ON_COST
        assert effect.triggered_effect.type == EffectType.CONDITION_GATE
        assert len(effect.triggered_effect.sub_effects) == 2

    def test_pending_duration(self):
        (effect,) = compile_card_text("以降の3ターンの間、パラメータ上昇量増加+30%").effects
        assert effect.type == EffectType.BUFF_SCORE_BONUS
        assert effect.value == 30
        assert effect.duration == 3


class TestCardLevel:
    """Tests for flags, usage conditions and HP cost."""

    def test_flags(self):
        parsed = compile_card_text("重複不可,レッスン中1回,レッスン開始時手札に入る,パラメータ+10")
        assert parsed.unique and parsed.once_per_lesson and parsed.start_in_hand
        assert len(parsed.effects) == 1

    def test_usage_condition(self):
        parsed = compile_card_text("元気が10以上の場合、使用可,パラメータ+20")
        (cond,) = parsed.conditions
        assert cond.type == ConditionType.GENKI and cond.value == 10
        assert len(parsed.effects) == 1

    def test_hp_cost(self):
        result = CardTextCompiler().compile_card(
            CardRow(name="気合", type="アクティブ", description="体力消費4、パラメータ+10")
        )
        card = result.card
        assert card.cost_type == CostType.HP
        assert card.cost == 4
        assert [e.type for e in card.effects] == [EffectType.SCORE_FIXED]

    def test_flags_reach_card(self):
        result = CardTextCompiler().compile_card(
            CardRow(name="一度", plan="Sense", type="メンタル", cost="2", description="レッスン中1回,好印象+5")
        )
        card = result.card
        assert card.id == "sense_一度"
        assert card.type == CardType.MENTAL
        assert card.cost == 2
        assert card.usage_limit == UsageLimit.ONCE_PER_LESSON


class TestCompileCard:
    """Tests for rows, status and CSV input."""

    def test_status(self):
        compiler = CardTextCompiler()
        ok = compiler.compile_card(CardRow(name="a", description="パラメータ+10"))
        partial = compiler.compile_card(CardRow(name="b", description="パラメータ+10,ふしぎな効果"))
        failed = compiler.compile_card(CardRow(name="c", description="ふしぎな効果"))

        assert ok.status == CompilationStatus.SUCCESS
        assert partial.status == CompilationStatus.PARTIAL
        assert partial.unparsed == ["ふしぎな効果"]
        assert any("Unparsed clause" in w for w in partial.warnings)
        assert failed.status == CompilationStatus.FAILED

    def test_nameless_row_fails(self):
        result = CardTextCompiler().compile_card(CardRow(name=" ", description="パラメータ+1"))
        assert result.status == CompilationStatus.FAILED
        assert result.card is None

    def test_from_columns(self):
        row = ["集中", "レジェンド", "logic", "アクティブ", "3", "パラメータ+10", "元気+2"]
        result = CardTextCompiler().compile_card(row)
        assert result.card.rarity == "Legend"
        assert result.extracted_effects == 2

    def test_trouble_row(self):
        result = CardTextCompiler().compile_card(CardRow(name="眠気", type="トラブル"))
        assert result.card.type == CardType.TROUBLE
        assert result.status == CompilationStatus.SUCCESS

    def test_compile_csv(self, tmp_path):
        sheet = tmp_path / "cards.csv"
        sheet.write_text(
            "名前,レアリティ,プラン,タイプ,コスト,効果\n"
            "アピール,N,sense,アクティブ,4,パラメータ+9\n"
            "表現,N,logic,メンタル,2,好印象+3\n",
            encoding="utf-8",
        )
        compiler = CardTextCompiler()
        results = compiler.compile_csv(sheet)
        assert [r.card.id for r in results] == ["sense_アピール", "logic_表現"]

        only_logic = compiler.compile_csv(sheet, plan="logic")
        assert [r.card.name for r in only_logic] == ["表現"]
