"""
Tests for the command-line interface.
"""

import json

import pytest

from ..cli import main


def _write_cards(path, cards):
    path.write_text(json.dumps(cards, ensure_ascii=False), encoding="utf-8")
    return str(path)


CARD = {"id": "c1", "name": "Appeal", "effects": [{"type": "score_fixed", "value": 5}]}


class TestValidate:
    def test_valid_file(self, tmp_path, capsys):
        main(["validate", _write_cards(tmp_path / "cards.json", [CARD])])
        assert "OK" in capsys.readouterr().out

    def test_duplicates_fail(self, tmp_path):
        path = _write_cards(tmp_path / "cards.json", [CARD, CARD])
        with pytest.raises(SystemExit) as exc_info:
            main(["validate", path])
        assert exc_info.value.code == 1

    def test_deck_allows_copies(self, tmp_path, capsys):
        main(["validate", "--deck", _write_cards(tmp_path / "deck.json", [CARD, CARD])])
        assert "OK" in capsys.readouterr().out

    def test_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit):
            main(["validate", str(tmp_path / "missing.json")])
        assert "File not found" in capsys.readouterr().out


class TestCompile:
    def test_compile_to_file(self, tmp_path, capsys):
        sheet = tmp_path / "cards.csv"
        sheet.write_text("名前,レア,プラン,タイプ,コスト,効果\nアピール,N,sense,アクティブ,4,パラメータ+9\n", encoding="utf-8")
        out = tmp_path / "out.json"

        main(["compile", str(sheet), "-o", str(out)])

        cards = json.loads(out.read_text(encoding="utf-8"))
        assert cards[0]["id"] == "sense_アピール"
        assert "Compiled: 1" in capsys.readouterr().err


class TestSimulate:
    def test_simulate(self, tmp_path, capsys):
        path = _write_cards(tmp_path / "deck.json", [CARD] * 6)
        main(["simulate", path, "--turns", "3", "--seed", "1", "--policy", "first"])

        out = capsys.readouterr().out
        assert "Final score: 15 (turn 3/3" in out
        assert "Policy: FirstPlayablePolicy" in out
