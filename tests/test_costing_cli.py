"""Tests for the kitchen-costing command line."""

import json
from decimal import Decimal

import pytest

from kitchen_costing.services import starter_pack_service
from kitchen_costing.utils import costing_cli


@pytest.fixture
def cli(test_db, monkeypatch):
    monkeypatch.setattr(costing_cli, "initialize_app_database", lambda: None)
    monkeypatch.setattr(costing_cli, "configure_logging", lambda level=None: None)
    return costing_cli.main


def test_no_command_prints_help(cli, capsys):
    assert cli([]) == 1
    assert "usage: kitchen-costing" in capsys.readouterr().out


def test_init_db(cli, capsys):
    assert cli(["init-db"]) == 0
    assert "Database initialized" in capsys.readouterr().out


def test_recipe_cost(cli, capsys, owner, bread_recipe):
    assert cli(["recipe-cost", str(bread_recipe.id), "--user-id", str(owner.id)]) == 0
    output = json.loads(capsys.readouterr().out)
    assert output["name"] == "Butter Bread"
    assert Decimal(output["cost"]["total_cost"]) == Decimal("6.45")


def test_recipe_cost_for_other_user(cli, capsys, other_user, bread_recipe):
    assert cli(["recipe-cost", str(bread_recipe.id), "--user-id", str(other_user.id)]) == 1
    assert capsys.readouterr().out.startswith("ERROR:")


def test_scale_rejects_zero_pieces(cli, capsys, owner, bread_recipe):
    args = ["scale", str(bread_recipe.id), "--user-id", str(owner.id), "--pieces", "0", "--weight", "50"]
    assert cli(args) == 1
    assert "ERROR:" in capsys.readouterr().out


def test_analytics(cli, capsys, owner):
    assert cli(["analytics", "--user-id", str(owner.id)]) == 0
    output = json.loads(capsys.readouterr().out)
    assert output["overview"]["total_orders"] == 0
    assert output["recipes"] == []


def test_load_starter_pack(cli, capsys, tmp_path):
    pack = tmp_path / "starter_pack.json"
    pack.write_text(
        json.dumps(
            {
                "ingredients": [{"name": "Sugar", "quantity": "1000", "purchase_amount": "1.50"}],
                "materials": [{"name": "Cake Box", "price_per_unit": "0.40"}],
            }
        ),
        encoding="utf-8",
    )
    assert cli(["load-starter-pack", str(pack)]) == 0
    assert "Loaded 1 ingredients and 1 materials (0 skipped)" in capsys.readouterr().out
    assert [t.name for t in starter_pack_service.get_starter_ingredients()] == ["Sugar"]


def test_load_starter_pack_missing_file(cli, capsys, tmp_path):
    assert cli(["load-starter-pack", str(tmp_path / "missing.json")]) == 1
    assert "ERROR: Could not read" in capsys.readouterr().out
