"""
`flask shop ...` commands against the stored document.
"""

import json
from dataclasses import replace

from boutique.models import ShopState
from boutique.services import document_service


def _stored(app) -> ShopState:
    return document_service.load_state(app.config["BOUTIQUE_DATA_KEY"])


def test_init_seeds_an_admin_once(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["shop", "init", "--name", "Amina", "--pin", "2468"])
    assert result.exit_code == 0, result.output
    assert "Created Admin user: Amina" in result.output

    state = _stored(app)
    assert [(u.name, u.role.value) for u in state.users] == [("Amina", "Admin")]
    assert state.categories == ("Vêtements", "Accessoires", "Chaussures")

    result = runner.invoke(args=["shop", "init"])
    assert "Using existing users: Amina" in result.output
    assert len(_stored(app).users) == 1


def test_init_rejects_a_bad_pin(app, db_session):
    result = app.test_cli_runner().invoke(args=["shop", "init", "--pin", "12"])

    assert result.exit_code != 0
    assert "PIN must be" in result.output


def test_export_and_restore(app, db_session, seeded_state, tmp_path):
    document_service.save_state(app.config["BOUTIQUE_DATA_KEY"], seeded_state)
    runner = app.test_cli_runner()
    backup = tmp_path / "backup.json"

    result = runner.invoke(args=["shop", "export", str(backup)])
    assert result.exit_code == 0, result.output
    assert json.loads(backup.read_text(encoding="utf-8")) == seeded_state.to_document()

    runner.invoke(args=["shop", "reset", "--yes"])
    assert _stored(app).products == ()

    result = runner.invoke(args=["shop", "restore", str(backup), "--yes"])
    assert result.exit_code == 0, result.output
    assert _stored(app).products == seeded_state.products


def test_restore_reports_invalid_files(app, db_session, tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text("{oops", encoding="utf-8")

    result = app.test_cli_runner().invoke(args=["shop", "restore", str(bad), "--yes"])

    assert result.exit_code != 0
    assert "not valid JSON" in result.output


def test_low_stock_lists_suggestions(app, db_session, seeded_state):
    products = tuple(
        replace(p, stock=1) if p.id == "p1" else p
        for p in seeded_state.products
    )
    document_service.save_state(app.config["BOUTIQUE_DATA_KEY"], ShopState(
        products=products, suppliers=seeded_state.suppliers,
    ))

    result = app.test_cli_runner().invoke(args=["shop", "low-stock"])

    assert result.exit_code == 0, result.output
    assert "Tissus Dakar" in result.output
    assert "Robe wax" in result.output
    assert "-> order 3" in result.output


def test_restore_reports_malformed_entries(app, db_session, tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"orders": [1]}), encoding="utf-8")

    result = app.test_cli_runner().invoke(args=["shop", "restore", str(bad), "--yes"])

    assert result.exit_code == 1
    assert "orders[0] must be an object" in result.output
    assert not isinstance(result.exception, AttributeError)
