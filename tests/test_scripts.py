import asyncio
import importlib.util
from pathlib import Path

import pytest

from helpers.qr_helper import decrypt_qr_payload

SCRIPTS_DIR = Path(__file__).resolve().parents[1] / "scripts"


def _load(name):
    spec = importlib.util.spec_from_file_location(name, SCRIPTS_DIR / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture(scope="module")
def generate_test_qr():
    return _load("generate_test_qr")


@pytest.fixture(scope="module")
def inspect_pass():
    return _load("inspect_pass")


def test_generated_qr_decrypts_to_stored_pass(generate_test_qr, add_pass, session_factory):
    add_pass("p-qr", pass_type="day_pass", user_name="Sam", pass_id="TK-1")

    doc = generate_test_qr.pick_pass(session_factory, "day_pass")
    token = generate_test_qr.encrypt_qr_payload(generate_test_qr.build_qr_data(doc))

    payload = decrypt_qr_payload(token)
    assert payload.id == "p-qr"
    assert payload.passType == "day_pass"
    assert payload.token == "TK-1"


def test_pick_pass_falls_back_to_any_type(generate_test_qr, add_pass, session_factory):
    add_pass("p-any", pass_type="group_events")
    assert generate_test_qr.pick_pass(session_factory, "day_pass").id == "p-any"


def test_decode_rejects_plain_ids(generate_test_qr, capsys):
    assert generate_test_qr.decode("abc") == 1
    assert "Not in encrypted format" in capsys.readouterr().out


def test_inspect_reports_field_lookup(inspect_pass, add_pass, repository, capsys):
    add_pass("doc-1", pass_id="TK-7")

    assert asyncio.run(inspect_pass.inspect(repository, "TK-7")) is True
    assert "Found via field query" in capsys.readouterr().out
    assert asyncio.run(inspect_pass.inspect(repository, "missing")) is False


def test_render_png_writes_an_image(generate_test_qr):
    png = generate_test_qr.render_png("00ff:00ff")
    assert png.startswith(b"\x89PNG")
