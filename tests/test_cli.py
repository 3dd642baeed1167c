import json
import logging

import pytest

from mintverify.cli import main
from mintverify.core import address_of, derive_collection_authority, generate_keypair, metadata_address


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_derive_prints_authority(capsys):
    main(["derive", "--seed", "GEN1"])

    out = json.loads(capsys.readouterr().out)
    authority, bump = derive_collection_authority("GEN1")
    assert out == {"seed": "GEN1", "authority": authority, "bump": bump}


def test_derive_many_seeds(capsys):
    main(["derive", "--seed", "GEN1", "--seed", "GEN2"])

    out = json.loads(capsys.readouterr().out)
    assert [entry["seed"] for entry in out] == ["GEN1", "GEN2"]


def test_derive_long_seed_exits_nonzero(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["derive", "--seed", "s" * 33])

    assert exc.value.code == 1
    assert "Invalid collection seed" in capsys.readouterr().err


def test_addresses(capsys):
    mint = address_of(generate_keypair())

    main(["addresses", "--mint", mint])

    out = json.loads(capsys.readouterr().out)
    assert out["metadata"] == metadata_address(mint)


def test_demo_mints_a_verified_item(capsys):
    main(["--log-level", "WARNING", "demo", "--seed", "GEN1", "--name", "Genesis", "--symbol", "GEN"])

    out = json.loads(capsys.readouterr().out)
    assert out["verified"] is True
    assert out["item"]["collection_mint"] == out["collection"]["collection_mint"]
    assert out["collection"]["collection_authority"] == derive_collection_authority("GEN1")[0]
