"""Tests for the command line entrypoint."""

import json

import pytest

from bridgesend.cli.main import ConsoleConfirmationGate, _parse_args, build_intent, main
from bridgesend.config import load_config
from bridgesend.core.history import TransferHistory
from bridgesend.core.models import ConfirmationRequest, RawTransaction, TransferRecord

from conftest import ETHEREUM, OPTIMISM, USDC

BRIDGE = "0x" + "ab" * 20


def make_request(calls):
    async def on_confirm():
        calls.append("confirm")
        return RawTransaction(hash="0xaaa", network_name="ethereum")

    props = {
        "source": {"amount": "1", "token": USDC, "network": ETHEREUM},
        "dest": {"network": OPTIMISM},
        "custom_recipient": None,
        "estimated_received": "0.99",
    }
    return ConfirmationRequest(kind="send", input_props=props, on_confirm=on_confirm)


@pytest.mark.asyncio
@pytest.mark.parametrize("answer", ["y", "YES "])
async def test_gate_confirms(answer, capsys):
    calls = []
    gate = ConsoleConfirmationGate(prompt=lambda text: answer)

    tx = await gate.show(make_request(calls))

    assert tx.hash == "0xaaa"
    assert calls == ["confirm"]
    out = capsys.readouterr().out
    assert "Send 1 USDC from Ethereum to Optimism" in out
    assert "Estimated received: 0.99" in out


@pytest.mark.asyncio
async def test_gate_declined():
    calls = []
    gate = ConsoleConfirmationGate(prompt=lambda text: "n")

    assert await gate.show(make_request(calls)) is None
    assert calls == []


@pytest.mark.asyncio
async def test_gate_auto_confirm_skips_prompt():
    calls = []

    def prompt(text):
        raise AssertionError("prompted")

    gate = ConsoleConfirmationGate(auto_confirm=True, prompt=prompt)

    await gate.show(make_request(calls))
    assert calls == ["confirm"]


def test_build_intent_converts_units(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "chains": {"ethereum": {"network_id": 1, "is_root": True}, "optimism": {"network_id": 10}},
                "tokens": {"USDC": {"decimals": 6, "bridges": {"ethereum": BRIDGE}}},
                "defaults": {"deadline_minutes": 60, "api_timeout": 10},
                "api_urls": {"transfer_status": "https://status.example"},
            }
        )
    )
    config = load_config(path, env={})
    args = _parse_args(
        [
            "send",
            "--from", "ethereum",
            "--to", "optimism",
            "--token", "USDC",
            "--amount", "2.5",
            "--amount-out-min", "2.4",
            "--total-fee", "0.01",
        ]
    )

    intent = build_intent(config, args)

    assert intent.from_network.is_root is True
    assert intent.to_network.network_id == 10
    assert intent.from_token_amount == "2.5"
    assert intent.amount_out_min == 2_400_000
    assert intent.total_fee == 10_000
    assert intent.intermediary_amount_out_min == 0
    assert intent.custom_recipient is None
    assert intent.deadline() > 0


def test_history_command_lists_newest_first(tmp_path, capsys):
    path = tmp_path / "transfers.json"
    history = TransferHistory(path)
    history.add_transaction(
        TransferRecord(hash="0xold", network_name="ethereum", dest_network_name="optimism", token="USDC", timestamp=1)
    )
    history.add_transaction(
        TransferRecord(
            hash="0xnew",
            network_name="ethereum",
            dest_network_name="optimism",
            token="USDC",
            replaced_from="0xold",
            timestamp=2,
        )
    )

    main(["--history", str(path), "history"])

    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith("0xnew USDC ethereum -> optimism pending")
    assert lines[0].endswith("(replaces 0xold)")
    assert lines[1].startswith("0xold")


def test_history_clear(tmp_path, capsys):
    path = tmp_path / "transfers.json"
    history = TransferHistory(path)
    history.add_transaction(
        TransferRecord(hash="0xaaa", network_name="ethereum", dest_network_name="optimism", token="USDC")
    )

    main(["--history", str(path), "history", "--clear"])

    assert "History cleared" in capsys.readouterr().out
    assert len(TransferHistory(path)) == 0


def test_send_without_private_key_exits(tmp_path, monkeypatch):
    monkeypatch.delenv("PRIVATE_KEY", raising=False)
    config = tmp_path / "config.json"
    config.write_text(
        json.dumps(
            {
                "chains": {"ethereum": {"network_id": 1, "is_root": True}, "optimism": {"network_id": 10}},
                "tokens": {"ETH": {"decimals": 18, "is_native": True, "bridges": {"ethereum": BRIDGE}}},
                "defaults": {"deadline_minutes": 60, "api_timeout": 10},
                "api_urls": {"transfer_status": "https://status.example"},
            }
        )
    )

    with pytest.raises(SystemExit) as excinfo:
        main(["--config", str(config), "send", "--from", "ethereum", "--to", "optimism", "--token", "ETH", "--amount", "1"])
    assert excinfo.value.code == 1


def test_missing_config_exits(tmp_path):
    with pytest.raises(SystemExit):
        main(["--config", str(tmp_path / "missing.json"), "block-at", "--network", "ethereum", "--timestamp", "1"])


def test_history_command_shows_reverted_transfer(tmp_path, capsys):
    path = tmp_path / "transfers.json"
    TransferHistory(path).add_transaction(
        TransferRecord(
            hash="0xaaa",
            network_name="ethereum",
            dest_network_name="optimism",
            token="USDC",
            pending=False,
            pending_destination_confirmation=False,
        )
    )

    main(["--history", str(path), "history"])

    assert capsys.readouterr().out.strip() == "0xaaa USDC ethereum -> optimism reverted"
