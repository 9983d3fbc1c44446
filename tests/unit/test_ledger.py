from unittest.mock import MagicMock

import pytest
from hexbytes import HexBytes

from tests.fakes import SIGNER, TOKEN
from vestclaim.errors import LedgerUnavailable
from vestclaim.ledger import Web3LedgerClient
from vestclaim.schedule import TokenInfo, VestingSchedule


def _call(value):
    fn = MagicMock()
    fn.return_value.call.return_value = value
    return fn


@pytest.fixture
def w3():
    return MagicMock()


@pytest.fixture
def client(config, w3):
    return Web3LedgerClient(config, w3=w3)


def test_read_token_metadata(client, w3):
    contract = w3.eth.contract.return_value
    contract.functions.name = _call("Vibe")
    contract.functions.symbol = _call("VIBE")
    contract.functions.decimals = _call(9)

    assert client.read_token_metadata(TOKEN) == TokenInfo(TOKEN, "Vibe", "VIBE", 9)


def test_read_token_metadata_propagates_errors(client, w3):
    contract = w3.eth.contract.return_value
    contract.functions.name = _call("Vibe")
    contract.functions.symbol = _call("VIBE")
    contract.functions.decimals.return_value.call.side_effect = ValueError("execution reverted")

    with pytest.raises(ValueError):
        client.read_token_metadata(TOKEN)


def test_read_schedule_uses_beneficiary_then_token(client, w3, config):
    contract = w3.eth.contract.return_value
    contract.functions.getSchedule = _call([1000, 10, 490, 100, 1100])

    schedule = client.read_schedule(SIGNER.address, TOKEN)

    assert schedule == VestingSchedule(1000, 10, 100, 1100)
    contract.functions.getSchedule.assert_called_once_with(SIGNER.address, TOKEN)
    assert w3.eth.contract.call_args.kwargs["address"].lower() == config.vesting_manager_address.lower()


def test_submit_release_signs_and_sends(client, w3):
    contract = w3.eth.contract.return_value
    w3.eth.get_transaction_count.return_value = 7
    w3.eth.chain_id = 1
    contract.functions.release.return_value.build_transaction.return_value = {
        "to": TOKEN, "data": "0x", "gas": 100000, "gasPrice": 1, "nonce": 7, "chainId": 1, "value": 0,
    }
    w3.eth.send_raw_transaction.return_value = HexBytes("0x" + "aa" * 32)

    tx_hash = client.submit_release(SIGNER, SIGNER.address, TOKEN)

    assert tx_hash == "0x" + "aa" * 32
    contract.functions.release.assert_called_once_with(SIGNER.address, TOKEN)
    params = contract.functions.release.return_value.build_transaction.call_args.args[0]
    assert params == {"from": SIGNER.address, "nonce": 7, "chainId": 1}
    w3.eth.send_raw_transaction.assert_called_once()


def test_await_confirmation(client, w3, config):
    w3.eth.wait_for_transaction_receipt.return_value = {
        "transactionHash": HexBytes("0x" + "bb" * 32),
        "blockNumber": 42,
        "status": 1,
    }

    receipt = client.await_confirmation("0x" + "bb" * 32)

    assert receipt.transaction_hash == "0x" + "bb" * 32
    assert receipt.block_number == 42
    assert receipt.succeeded
    w3.eth.wait_for_transaction_receipt.assert_called_once_with("0x" + "bb" * 32, timeout=config.receipt_timeout)


def test_read_balance(client, w3):
    w3.eth.contract.return_value.functions.balanceOf = _call(12345)
    assert client.read_balance(SIGNER.address, TOKEN) == 12345


def test_connect_tries_each_rpc(config, monkeypatch):
    dead, alive = MagicMock(), MagicMock()
    dead.is_connected.return_value = False
    alive.is_connected.return_value = True
    instances = iter([dead, alive])
    monkeypatch.setattr("vestclaim.ledger.Web3", _web3_factory(instances))

    client = Web3LedgerClient(config.with_rpc_url("http://a,http://b"))

    assert client.w3 is alive


def test_connect_gives_up(config, monkeypatch):
    dead = MagicMock()
    dead.is_connected.return_value = False
    monkeypatch.setattr("vestclaim.ledger.Web3", _web3_factory(iter([dead, dead])))

    client = Web3LedgerClient(config.with_rpc_url("http://a,http://b"))

    with pytest.raises(LedgerUnavailable):
        client.w3


def _web3_factory(instances):
    factory = MagicMock(side_effect=lambda provider: next(instances))
    factory.HTTPProvider = MagicMock()
    return factory
