"""Web3ChainClient against mocked web3 connections."""

from unittest.mock import Mock

import pytest
import requests
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import ContractLogicError, TransactionNotFound, Web3RPCError

from eth_matrix.constants import BRIDGE_AND_CALL_GAS_LIMIT, UNLIMITED_BALANCE
from eth_matrix.errors import InsufficientFunds, InvalidInput, SimulationFailed, UpstreamFailure
from eth_matrix.rpc import L1_BLOCK_ABI, Web3ChainClient, translate_rpc_errors
from eth_matrix.sender import L1Transaction
from eth_matrix.submit import SubmissionState, TransferRequest, send_raw_matrix_transaction

SENDER = Web3.to_checksum_address("0x" + "11" * 20)
RECEIVER = Web3.to_checksum_address("0x" + "22" * 20)


@pytest.fixture()
def l1() -> Mock:
    return Mock()


@pytest.fixture()
def l2() -> Mock:
    l2 = Mock()
    l2.eth.estimate_gas.return_value = 30_000
    l2.eth.get_balance.return_value = 0
    l2.eth.contract.return_value.functions.fctMintRate.return_value.call.return_value = 1_000
    return l2


@pytest.fixture()
def web3_client(l1, l2) -> Web3ChainClient:
    return Web3ChainClient(l1, l2)


def test_estimate_l2_gas_with_balance_override(web3_client, l2):
    assert web3_client.estimate_l2_gas(SENDER, RECEIVER, 5, b"\x01", 100) == 30_000

    tx = l2.eth.estimate_gas.call_args.args[0]
    assert tx == {"from": SENDER, "to": RECEIVER, "value": 5, "data": HexBytes("0x01")}
    assert l2.eth.estimate_gas.call_args.kwargs["state_override"] == {SENDER: {"balance": "0x64"}}


def test_estimate_l2_gas_contract_creation(web3_client, l2):
    web3_client.estimate_l2_gas(SENDER, None, 0, b"\x60\x80", UNLIMITED_BALANCE)
    tx = l2.eth.estimate_gas.call_args.args[0]
    assert "to" not in tx
    assert l2.eth.estimate_gas.call_args.kwargs["state_override"] == {SENDER: {"balance": "0x" + "f" * 64}}


def test_get_mint_rate(web3_client, l2):
    oracle = "0x4200000000000000000000000000000000000015"
    assert web3_client.get_mint_rate(oracle) == 1_000
    assert l2.eth.contract.call_args.kwargs == {"address": oracle, "abi": L1_BLOCK_ABI}


def test_get_l2_balance(web3_client, l2):
    l2.eth.get_balance.return_value = 123
    assert web3_client.get_l2_balance(SENDER) == 123
    l2.eth.get_balance.assert_called_once_with(SENDER)


def test_trace_l2_call_request(web3_client, l2):
    l2.manager.request_blocking.return_value = {"structLogs": []}

    trace = web3_client.trace_l2_call(SENDER, RECEIVER, b"\xca\xfe", BRIDGE_AND_CALL_GAS_LIMIT, 0, 1_000)

    assert trace == {"structLogs": []}
    method, params = l2.manager.request_blocking.call_args.args
    assert method == "debug_traceCall"
    call, block, tracer_config = params
    assert call == {
        "from": SENDER,
        "to": RECEIVER,
        "data": "0xcafe",
        "gas": "0x2faf080",
        "value": "0x0",
    }
    assert block == "latest"
    assert tracer_config == {"stateOverrides": {SENDER: {"balance": "0x3e8"}}}


def test_estimate_l1_gas(web3_client, l1):
    l1.eth.estimate_gas.return_value = 60_000
    tx = L1Transaction(account=SENDER, to=RECEIVER, value=0, data=HexBytes("0x46c0"), chain_id=56)
    assert web3_client.estimate_l1_gas(tx) == 60_000
    l1.eth.estimate_gas.assert_called_once_with(tx.as_tx_params())


def test_get_l1_transaction(web3_client, l1):
    l1.eth.get_transaction.return_value = {"from": SENDER, "to": RECEIVER, "input": "0x46c0", "nonce": 1}
    assert web3_client.get_l1_transaction("0x" + "ab" * 32) == {"from": SENDER, "to": RECEIVER, "input": HexBytes("0x46c0")}


def test_get_l1_transaction_contract_deployment(web3_client, l1):
    l1.eth.get_transaction.return_value = {"from": SENDER, "to": None, "input": HexBytes("0x6080")}
    assert web3_client.get_l1_transaction("0x" + "ab" * 32)["to"] is None


def test_get_l1_transaction_not_found(web3_client, l1):
    l1.eth.get_transaction.side_effect = TransactionNotFound("Transaction with hash 0xabab not found")
    with pytest.raises(InvalidInput):
        web3_client.get_l1_transaction("0x" + "ab" * 32)


@pytest.mark.parametrize(
    "exception, expected",
    [
        (ContractLogicError("execution reverted: Ownable: caller is not the owner"), SimulationFailed),
        (Web3RPCError("{'code': -32000, 'message': 'execution reverted'}"), SimulationFailed),
        (Web3RPCError("{'code': -32000, 'message': 'insufficient funds for transfer'}"), SimulationFailed),
        (ValueError({"code": -32000, "message": "Insufficient funds for gas * price + value"}), SimulationFailed),
        (TransactionNotFound("Transaction not found"), InvalidInput),
        (Web3RPCError("{'code': -32601, 'message': 'the method debug_traceCall does not exist'}"), UpstreamFailure),
        (ValueError("bad response"), UpstreamFailure),
        (requests.ConnectionError("Connection refused"), UpstreamFailure),
        (requests.Timeout("Read timed out"), UpstreamFailure),
    ],
    ids=[
        "contract logic error",
        "rpc revert",
        "rpc insufficient funds",
        "legacy value error insufficient funds",
        "transaction not found",
        "rpc method missing",
        "value error",
        "connection error",
        "timeout",
    ],
)
def test_translate_rpc_errors(exception, expected):
    with pytest.raises(expected) as exc_info:
        with translate_rpc_errors("Test operation"):
            raise exception
    assert exc_info.value.__cause__ is exception


def test_translate_rpc_errors_passes_other_exceptions():
    with pytest.raises(KeyError):
        with translate_rpc_errors("Test operation"):
            raise KeyError("not ours")


def test_estimate_l2_gas_revert(web3_client, l2):
    l2.eth.estimate_gas.side_effect = ContractLogicError("execution reverted")
    with pytest.raises(SimulationFailed):
        web3_client.estimate_l2_gas(SENDER, RECEIVER, 0, b"", UNLIMITED_BALANCE)


def test_node_reports_insufficient_funds_on_reestimate(web3_client, l2, sender):
    """Shortfall reported as a JSON-RPC error still becomes InsufficientFunds."""
    l2.eth.estimate_gas.side_effect = [
        30_000,
        Web3RPCError("{'code': -32000, 'message': 'insufficient funds for transfer'}"),
    ]

    with pytest.raises(InsufficientFunds) as exc_info:
        send_raw_matrix_transaction(web3_client, 56, SENDER, TransferRequest(to=RECEIVER, value=10**18), sender)

    assert exc_info.value.state == SubmissionState.reestimating
    assert sender.sent == []
