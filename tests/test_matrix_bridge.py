"""Bridge-and-call against a scripted chain."""

import pytest
from web3 import Web3

from eth_matrix.abi import encode_with_signature
from eth_matrix.aliasing import apply_l1_to_l2_alias
from eth_matrix.bridge import (
    L1_BRIDGE_AND_CALL_SIGNATURE,
    L2_BRIDGE_AND_CALL_SIGNATURE,
    BridgeAndCallRequest,
    bridge_and_call,
    find_revert,
)
from eth_matrix.codec import SubmissionEncoding
from eth_matrix.constants import BRIDGE_AND_CALL_GAS_LIMIT, UNLIMITED_BALANCE
from eth_matrix.errors import InvalidInput, SimulationFailed, UnsupportedNetwork
from eth_matrix.libzip import cd_compress, cd_decompress
from eth_matrix.mint import calculate_bridge_input_cost
from eth_matrix.tx_hash import compute_matrix_transaction_hash


@pytest.fixture()
def vault() -> str:
    return Web3.to_checksum_address("0x" + "44" * 20)


@pytest.fixture()
def request_(vault, user) -> BridgeAndCallRequest:
    return BridgeAndCallRequest.from_signature(
        target=vault,
        value=10**17,
        function_signature="deposit(uint256,address)",
        args=[10**17, user],
    )


def test_bridge_and_call(client, sender, user, vault, ether_bridge, request_, testnet):
    result = bridge_and_call(client, 97, user, request_, sender, contract_overrides={"ether_bridge": ether_bridge})

    aliased_bridge = apply_l1_to_l2_alias(ether_bridge)
    weth = testnet.contracts.weth
    zipped = cd_compress(request_.data)
    assert cd_decompress(zipped) == request_.data

    # L2 dry run from the aliased bridge
    assert len(client.traces) == 1
    trace_call = client.traces[0]
    assert trace_call["from"] == aliased_bridge
    assert trace_call["to"] == weth
    assert trace_call["gas"] == BRIDGE_AND_CALL_GAS_LIMIT
    assert trace_call["balance_override"] == UNLIMITED_BALANCE
    expected_l2_calldata = encode_with_signature(L2_BRIDGE_AND_CALL_SIGNATURE, [user, 10**17, vault, bytes(zipped)])
    assert trace_call["data"] == expected_l2_calldata
    assert result.l2_calldata == expected_l2_calldata

    # L1 call carries the value to the bridge
    assert len(sender.sent) == 1
    l1_tx = sender.sent[0]
    assert l1_tx.to == ether_bridge
    assert l1_tx.value == 10**17
    assert l1_tx.chain_id == 97
    assert l1_tx.gas == 120_000
    assert l1_tx.data == encode_with_signature(L1_BRIDGE_AND_CALL_SIGNATURE, [user, vault, bytes(zipped), BRIDGE_AND_CALL_GAS_LIMIT])

    # Flat per byte pricing of the L2 payload
    payload = SubmissionEncoding(chain_id=0xBBBB2, to=weth, gas_limit=BRIDGE_AND_CALL_GAS_LIMIT, data=expected_l2_calldata)
    assert result.mint_amount == calculate_bridge_input_cost(bytes(payload.encode())) * 1_000

    assert result.aliased_bridge == aliased_bridge
    assert result.matrix_transaction_hash == compute_matrix_transaction_hash(
        sender.tx_hash,
        aliased_bridge,
        weth,
        0,
        expected_l2_calldata,
        BRIDGE_AND_CALL_GAS_LIMIT,
    )


def test_bridge_and_call_from_l2_chain_id(client, sender, user, ether_bridge, request_):
    """Wallet connected to Matrix still bridges from the paired L1."""
    bridge_and_call(client, 0xBBBB1, user, request_, sender, contract_overrides={"ether_bridge": ether_bridge})
    assert sender.sent[0].chain_id == 56


def test_bridge_and_call_reverts(make_client, sender, user, ether_bridge, request_):
    """A REVERT anywhere in the trace aborts before value leaves L1."""
    client = make_client(trace={"structLogs": [{"op": "CALL"}, {"op": "REVERT"}, {"op": "RETURN"}]})
    with pytest.raises(SimulationFailed):
        bridge_and_call(client, 97, user, request_, sender, contract_overrides={"ether_bridge": ether_bridge})
    assert sender.sent == []
    assert client.l1_estimates == []


def test_bridge_and_call_unsupported_network(client, sender, user, ether_bridge, request_):
    with pytest.raises(UnsupportedNetwork):
        bridge_and_call(client, 1, user, request_, sender, contract_overrides={"ether_bridge": ether_bridge})
    assert client.mint_rate_reads == []


def test_bridge_and_call_no_bridge_address(client, sender, user, request_):
    with pytest.raises(InvalidInput):
        bridge_and_call(client, 56, user, request_, sender)
    assert client.traces == []


def test_bridge_and_call_no_account(client, sender, ether_bridge, request_):
    with pytest.raises(InvalidInput):
        bridge_and_call(client, 56, None, request_, sender, contract_overrides={"ether_bridge": ether_bridge})


def test_bridge_request_bad_args(vault):
    with pytest.raises(InvalidInput):
        BridgeAndCallRequest.from_signature(vault, 1, "deposit(uint256,address)", [1])


def test_find_revert():
    assert find_revert({"structLogs": []}) is None
    assert find_revert({}) is None
    assert find_revert({"structLogs": [{"op": "PUSH1"}, {"op": "REVERT"}]}) == 1


@pytest.mark.parametrize(
    "request_kwargs",
    [
        {"value": -1},
        {"value": 2**256},
        {"value": 1, "data": "0xzz"},
        {"value": 1, "target": "0x1234"},
    ],
    ids=["negative value", "value overflow", "data not hex", "short target"],
)
def test_bridge_and_call_bad_request(client, sender, user, vault, ether_bridge, request_kwargs):
    """Bad fields are rejected before the mint rate read and the dry run."""
    request = BridgeAndCallRequest(**{"target": vault, **request_kwargs})
    with pytest.raises(InvalidInput):
        bridge_and_call(client, 97, user, request, sender, contract_overrides={"ether_bridge": ether_bridge})
    assert client.mint_rate_reads == []
    assert client.traces == []
    assert sender.sent == []
