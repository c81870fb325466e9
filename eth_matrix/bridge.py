"""Bridge native value to Matrix and call an L2 contract with it.

The L1 ether bridge receives the value and emits a deposit on behalf of the
user. On L2 the deposit arrives from the *aliased* bridge address and calls
``bridgeAndCall()`` on the wrapped native token contract, which wraps the value
and forwards it to the target contract together with the (compressed) calldata.

Flow:

1. Resolve the chain pair and contract addresses

2. Read the mint rate

3. Compress the target calldata with :py:func:`eth_matrix.libzip.cd_compress`

4. Dry run the L2 side with ``debug_traceCall``, giving the aliased bridge
   an unlimited balance. Any ``REVERT`` in the trace aborts before L1 value is spent.

5. Broadcast the L1 bridge call carrying the value

6. Derive the Matrix transaction hash

The L2 gas limit is the fixed :py:data:`~eth_matrix.constants.BRIDGE_AND_CALL_GAS_LIMIT`,
not an estimate.

Example:

.. code-block:: python

    request = BridgeAndCallRequest.from_signature(
        target=vault_address,
        value=Web3.to_wei(0.1, "ether"),
        function_signature="deposit(uint256,address)",
        args=[Web3.to_wei(0.1, "ether"), user],
    )
    result = bridge_and_call(
        client,
        97,
        user,
        request,
        sender,
        contract_overrides={"ether_bridge": "0x..."},
    )
"""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Sequence

from eth_abi.exceptions import EncodingError
from eth_typing import HexAddress
from hexbytes import HexBytes
from web3 import Web3

from eth_matrix.abi import encode_with_signature
from eth_matrix.aliasing import apply_l1_to_l2_alias
from eth_matrix.chain import resolve_chain_pair
from eth_matrix.codec import SubmissionEncoding
from eth_matrix.constants import BRIDGE_AND_CALL_GAS_LIMIT, UNLIMITED_BALANCE
from eth_matrix.errors import InvalidInput, SimulationFailed
from eth_matrix.libzip import cd_compress
from eth_matrix.mint import calculate_bridge_input_cost, fetch_mint_rate, quote_mint
from eth_matrix.rpc import MatrixChainClient
from eth_matrix.sender import L1Transaction, L1TransactionSender
from eth_matrix.submit import broadcast_l1_transaction, decode_hex_field, validate_value
from eth_matrix.tx_hash import compute_matrix_transaction_hash

logger = logging.getLogger(__name__)


#: L2 entry point on the wrapped native token
L2_BRIDGE_AND_CALL_SIGNATURE = "bridgeAndCall(address,uint256,address,bytes)"

#: L1 entry point on the ether bridge
L1_BRIDGE_AND_CALL_SIGNATURE = "bridgeAndCall(address,address,bytes,uint256)"


@dataclass(slots=True, frozen=True)
class BridgeAndCallRequest:
    """Bridge value and call a contract on L2 with it."""

    #: L2 contract to call
    target: HexAddress

    #: Native value to bridge, in wei
    value: int

    #: Calldata for the target, uncompressed
    data: bytes | str = b""

    @classmethod
    def from_signature(cls, target: HexAddress, value: int, function_signature: str, args: Sequence = ()) -> "BridgeAndCallRequest":
        """Build the target calldata from a Solidity signature."""
        try:
            data = encode_with_signature(function_signature, list(args))
        except (EncodingError, ValueError) as e:
            raise InvalidInput(f"Cannot encode {function_signature} with {args}: {e}") from e
        return cls(target=target, value=value, data=data)


@dataclass(slots=True, frozen=True)
class BridgeAndCallResult:
    """Outcome of a broadcast bridge-and-call."""

    l1_transaction_hash: HexBytes

    matrix_transaction_hash: HexBytes

    #: FCT minted by the deposit
    mint_amount: int

    mint_rate: int

    #: L2 sender of the resulting Matrix transaction
    aliased_bridge: HexAddress

    #: Calldata of the resulting Matrix transaction
    l2_calldata: HexBytes

    def __repr__(self):
        return f"<BridgeAndCallResult L1:{self.l1_transaction_hash.to_0x_hex()} Matrix:{self.matrix_transaction_hash.to_0x_hex()} mint:{self.mint_amount}>"


def find_revert(trace: dict) -> int | None:
    """Find the first ``REVERT`` step in a geth struct log trace.

    :return:
        Step index or ``None`` if the call did not revert anywhere
    """
    for idx, step in enumerate(trace.get("structLogs") or []):
        if step.get("op") == "REVERT":
            return idx
    return None


def bridge_and_call(
    client: MatrixChainClient,
    chain_id: int,
    account: HexAddress | str | None,
    request: BridgeAndCallRequest,
    sender: L1TransactionSender,
    contract_overrides: dict | None = None,
) -> BridgeAndCallResult:
    """Bridge native value from L1 and call an L2 contract with it.

    :param chain_id:
        Chain id of either side of the bridge, the wallet may be connected to L1 or L2

    :param account:
        L1 account paying the value. Also credited as the beneficiary on L2.

    :param contract_overrides:
        Must contain ``ether_bridge`` unless configured otherwise

    :raise UnsupportedNetwork:
        Chain id is not part of a known pair

    :raise InvalidInput:
        No account or contract addresses missing

    :raise SimulationFailed:
        L2 dry run reverted. Nothing was broadcast.
    """
    chain_pair = resolve_chain_pair(chain_id).with_overrides(contract_overrides)
    contracts = chain_pair.contracts

    if not account:
        raise InvalidInput("No account")

    if not contracts.ether_bridge or not contracts.weth:
        raise InvalidInput(f"Contract addresses not available for {chain_pair}: {contracts}")

    try:
        account = Web3.to_checksum_address(account)
        target = Web3.to_checksum_address(request.target)
    except (ValueError, TypeError) as e:
        raise InvalidInput(f"Bad address: {e}") from e

    value = validate_value(request.value)
    data = decode_hex_field(request.data, "data")

    mint_rate = fetch_mint_rate(client, chain_pair)

    zipped_data = cd_compress(data)
    gas_limit = BRIDGE_AND_CALL_GAS_LIMIT
    aliased_bridge = apply_l1_to_l2_alias(contracts.ether_bridge)

    l2_calldata = encode_with_signature(
        L2_BRIDGE_AND_CALL_SIGNATURE,
        [account, value, target, bytes(zipped_data)],
    )

    logger.info(
        "Dry running bridge-and-call on %s: %s -> %s, value %d, target %s, %d bytes compressed to %d",
        chain_pair,
        aliased_bridge,
        contracts.weth,
        value,
        target,
        len(data),
        len(zipped_data),
    )

    trace = client.trace_l2_call(
        aliased_bridge,
        contracts.weth,
        l2_calldata,
        gas_limit,
        0,
        UNLIMITED_BALANCE,
    )
    revert_at = find_revert(trace)
    if revert_at is not None:
        raise SimulationFailed(f"Failed to create transaction, bridge-and-call to {target} reverts at trace step {revert_at}")

    payload = SubmissionEncoding(
        chain_id=chain_pair.l2_chain_id,
        to=contracts.weth,
        value=0,
        gas_limit=gas_limit,
        data=l2_calldata,
    )
    quote = quote_mint(payload.encode(), mint_rate, calculate_bridge_input_cost)

    l1_calldata = encode_with_signature(
        L1_BRIDGE_AND_CALL_SIGNATURE,
        [account, target, bytes(zipped_data), gas_limit],
    )
    l1_tx = L1Transaction(
        account=account,
        to=contracts.ether_bridge,
        value=value,
        data=l1_calldata,
        chain_id=chain_pair.l1_chain_id,
    )
    l1_tx = dataclasses.replace(l1_tx, gas=client.estimate_l1_gas(l1_tx))
    l1_transaction_hash = broadcast_l1_transaction(sender, l1_tx)

    matrix_transaction_hash = compute_matrix_transaction_hash(
        l1_transaction_hash,
        aliased_bridge,
        contracts.weth,
        0,
        l2_calldata,
        gas_limit,
        quote.amount,
    )

    result = BridgeAndCallResult(
        l1_transaction_hash=l1_transaction_hash,
        matrix_transaction_hash=matrix_transaction_hash,
        mint_amount=quote.amount,
        mint_rate=mint_rate,
        aliased_bridge=aliased_bridge,
        l2_calldata=l2_calldata,
    )
    logger.info("Bridge-and-call broadcasted %s", result)
    return result
