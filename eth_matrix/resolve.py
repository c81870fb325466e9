"""Find the Matrix transaction of an L1 deposit.

Read-only: fetch the L1 transaction, check it went to the Matrix inbox,
decode its calldata and recompute the Matrix transaction hash.
"""

import logging

from hexbytes import HexBytes
from web3 import Web3

from eth_matrix.chain import get_chain_pair_by_l1_chain_id
from eth_matrix.codec import decode_mined_transaction
from eth_matrix.errors import WrongDestination
from eth_matrix.rpc import MatrixChainClient
from eth_matrix.tx_hash import compute_matrix_transaction_hash

logger = logging.getLogger(__name__)


def get_matrix_transaction_hash_from_l1_hash(
    client: MatrixChainClient,
    l1_transaction_hash: HexBytes | str,
    l1_chain_id: int,
    contract_overrides: dict | None = None,
) -> HexBytes:
    """Get the Matrix transaction hash of a deposit already broadcast on L1.

    Example:

    .. code-block:: python

        client = Web3ChainClient.create(MATRIX_MAINNET)
        matrix_tx_hash = get_matrix_transaction_hash_from_l1_hash(client, "0x...", 56)
        receipt = client.l2_web3.eth.get_transaction_receipt(matrix_tx_hash)

    :param l1_chain_id:
        56 or 97

    :raise InvalidInput:
        Unknown L1 chain or transaction not found

    :raise WrongDestination:
        The transaction was not sent to the Matrix inbox

    :raise DecodeError:
        The calldata is not a Matrix deposit
    """
    chain_pair = get_chain_pair_by_l1_chain_id(l1_chain_id).with_overrides(contract_overrides)
    l1_transaction_hash = HexBytes(l1_transaction_hash)

    tx = client.get_l1_transaction(l1_transaction_hash)

    inbox = chain_pair.contracts.inbox
    if not tx["to"] or Web3.to_checksum_address(tx["to"]) != inbox:
        raise WrongDestination(f"Transaction {l1_transaction_hash.to_0x_hex()} is not to Matrix inbox {inbox}, but {tx['to']}")

    decoded = decode_mined_transaction(tx["input"])

    matrix_transaction_hash = compute_matrix_transaction_hash(
        l1_transaction_hash,
        tx["from"],
        decoded.to,
        decoded.value,
        decoded.data,
        decoded.gas_limit,
        decoded.mint_amount,
    )
    logger.info("L1 deposit %s resolves to Matrix transaction %s", l1_transaction_hash.to_0x_hex(), matrix_transaction_hash.to_0x_hex())
    return matrix_transaction_hash
