"""Print the Matrix transaction hash of an L1 deposit.

Also prints the decoded deposit and the current mint rate.

Usage:

.. code-block:: shell

    export JSON_RPC_BINANCE_TESTNET=...
    export JSON_RPC_MATRIX_TESTNET=...
    export L1_CHAIN_ID=97
    export L1_TX_HASH=0x...
    python scripts/matrix/resolve-matrix-hash.py
"""

import logging
import os

from eth_matrix.chain import get_chain_pair_by_l1_chain_id
from eth_matrix.codec import decode_mined_transaction
from eth_matrix.mint import fetch_mint_rate
from eth_matrix.resolve import get_matrix_transaction_hash_from_l1_hash
from eth_matrix.rpc import Web3ChainClient
from eth_matrix.utils import setup_console_logging

logger = logging.getLogger(__name__)


def main():
    setup_console_logging(default_log_level="info")

    l1_chain_id = int(os.environ.get("L1_CHAIN_ID", "56"))
    l1_tx_hash = os.environ["L1_TX_HASH"]

    chain_pair = get_chain_pair_by_l1_chain_id(l1_chain_id)
    client = Web3ChainClient.create(chain_pair)

    tx = client.get_l1_transaction(l1_tx_hash)
    decoded = decode_mined_transaction(tx["input"])
    matrix_tx_hash = get_matrix_transaction_hash_from_l1_hash(client, l1_tx_hash, l1_chain_id)

    print(f"Chain pair: {chain_pair}")
    print(f"L1 sender: {tx['from']}")
    print(f"L2 recipient: {decoded.to}")
    print(f"L2 value: {decoded.value}")
    print(f"L2 gas limit: {decoded.gas_limit}")
    print(f"L2 calldata: {len(decoded.data)} bytes")
    print(f"Minted: {decoded.mint_amount}")
    print(f"Current mint rate: {fetch_mint_rate(client, chain_pair)}")
    print(f"Matrix transaction: {matrix_tx_hash.to_0x_hex()}")


if __name__ == "__main__":
    main()
