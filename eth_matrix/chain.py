"""Matrix chain pairs and contract address books.

Each Matrix network is settled on exactly one BNB Smart Chain network.
Only two pairs exist and any other chain id is rejected, never defaulted.

Example:

.. code-block:: python

    from eth_matrix.chain import get_chain_pair_by_l1_chain_id

    pair = get_chain_pair_by_l1_chain_id(56).with_overrides({"ether_bridge": "0x..."})
    assert pair.l2_chain_id == 0xBBBB1
"""

import dataclasses
import logging
import os
from dataclasses import dataclass

from eth_typing import HexAddress
from web3 import Web3

from eth_matrix.constants import L2_L1_BLOCK_CONTRACT, L2_WETH_CONTRACT, MATRIX_INBOX_ADDRESS
from eth_matrix.errors import InvalidInput, UnsupportedNetwork

logger = logging.getLogger(__name__)


#: BNB Smart Chain mainnet
BSC_CHAIN_ID = 56

#: BNB Smart Chain testnet
BSC_TESTNET_CHAIN_ID = 97

#: Matrix mainnet
MATRIX_MAINNET_CHAIN_ID = 0xBBBB1

#: Matrix testnet
MATRIX_TESTNET_CHAIN_ID = 0xBBBB2

#: Manually maintained shorthand names, also used to form ``JSON_RPC_*`` environment variable names
CHAIN_NAMES = {
    BSC_CHAIN_ID: "Binance",
    BSC_TESTNET_CHAIN_ID: "Binance_Testnet",
    MATRIX_MAINNET_CHAIN_ID: "Matrix",
    MATRIX_TESTNET_CHAIN_ID: "Matrix_Testnet",
}

#: Public RPC endpoints used when no environment variable or explicit URL is given
DEFAULT_RPC_URLS = {
    BSC_CHAIN_ID: "https://bsc-dataseed.binance.org",
    BSC_TESTNET_CHAIN_ID: "https://bsc-testnet.publicnode.com",
    MATRIX_MAINNET_CHAIN_ID: "https://mainnet.matrixlabs.app",
    MATRIX_TESTNET_CHAIN_ID: "https://testnet.matrixlabs.app",
}


def _checksum(address: str, name: str) -> HexAddress:
    try:
        return Web3.to_checksum_address(address)
    except (ValueError, TypeError) as e:
        raise InvalidInput(f"Bad address for {name}: {address}") from e


@dataclass(slots=True, frozen=True)
class ContractAddresses:
    """Contracts the deposit pipelines talk to.

    Addresses are stored checksummed.
    """

    #: L1: Matrix inbox receiving deposit calldata
    inbox: HexAddress

    #: L2: ``L1Block`` predeploy exposing ``fctMintRate()``
    l1_block: HexAddress

    #: L2: wrapped native token receiving bridged value
    weth: HexAddress

    #: L1: native value bridge used by bridge-and-call.
    #:
    #: No public default. Must be given as an override before bridging.
    ether_bridge: HexAddress | None = None

    def __post_init__(self):
        for field in dataclasses.fields(self):
            value = getattr(self, field.name)
            if value is not None:
                object.__setattr__(self, field.name, _checksum(value, field.name))

    def merge(self, overrides: dict | None) -> "ContractAddresses":
        """Layer per-call overrides over these addresses.

        :param overrides:
            Dict of field name to address. ``None`` values are ignored.

        :raise InvalidInput:
            Unknown contract name in overrides
        """
        if not overrides:
            return self

        known = {f.name for f in dataclasses.fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise InvalidInput(f"Unknown contract address overrides: {sorted(unknown)}, known: {sorted(known)}")

        changes = {k: v for k, v in overrides.items() if v is not None}
        return dataclasses.replace(self, **changes)


@dataclass(slots=True, frozen=True)
class ChainPair:
    """A BNB Smart Chain network and the Matrix network settled on it."""

    #: Human readable name
    name: str

    #: L1 chain id
    l1_chain_id: int

    #: L2 chain id
    l2_chain_id: int

    #: Contract address book for this pair
    contracts: ContractAddresses

    def __repr__(self):
        return f"<ChainPair {self.name} L1:{self.l1_chain_id} L2:{self.l2_chain_id}>"

    def with_overrides(self, contract_overrides: dict | None) -> "ChainPair":
        """Resolve contract overrides once, returning a new pair."""
        if not contract_overrides:
            return self
        return dataclasses.replace(self, contracts=self.contracts.merge(contract_overrides))

    def get_l1_rpc_url(self) -> str:
        return read_json_rpc_url(self.l1_chain_id)

    def get_l2_rpc_url(self) -> str:
        return read_json_rpc_url(self.l2_chain_id)


#: Matrix mainnet settled on BNB Smart Chain
MATRIX_MAINNET = ChainPair(
    name="mainnet",
    l1_chain_id=BSC_CHAIN_ID,
    l2_chain_id=MATRIX_MAINNET_CHAIN_ID,
    contracts=ContractAddresses(
        inbox=MATRIX_INBOX_ADDRESS,
        l1_block=L2_L1_BLOCK_CONTRACT,
        weth=L2_WETH_CONTRACT,
    ),
)

#: Matrix testnet settled on BNB Smart Chain testnet
MATRIX_TESTNET = ChainPair(
    name="testnet",
    l1_chain_id=BSC_TESTNET_CHAIN_ID,
    l2_chain_id=MATRIX_TESTNET_CHAIN_ID,
    contracts=ContractAddresses(
        inbox=MATRIX_INBOX_ADDRESS,
        l1_block=L2_L1_BLOCK_CONTRACT,
        weth=L2_WETH_CONTRACT,
    ),
)

#: All supported pairs
CHAIN_PAIRS = (MATRIX_MAINNET, MATRIX_TESTNET)


def get_chain_pair_by_l1_chain_id(l1_chain_id: int) -> ChainPair:
    """Look up the pair for a BNB Smart Chain network.

    :raise InvalidInput:
        The chain id is not 56 or 97.
    """
    for pair in CHAIN_PAIRS:
        if pair.l1_chain_id == l1_chain_id:
            return pair
    raise InvalidInput(f"Invalid L1 chain: {l1_chain_id}. Supported L1 chains: {[p.l1_chain_id for p in CHAIN_PAIRS]}")


def resolve_chain_pair(chain_id: int) -> ChainPair:
    """Look up the pair from either side of the bridge.

    Wallets may be connected to the L1 or the L2 when bridging,
    so both chain ids are accepted.

    :raise UnsupportedNetwork:
        The chain id is not part of any pair.
    """
    for pair in CHAIN_PAIRS:
        if chain_id in (pair.l1_chain_id, pair.l2_chain_id):
            return pair
    raise UnsupportedNetwork(f"Unsupported network: {chain_id}")


def get_json_rpc_env(chain_id: int) -> str:
    """Get the environment variable name holding the JSON-RPC URL for a chain."""
    chain_name = CHAIN_NAMES.get(chain_id)
    assert chain_name, f"CHAIN_NAMES not configured for chain {chain_id}"
    return f"JSON_RPC_{chain_name.upper()}"


def read_json_rpc_url(chain_id: int) -> str:
    """Read the JSON-RPC URL for a chain.

    Environment variable first, then the public default endpoint.
    """
    assert type(chain_id) is int, f"Chain ID must be an integer: {type(chain_id)}"
    env_var = get_json_rpc_env(chain_id)
    json_rpc_url = os.environ.get(env_var)
    if json_rpc_url:
        logger.debug("Using %s for chain %d", env_var, chain_id)
        return json_rpc_url
    return DEFAULT_RPC_URLS[chain_id]
