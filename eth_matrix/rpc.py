"""JSON-RPC access to the L1 and L2 chains.

Deposit pipelines never touch web3.py directly. They go through
:py:class:`MatrixChainClient` so that the network can be swapped
for a scripted fake in tests or for a different node setup in production.

:py:class:`Web3ChainClient` is the default implementation over two
:py:class:`web3.Web3` connections.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator

import requests
from eth_typing import HexAddress
from hexbytes import HexBytes
from web3 import HTTPProvider, Web3
from web3.exceptions import ContractLogicError, TransactionNotFound, Web3Exception

from eth_matrix.chain import ChainPair
from eth_matrix.errors import InvalidInput, SimulationFailed, UpstreamFailure
from eth_matrix.sender import L1Transaction

logger = logging.getLogger(__name__)


#: Minimal ABI of the L2 ``L1Block`` predeploy
L1_BLOCK_ABI = [
    {
        "inputs": [],
        "name": "fctMintRate",
        "outputs": [{"internalType": "uint128", "name": "", "type": "uint128"}],
        "stateMutability": "view",
        "type": "function",
    },
]


class MatrixChainClient(ABC):
    """Chain reads and simulations the deposit pipelines need.

    Implementations raise :py:class:`~eth_matrix.errors.SimulationFailed` when a
    simulated call reverts and :py:class:`~eth_matrix.errors.UpstreamFailure`
    for any other node error.
    """

    @abstractmethod
    def estimate_l2_gas(
        self,
        sender: HexAddress,
        to: HexAddress | None,
        value: int,
        data: bytes,
        balance_override: int,
    ) -> int:
        """Estimate L2 gas as if ``sender`` held ``balance_override``."""

    @abstractmethod
    def get_l2_balance(self, address: HexAddress) -> int:
        """L2 fee token balance."""

    @abstractmethod
    def get_mint_rate(self, oracle_address: HexAddress) -> int:
        """Read ``fctMintRate()`` from the L2 ``L1Block`` contract."""

    @abstractmethod
    def trace_l2_call(
        self,
        from_: HexAddress,
        to: HexAddress,
        data: bytes,
        gas: int,
        value: int,
        balance_override: int,
    ) -> dict:
        """Run ``debug_traceCall`` on L2.

        :return:
            Geth struct log trace, with a ``structLogs`` list of steps having an ``op`` key
        """

    @abstractmethod
    def estimate_l1_gas(self, transaction: L1Transaction) -> int:
        """Estimate gas of the L1 transaction carrying the deposit."""

    @abstractmethod
    def get_l1_transaction(self, tx_hash: HexBytes | str) -> dict:
        """Fetch a mined L1 transaction.

        :return:
            Dict with at least ``to``, ``from`` and ``input``
        """


#: Node error messages meaning the simulated call itself failed, not the node
SIMULATION_FAILURE_MESSAGES = (
    "execution reverted",
    "insufficient funds",
)


def is_simulation_failure(e: Exception) -> bool:
    """Did the node reject a call or estimate because of its outcome.

    Nodes report reverts and balance shortfalls as plain JSON-RPC errors,
    so we need to look at the message.
    """
    message = str(e).lower()
    return any(m in message for m in SIMULATION_FAILURE_MESSAGES)


@contextmanager
def translate_rpc_errors(operation: str) -> Iterator[None]:
    """Map web3.py and transport exceptions to our error taxonomy.

    - Reverts and balance shortfalls become :py:class:`~eth_matrix.errors.SimulationFailed`

    - Missing transactions become :py:class:`~eth_matrix.errors.InvalidInput`

    - Anything else from web3.py or the HTTP transport becomes :py:class:`~eth_matrix.errors.UpstreamFailure`
    """
    try:
        yield
    except ContractLogicError as e:
        raise SimulationFailed(f"{operation} reverted: {e}") from e
    except TransactionNotFound as e:
        raise InvalidInput(f"{operation}: {e}") from e
    except (Web3Exception, ValueError) as e:
        if is_simulation_failure(e):
            raise SimulationFailed(f"{operation} failed: {e}") from e
        raise UpstreamFailure(f"{operation} failed: {e}") from e
    except requests.RequestException as e:
        raise UpstreamFailure(f"{operation} failed: {e}") from e


class Web3ChainClient(MatrixChainClient):
    """Talk to BNB Smart Chain and Matrix nodes using web3.py.

    Example:

    .. code-block:: python

        from eth_matrix.chain import MATRIX_TESTNET
        from eth_matrix.rpc import Web3ChainClient

        client = Web3ChainClient.create(MATRIX_TESTNET)
        rate = client.get_mint_rate(MATRIX_TESTNET.contracts.l1_block)

    The L2 node must expose ``debug_traceCall`` for bridge-and-call dry runs.
    """

    def __init__(self, l1_web3: Web3, l2_web3: Web3):
        self.l1_web3 = l1_web3
        self.l2_web3 = l2_web3

    def __repr__(self):
        return f"<Web3ChainClient L1:{self.l1_web3.provider} L2:{self.l2_web3.provider}>"

    @classmethod
    def create(
        cls,
        chain_pair: ChainPair,
        l1_rpc_url: str | None = None,
        l2_rpc_url: str | None = None,
        request_timeout: float = 30.0,
    ) -> "Web3ChainClient":
        """Connect to both chains of a pair.

        :param l1_rpc_url:
            Override the L1 JSON-RPC URL.
            Default to ``JSON_RPC_BINANCE`` / ``JSON_RPC_BINANCE_TESTNET`` or a public node.

        :param l2_rpc_url:
            Override the L2 JSON-RPC URL.
            Default to ``JSON_RPC_MATRIX`` / ``JSON_RPC_MATRIX_TESTNET`` or a public node.

        :param request_timeout:
            HTTP timeout in seconds
        """
        l1_rpc_url = l1_rpc_url or chain_pair.get_l1_rpc_url()
        l2_rpc_url = l2_rpc_url or chain_pair.get_l2_rpc_url()
        logger.info("Connecting %s, L1: %s, L2: %s", chain_pair, l1_rpc_url, l2_rpc_url)
        request_kwargs = {"timeout": request_timeout}
        return cls(
            Web3(HTTPProvider(l1_rpc_url, request_kwargs=request_kwargs)),
            Web3(HTTPProvider(l2_rpc_url, request_kwargs=request_kwargs)),
        )

    def estimate_l2_gas(
        self,
        sender: HexAddress,
        to: HexAddress | None,
        value: int,
        data: bytes,
        balance_override: int,
    ) -> int:
        tx = {
            "from": sender,
            "value": value,
            "data": HexBytes(data),
        }
        if to is not None:
            tx["to"] = to
        state_override = {sender: {"balance": Web3.to_hex(balance_override)}}
        with translate_rpc_errors("L2 gas estimation"):
            gas = self.l2_web3.eth.estimate_gas(tx, state_override=state_override)
        logger.debug("L2 gas estimate for %s -> %s: %d", sender, to, gas)
        return gas

    def get_l2_balance(self, address: HexAddress) -> int:
        with translate_rpc_errors("L2 balance read"):
            return self.l2_web3.eth.get_balance(address)

    def get_mint_rate(self, oracle_address: HexAddress) -> int:
        contract = self.l2_web3.eth.contract(address=Web3.to_checksum_address(oracle_address), abi=L1_BLOCK_ABI)
        with translate_rpc_errors("fctMintRate() read"):
            return contract.functions.fctMintRate().call()

    def trace_l2_call(
        self,
        from_: HexAddress,
        to: HexAddress,
        data: bytes,
        gas: int,
        value: int,
        balance_override: int,
    ) -> dict:
        call = {
            "from": from_,
            "to": to,
            "data": HexBytes(data).to_0x_hex(),
            "gas": Web3.to_hex(gas),
            "value": Web3.to_hex(value),
        }
        tracer_config = {
            "stateOverrides": {
                from_: {"balance": Web3.to_hex(balance_override)},
            },
        }
        with translate_rpc_errors("debug_traceCall"):
            return self.l2_web3.manager.request_blocking("debug_traceCall", [call, "latest", tracer_config])

    def estimate_l1_gas(self, transaction: L1Transaction) -> int:
        with translate_rpc_errors("L1 gas estimation"):
            return self.l1_web3.eth.estimate_gas(transaction.as_tx_params())

    def get_l1_transaction(self, tx_hash: HexBytes | str) -> dict:
        with translate_rpc_errors(f"Fetching L1 transaction {HexBytes(tx_hash).to_0x_hex()}"):
            tx = self.l1_web3.eth.get_transaction(tx_hash)
        return {
            "to": tx.get("to"),
            "from": tx["from"],
            "input": HexBytes(tx["input"]),
        }
