"""Matrix deposit test fixtures.

- :py:class:`FakeChainClient` answers chain reads from scripted values, so the
  deposit pipelines can be tested without BNB Smart Chain or Matrix nodes

- :py:class:`RecordingSender` collects broadcast transactions instead of signing them
"""

import pytest
from hexbytes import HexBytes
from web3 import Web3

from eth_matrix.chain import MATRIX_MAINNET, MATRIX_TESTNET
from eth_matrix.errors import InvalidInput, SimulationFailed
from eth_matrix.rpc import MatrixChainClient
from eth_matrix.sender import L1Transaction, L1TransactionSender

#: L1 hash returned by the recording sender
FAKE_L1_TX_HASH = HexBytes("0x" + "ab" * 32)


class FakeChainClient(MatrixChainClient):
    """Scripted chain.

    :param required_balance:
        L2 gas estimation reverts when the balance override is below this
    """

    def __init__(
        self,
        mint_rate=1_000,
        balance=0,
        gas_estimate=50_000,
        required_balance=0,
        trace=None,
        l1_gas=120_000,
    ):
        self.mint_rate = mint_rate
        self.balance = balance
        self.gas_estimate = gas_estimate
        self.required_balance = required_balance
        self.trace = trace if trace is not None else {"structLogs": [{"op": "PUSH1"}, {"op": "STOP"}]}
        self.l1_gas = l1_gas
        self.l1_transactions = {}
        self.l2_estimates = []
        self.mint_rate_reads = []
        self.traces = []
        self.l1_estimates = []

    def estimate_l2_gas(self, sender, to, value, data, balance_override):
        self.l2_estimates.append(
            {
                "sender": sender,
                "to": to,
                "value": value,
                "data": data,
                "balance_override": balance_override,
            }
        )
        if balance_override < self.required_balance:
            raise SimulationFailed(f"execution reverted, balance {balance_override} < {self.required_balance}")
        return self.gas_estimate

    def get_l2_balance(self, address):
        return self.balance

    def get_mint_rate(self, oracle_address):
        self.mint_rate_reads.append(oracle_address)
        return self.mint_rate

    def trace_l2_call(self, from_, to, data, gas, value, balance_override):
        self.traces.append(
            {
                "from": from_,
                "to": to,
                "data": data,
                "gas": gas,
                "value": value,
                "balance_override": balance_override,
            }
        )
        return self.trace

    def estimate_l1_gas(self, transaction: L1Transaction):
        self.l1_estimates.append(transaction)
        return self.l1_gas

    def get_l1_transaction(self, tx_hash):
        try:
            return self.l1_transactions[HexBytes(tx_hash)]
        except KeyError as e:
            raise InvalidInput(f"Transaction {HexBytes(tx_hash).to_0x_hex()} not found") from e

    def add_l1_transaction(self, tx_hash, from_, to, input):
        self.l1_transactions[HexBytes(tx_hash)] = {
            "from": from_,
            "to": to,
            "input": HexBytes(input),
        }


class RecordingSender(L1TransactionSender):
    """Record transactions instead of broadcasting them."""

    def __init__(self, tx_hash=FAKE_L1_TX_HASH):
        self.tx_hash = tx_hash
        self.sent: list[L1Transaction] = []

    def send_l1_transaction(self, tx: L1Transaction) -> HexBytes:
        self.sent.append(tx)
        return self.tx_hash


@pytest.fixture()
def client() -> FakeChainClient:
    return FakeChainClient()


@pytest.fixture()
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture()
def user() -> str:
    return Web3.to_checksum_address("0x" + "11" * 20)


@pytest.fixture()
def receiver() -> str:
    return Web3.to_checksum_address("0x" + "22" * 20)


@pytest.fixture()
def ether_bridge() -> str:
    return Web3.to_checksum_address("0x" + "0b" * 20)


@pytest.fixture()
def mainnet():
    return MATRIX_MAINNET


@pytest.fixture()
def testnet():
    return MATRIX_TESTNET


@pytest.fixture()
def make_client():
    """Create a :py:class:`FakeChainClient` with custom scripted values."""
    return FakeChainClient


@pytest.fixture()
def make_sender():
    """Create a :py:class:`RecordingSender` returning a custom L1 hash."""
    return RecordingSender
