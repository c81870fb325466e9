"""Broadcasting L1 transactions.

Deposit pipelines build an unsigned :py:class:`L1Transaction` and hand it
to a :py:class:`L1TransactionSender`. How it gets signed and broadcast
is up to the sender, which keeps wallet backends out of the pipelines.

- :py:class:`HotWalletSender` signs with a private key held in process memory
- :py:class:`NodeAccountSender` lets the node sign with ``eth_sendTransaction``
- :py:class:`FunctionSender` wraps any callable
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

from eth_account.signers.local import LocalAccount
from eth_typing import HexAddress
from hexbytes import HexBytes
from web3 import Web3

from eth_matrix.gas import apply_gas, estimate_gas_price

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class L1Transaction:
    """An unsigned L1 transaction produced by a deposit pipeline."""

    #: Sending account
    account: HexAddress

    #: Matrix inbox or the ether bridge
    to: HexAddress

    #: Native value, zero for plain deposits
    value: int

    #: Deposit payload or bridge call
    data: HexBytes

    #: L1 chain id
    chain_id: int

    #: Gas limit, filled in after L1 estimation
    gas: int | None = None

    def as_tx_params(self) -> dict:
        """Transaction dict as understood by web3.py."""
        tx = {
            "from": self.account,
            "to": self.to,
            "value": self.value,
            "data": HexBytes(self.data),
            "chainId": self.chain_id,
        }
        if self.gas is not None:
            tx["gas"] = self.gas
        return tx


class L1TransactionSender(ABC):
    """Capability to broadcast an L1 transaction."""

    @abstractmethod
    def send_l1_transaction(self, tx: L1Transaction) -> HexBytes:
        """Sign and broadcast.

        :return:
            L1 transaction hash
        """


class FunctionSender(L1TransactionSender):
    """Adapt a plain callable as a sender.

    .. code-block:: python

        sender = FunctionSender(lambda tx: web3.eth.send_transaction(tx.as_tx_params()))
    """

    def __init__(self, func: Callable[[L1Transaction], HexBytes | bytes | str]):
        self.func = func

    def send_l1_transaction(self, tx: L1Transaction) -> HexBytes:
        return HexBytes(self.func(tx))


class NodeAccountSender(L1TransactionSender):
    """Broadcast with ``eth_sendTransaction`` using an account unlocked on the node.

    Useful with Anvil forks and node-managed keys.
    """

    def __init__(self, web3: Web3):
        self.web3 = web3

    def send_l1_transaction(self, tx: L1Transaction) -> HexBytes:
        tx_hash = self.web3.eth.send_transaction(tx.as_tx_params())
        logger.info("Broadcasted %s from node account %s", HexBytes(tx_hash).to_0x_hex(), tx.account)
        return HexBytes(tx_hash)


class HotWalletSender(L1TransactionSender):
    """Sign locally with a private key and broadcast raw transactions.

    - Keeps a nonce counter, synced from the chain on first use

    - Fills in gas price from the latest block, see :py:func:`eth_matrix.gas.estimate_gas_price`

    Example:

    .. code-block:: python

        from eth_account import Account

        account = Account.from_key(os.environ["PRIVATE_KEY"])
        sender = HotWalletSender(l1_web3, account)

    .. note ::

        This class is not thread safe. Use one sender per thread.
    """

    def __init__(self, web3: Web3, account: LocalAccount):
        self.web3 = web3
        self.account = account
        self.current_nonce: int | None = None

    def __repr__(self):
        return f"<HotWalletSender {self.account.address}>"

    @property
    def address(self) -> HexAddress:
        return self.account.address

    def sync_nonce(self):
        """Initialise the nonce counter from on-chain data."""
        self.current_nonce = self.web3.eth.get_transaction_count(self.account.address)
        logger.info("Synced nonce for %s to %d", self.account.address, self.current_nonce)

    def allocate_nonce(self) -> int:
        if self.current_nonce is None:
            self.sync_nonce()
        nonce = self.current_nonce
        self.current_nonce += 1
        return nonce

    def send_l1_transaction(self, tx: L1Transaction) -> HexBytes:
        assert Web3.to_checksum_address(tx.account) == self.account.address, f"Transaction is from {tx.account}, but the wallet is {self.account.address}"
        assert tx.gas is not None, f"Gas limit must be estimated before signing: {tx}"

        params = tx.as_tx_params()
        params["from"] = self.account.address
        apply_gas(params, estimate_gas_price(self.web3))
        params["nonce"] = self.allocate_nonce()

        signed = self.account.sign_transaction(params)
        tx_hash = self.web3.eth.send_raw_transaction(signed.raw_transaction)
        logger.info("Broadcasted %s from %s, nonce %d", HexBytes(tx_hash).to_0x_hex(), self.account.address, params["nonce"])
        return HexBytes(tx_hash)
