"""Wallet-bound entry points.

:py:class:`MatrixWalletActions` binds a chain client, a sender and an
account together so callers do not need to repeat them on every call.
"""

import logging

from eth_typing import HexAddress
from hexbytes import HexBytes

from eth_matrix.bridge import BridgeAndCallRequest, BridgeAndCallResult, bridge_and_call
from eth_matrix.chain import ChainPair
from eth_matrix.resolve import get_matrix_transaction_hash_from_l1_hash
from eth_matrix.rpc import MatrixChainClient, Web3ChainClient
from eth_matrix.sender import HotWalletSender, L1TransactionSender
from eth_matrix.submit import (
    ContractWriteRequest,
    SubmissionResult,
    TransferRequest,
    send_matrix_transaction,
    send_raw_matrix_transaction,
    write_matrix_contract,
)

logger = logging.getLogger(__name__)


class MatrixWalletActions:
    """Matrix deposit actions for one L1 account.

    Example:

    .. code-block:: python

        from eth_account import Account

        account = Account.from_key(os.environ["PRIVATE_KEY"])
        actions = MatrixWalletActions.create_hot_wallet(MATRIX_TESTNET, account)
        tx_hash = actions.send_matrix_transaction(TransferRequest(to=receiver, value=1))
    """

    def __init__(
        self,
        client: MatrixChainClient,
        chain_pair: ChainPair,
        sender: L1TransactionSender,
        account: HexAddress | None,
        contract_overrides: dict | None = None,
    ):
        self.client = client
        self.chain_pair = chain_pair
        self.sender = sender
        self.account = account
        self.contract_overrides = contract_overrides

    def __repr__(self):
        return f"<MatrixWalletActions {self.account} on {self.chain_pair}>"

    @classmethod
    def create_hot_wallet(cls, chain_pair: ChainPair, account, contract_overrides: dict | None = None) -> "MatrixWalletActions":
        """Connect to the default RPC endpoints and sign with a local private key.

        :param account:
            :py:class:`eth_account.signers.local.LocalAccount`
        """
        client = Web3ChainClient.create(chain_pair)
        sender = HotWalletSender(client.l1_web3, account)
        return cls(client, chain_pair, sender, account.address, contract_overrides)

    @property
    def l1_chain_id(self) -> int:
        return self.chain_pair.l1_chain_id

    def send_raw_matrix_transaction(self, request: TransferRequest) -> SubmissionResult:
        return send_raw_matrix_transaction(self.client, self.l1_chain_id, self.account, request, self.sender, self.contract_overrides)

    def send_matrix_transaction(self, request: TransferRequest) -> HexBytes:
        return send_matrix_transaction(self.client, self.l1_chain_id, self.account, request, self.sender, self.contract_overrides)

    def write_matrix_contract(self, request: ContractWriteRequest) -> HexBytes:
        return write_matrix_contract(self.client, self.l1_chain_id, self.account, request, self.sender, self.contract_overrides)

    def bridge_and_call(self, request: BridgeAndCallRequest) -> BridgeAndCallResult:
        return bridge_and_call(self.client, self.l1_chain_id, self.account, request, self.sender, self.contract_overrides)

    def get_matrix_transaction_hash_from_l1_hash(self, l1_transaction_hash: HexBytes | str) -> HexBytes:
        return get_matrix_transaction_hash_from_l1_hash(self.client, l1_transaction_hash, self.l1_chain_id, self.contract_overrides)
