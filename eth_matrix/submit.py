"""Submit Matrix deposit transactions from L1.

A deposit goes through these states:

1. ``validating``: chain and account checks, no network access

2. ``estimating``: L2 gas estimate with an unlimited balance override.
   A revert here means the call itself is broken.

3. ``pricing``: read the L2 balance and the mint rate in parallel, encode
   the payload with the estimated gas limit and price it

4. ``reestimating``: L2 gas estimate again, now with only the real balance
   plus the freshly minted amount. A revert here means the mint does not
   cover the call and we must not broadcast.

5. ``submitting``: estimate L1 gas and hand the transaction to the sender

6. ``resolved``: derive the Matrix transaction hash

Any error before ``submitting`` aborts without broadcasting anything.
After the broadcast only the hash derivation remains and it cannot fail.

Example:

.. code-block:: python

    from eth_account import Account
    from eth_matrix.chain import MATRIX_TESTNET
    from eth_matrix.rpc import Web3ChainClient
    from eth_matrix.sender import HotWalletSender
    from eth_matrix.submit import TransferRequest, send_raw_matrix_transaction

    client = Web3ChainClient.create(MATRIX_TESTNET)
    account = Account.from_key(os.environ["PRIVATE_KEY"])
    sender = HotWalletSender(client.l1_web3, account)

    result = send_raw_matrix_transaction(
        client,
        97,
        account.address,
        TransferRequest(to="0x...", value=0, data=b""),
        sender,
    )
    print(f"L1 {result.l1_transaction_hash.to_0x_hex()} -> Matrix {result.matrix_transaction_hash.to_0x_hex()}")
"""

import dataclasses
import enum
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Sequence

from eth_abi.exceptions import EncodingError
from eth_typing import HexAddress
from hexbytes import HexBytes
from web3 import Web3

from eth_matrix.abi import encode_with_signature
from eth_matrix.chain import ChainPair, get_chain_pair_by_l1_chain_id
from eth_matrix.codec import SubmissionEncoding, to_bytes
from eth_matrix.constants import UNLIMITED_BALANCE
from eth_matrix.errors import InsufficientFunds, InvalidInput, MatrixError, SimulationFailed, UpstreamFailure
from eth_matrix.mint import calculate_input_gas_cost, fetch_mint_rate, quote_mint
from eth_matrix.rpc import MatrixChainClient
from eth_matrix.sender import L1Transaction, L1TransactionSender
from eth_matrix.tx_hash import compute_matrix_transaction_hash

logger = logging.getLogger(__name__)


class SubmissionState(enum.Enum):
    """Where a deposit submission is."""

    validating = "validating"
    estimating = "estimating"
    pricing = "pricing"
    reestimating = "reestimating"
    submitting = "submitting"
    resolved = "resolved"
    failed = "failed"


@dataclass(slots=True, frozen=True)
class TransferRequest:
    """A plain L2 call: value transfer, raw calldata or both."""

    #: L2 recipient, ``None`` for contract creation
    to: HexAddress | None = None

    #: Native value to send on L2
    value: int = 0

    #: Raw L2 calldata
    data: bytes | str = b""

    #: Extra opaque bytes to increase the FCT mint amount
    mine_boost: bytes | str = b""


@dataclass(slots=True, frozen=True)
class ContractWriteRequest:
    """An L2 contract function call.

    Example:

    .. code-block:: python

        request = ContractWriteRequest(
            address=token_address,
            function_signature="transfer(address,uint256)",
            args=[receiver, 100 * 10**18],
        )
    """

    #: L2 contract
    address: HexAddress

    #: Solidity signature, e.g. ``setName(string)``
    function_signature: str

    #: Arguments matching the signature
    args: Sequence = ()

    #: Native value to send on L2
    value: int = 0

    #: Bytes appended after the ABI encoded call, e.g. attribution tags
    data_suffix: bytes | str = b""

    #: Extra opaque bytes to increase the FCT mint amount
    mine_boost: bytes | str = b""

    def encode_call(self) -> HexBytes:
        return HexBytes(encode_with_signature(self.function_signature, list(self.args)) + to_bytes(self.data_suffix))

    def as_transfer_request(self) -> TransferRequest:
        return TransferRequest(
            to=self.address,
            value=self.value,
            data=self.encode_call(),
            mine_boost=self.mine_boost,
        )


@dataclass(slots=True, frozen=True)
class SubmissionResult:
    """Outcome of a broadcast deposit."""

    #: L1 transaction carrying the deposit
    l1_transaction_hash: HexBytes

    #: The resulting L2 transaction
    matrix_transaction_hash: HexBytes

    #: FCT minted to the sender by this deposit
    mint_amount: int

    #: Mint rate the amount was priced at
    mint_rate: int

    #: L2 gas limit encoded in the deposit
    gas_limit: int

    def __repr__(self):
        return f"<SubmissionResult L1:{self.l1_transaction_hash.to_0x_hex()} Matrix:{self.matrix_transaction_hash.to_0x_hex()} mint:{self.mint_amount}>"


def _checksum(address: str, what: str) -> HexAddress:
    try:
        return Web3.to_checksum_address(address)
    except (ValueError, TypeError) as e:
        raise InvalidInput(f"Bad {what} address: {address}") from e


def validate_value(value: int | None, what: str = "value") -> int:
    """Check a native value fits uint256.

    :raise InvalidInput:
        Not an integer, negative or too large
    """
    if value is None:
        return 0
    if type(value) is not int or not 0 <= value <= UNLIMITED_BALANCE:
        raise InvalidInput(f"Bad {what}: {value!r}, must be an integer between 0 and 2**256 - 1")
    return value


def decode_hex_field(value: bytes | str | None, what: str) -> bytes:
    """Decode a bytes or hex field of a request.

    :raise InvalidInput:
        Not valid hex
    """
    try:
        return to_bytes(value)
    except (ValueError, TypeError) as e:
        raise InvalidInput(f"Bad {what}: {value!r}") from e


def _transition(current: SubmissionState, new: SubmissionState) -> SubmissionState:
    logger.info("Matrix deposit %s -> %s", current.value, new.value)
    return new


def fetch_balance_and_mint_rate(
    client: MatrixChainClient,
    chain_pair: ChainPair,
    account: HexAddress,
) -> tuple[int, int]:
    """Read the L2 balance and the mint rate in parallel.

    :return:
        Tuple (balance, mint rate)
    """
    with ThreadPoolExecutor(max_workers=2) as executor:
        balance_future = executor.submit(client.get_l2_balance, account)
        rate_future = executor.submit(fetch_mint_rate, client, chain_pair)
        return balance_future.result(), rate_future.result()


def broadcast_l1_transaction(sender: L1TransactionSender, tx: L1Transaction) -> HexBytes:
    """Hand the transaction to the sender.

    :raise UpstreamFailure:
        Any wallet or broadcast error
    """
    try:
        return HexBytes(sender.send_l1_transaction(tx))
    except MatrixError:
        raise
    except Exception as e:
        raise UpstreamFailure(f"Broadcasting L1 transaction failed with {sender}: {e}") from e


def send_raw_matrix_transaction(
    client: MatrixChainClient,
    l1_chain_id: int,
    account: HexAddress | str | None,
    params: TransferRequest,
    sender: L1TransactionSender,
    contract_overrides: dict | None = None,
) -> SubmissionResult:
    """Simulate, price, broadcast and resolve a Matrix deposit.

    :param client:
        Chain access, see :py:class:`eth_matrix.rpc.Web3ChainClient`

    :param l1_chain_id:
        56 for BNB Smart Chain mainnet, 97 for testnet

    :param account:
        L1 account sending the deposit. Also the L2 sender.

    :param params:
        The L2 call

    :param sender:
        Signs and broadcasts the L1 transaction

    :param contract_overrides:
        Replace default contract addresses, see :py:meth:`eth_matrix.chain.ContractAddresses.merge`

    :raise InvalidInput:
        Unknown L1 chain or no account

    :raise SimulationFailed:
        The L2 call reverts even with unlimited balance

    :raise InsufficientFunds:
        The L2 call reverts with the sender's balance plus the minted amount

    :raise UpstreamFailure:
        Node or wallet error
    """
    state = SubmissionState.validating
    try:
        chain_pair = get_chain_pair_by_l1_chain_id(l1_chain_id).with_overrides(contract_overrides)

        if not account:
            raise InvalidInput("No account")

        account = _checksum(account, "account")
        to = _checksum(params.to, "recipient") if params.to else None
        value = validate_value(params.value)
        data = decode_hex_field(params.data, "data")
        mine_boost = decode_hex_field(params.mine_boost, "mine boost")

        state = _transition(state, SubmissionState.estimating)
        gas_limit = client.estimate_l2_gas(account, to, value, data, UNLIMITED_BALANCE)

        state = _transition(state, SubmissionState.pricing)
        balance, mint_rate = fetch_balance_and_mint_rate(client, chain_pair, account)

        payload = SubmissionEncoding(
            chain_id=chain_pair.l2_chain_id,
            to=to,
            value=value,
            gas_limit=gas_limit,
            data=data,
            mine_boost=mine_boost,
        )
        encoded = payload.encode()
        quote = quote_mint(encoded, mint_rate, calculate_input_gas_cost)
        logger.info("Deposit of %d bytes, gas limit %d, priced %s, L2 balance %d", len(encoded), gas_limit, quote, balance)

        state = _transition(state, SubmissionState.reestimating)
        try:
            client.estimate_l2_gas(account, to, value, data, balance + quote.amount)
        except SimulationFailed as e:
            raise InsufficientFunds(f"Call reverts with balance {balance} + minted {quote.amount}: {e}") from e

        state = _transition(state, SubmissionState.submitting)
        l1_tx = L1Transaction(
            account=account,
            to=chain_pair.contracts.inbox,
            value=0,
            data=encoded,
            chain_id=chain_pair.l1_chain_id,
        )
        l1_tx = dataclasses.replace(l1_tx, gas=client.estimate_l1_gas(l1_tx))
        l1_transaction_hash = broadcast_l1_transaction(sender, l1_tx)

        state = _transition(state, SubmissionState.resolved)
        matrix_transaction_hash = compute_matrix_transaction_hash(
            l1_transaction_hash,
            account,
            to,
            value,
            data,
            gas_limit,
            quote.amount,
        )
    except MatrixError as e:
        e.state = state
        logger.warning("Matrix deposit %s -> %s: %s", state.value, SubmissionState.failed.value, e)
        raise

    result = SubmissionResult(
        l1_transaction_hash=l1_transaction_hash,
        matrix_transaction_hash=matrix_transaction_hash,
        mint_amount=quote.amount,
        mint_rate=mint_rate,
        gas_limit=gas_limit,
    )
    logger.info("Matrix deposit resolved %s", result)
    return result


def send_matrix_transaction(
    client: MatrixChainClient,
    l1_chain_id: int,
    account: HexAddress | str | None,
    request: TransferRequest,
    sender: L1TransactionSender,
    contract_overrides: dict | None = None,
) -> HexBytes:
    """Send an L2 transaction through a Matrix deposit.

    Same as :py:func:`send_raw_matrix_transaction`, but only return the Matrix transaction hash.
    """
    return send_raw_matrix_transaction(client, l1_chain_id, account, request, sender, contract_overrides).matrix_transaction_hash


def write_matrix_contract(
    client: MatrixChainClient,
    l1_chain_id: int,
    account: HexAddress | str | None,
    request: ContractWriteRequest,
    sender: L1TransactionSender,
    contract_overrides: dict | None = None,
) -> HexBytes:
    """Call an L2 contract function through a Matrix deposit.

    :return:
        Matrix transaction hash
    """
    logger.info("Writing %s.%s through Matrix deposit", request.address, request.function_signature)
    try:
        params = request.as_transfer_request()
    except (EncodingError, ValueError) as e:
        raise InvalidInput(f"Cannot encode {request.function_signature} with {request.args}: {e}") from e
    return send_raw_matrix_transaction(client, l1_chain_id, account, params, sender, contract_overrides).matrix_transaction_hash
