"""Matrix deposit payload encoding and decoding.

A deposit payload is the calldata of an L1 transaction sent to the Matrix inbox:
a single type byte :py:data:`~eth_matrix.constants.MATRIX_TX_TYPE` followed by an RLP list.

There are two formats and they are *not* inverses of each other:

- :py:class:`SubmissionEncoding` is what a client builds before broadcasting:
  ``[chain_id, to, value, gas_limit, data, mine_boost]``

- :py:class:`MinedEncoding` is how calldata already captured on-chain is interpreted:
  ``[l2_chain_id, to, value, gas_limit, data, mint_amount]``

The first five fields share positions. The sixth field is opaque ``mine_boost``
bytes on the way in and is read back as the realized mint amount.

In RLP, numeric zero and the empty byte string are the same thing,
so ``value=0`` and an absent value encode identically.
"""

import logging
from dataclasses import dataclass

import rlp
from eth_typing import HexAddress
from eth_utils import to_checksum_address
from hexbytes import HexBytes
from rlp.exceptions import DecodingError

from eth_matrix.constants import MATRIX_TX_TYPE
from eth_matrix.errors import DecodeError

logger = logging.getLogger(__name__)


def encode_scalar(value: int | None) -> bytes:
    """Minimal big-endian representation, zero and ``None`` become ``b""``."""
    if not value:
        return b""
    if value < 0:
        raise ValueError(f"Negative values cannot be encoded: {value}")
    return value.to_bytes((value.bit_length() + 7) // 8, "big")


def decode_scalar(value: bytes) -> int:
    """Empty byte string decodes to ``0``."""
    return int.from_bytes(value, "big") if value else 0


def to_bytes(value: bytes | str | None) -> bytes:
    """Normalise hex strings, bytes and ``None`` to bytes."""
    if value is None:
        return b""
    return bytes(HexBytes(value))


@dataclass(slots=True, frozen=True)
class SubmissionEncoding:
    """A deposit as built by a client before it is broadcast on L1."""

    #: Matrix chain id the deposit is executed on
    chain_id: int

    #: L2 recipient, ``None`` for contract creation
    to: HexAddress | None

    #: Native value credited on L2
    value: int = 0

    #: L2 gas budget.
    #:
    #: Always the result of an L2 gas estimate in the default flow.
    gas_limit: int = 0

    #: L2 calldata
    data: bytes = b""

    #: Opaque bytes, only make the payload longer and thus raise the mint amount
    mine_boost: bytes = b""

    def as_rlp_list(self) -> list[bytes]:
        return [
            encode_scalar(self.chain_id),
            to_bytes(self.to),
            encode_scalar(self.value),
            encode_scalar(self.gas_limit),
            to_bytes(self.data),
            to_bytes(self.mine_boost),
        ]

    def encode(self) -> HexBytes:
        """See :py:func:`encode_submission_transaction`."""
        return encode_submission_transaction(self)


@dataclass(slots=True, frozen=True)
class MinedEncoding:
    """A deposit decoded from L1 calldata that is already on-chain."""

    l2_chain_id: int

    to: HexAddress | None

    value: int

    gas_limit: int

    data: HexBytes

    #: Realized mint amount recorded with the deposit
    mint_amount: int


def encode_submission_transaction(payload: SubmissionEncoding) -> HexBytes:
    """Serialise a deposit into L1 calldata for the Matrix inbox.

    Example:

    .. code-block:: python

        payload = SubmissionEncoding(
            chain_id=0xBBBB1,
            to="0x2222222222222222222222222222222222222222",
            gas_limit=21_000,
        )
        calldata = encode_submission_transaction(payload)
        assert calldata[0] == 0x46

    :return:
        Type byte followed by the RLP encoded field list
    """
    encoded = HexBytes(bytes([MATRIX_TX_TYPE]) + rlp.encode(payload.as_rlp_list()))
    logger.debug("Encoded Matrix deposit %s: %s", payload, encoded.hex())
    return encoded


def decode_mined_transaction(calldata: bytes | str) -> MinedEncoding:
    """Decode Matrix inbox calldata captured from an L1 transaction.

    :param calldata:
        L1 transaction input, as bytes or ``0x`` prefixed hex

    :raise DecodeError:
        Calldata is too short, has the wrong type byte or is not an RLP list of at least six byte strings.
    """
    try:
        raw = HexBytes(calldata)
    except (ValueError, TypeError) as e:
        raise DecodeError(f"Invalid Matrix transaction calldata: {calldata!r}") from e

    if len(raw) < 2:
        raise DecodeError(f"Invalid Matrix transaction calldata: {raw.hex()}")

    if raw[0] != MATRIX_TX_TYPE:
        raise DecodeError(f"Not a Matrix deposit, type byte is {raw[0]:#04x}, expected {MATRIX_TX_TYPE:#04x}")

    try:
        decoded = rlp.decode(raw[1:])
    except DecodingError as e:
        raise DecodeError(f"Invalid RLP structure: {raw.hex()}") from e

    if not isinstance(decoded, (list, tuple)) or len(decoded) < 6:
        raise DecodeError(f"Invalid RLP structure, expected a list of at least 6 items: {raw.hex()}")

    if not all(isinstance(item, bytes) for item in decoded[:6]):
        raise DecodeError(f"Invalid RLP structure, nested lists in deposit fields: {raw.hex()}")

    chain_id, to, value, gas_limit, data, mint_amount = decoded[:6]

    if to and len(to) != 20:
        raise DecodeError(f"Invalid recipient address length {len(to)}: {to.hex()}")

    return MinedEncoding(
        l2_chain_id=decode_scalar(chain_id),
        to=to_checksum_address(to) if to else None,
        value=decode_scalar(value),
        gas_limit=decode_scalar(gas_limit),
        data=HexBytes(data),
        mint_amount=decode_scalar(mint_amount),
    )
