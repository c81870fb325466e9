"""Canonical Matrix transaction hash.

Every deposit on L1 results in exactly one L2 transaction whose hash can be
computed offline from the L1 transaction alone. This lets wallets and indexers
find the L2 transaction without waiting for the L2 block.
"""

import rlp
from eth_typing import HexAddress
from eth_utils import keccak
from hexbytes import HexBytes

from eth_matrix.codec import encode_scalar, to_bytes
from eth_matrix.constants import MATRIX_HASH_PREIMAGE_TYPE


def get_matrix_transaction_hash_preimage(
    source_hash: HexBytes | bytes | str,
    from_: HexAddress | str,
    to: HexAddress | str | None,
    value: int,
    data: bytes | str,
    gas_limit: int,
) -> HexBytes:
    """Build the bytes that get hashed into the Matrix transaction hash.

    The two empty slots are reserved fields that are not used by deposits.
    """
    fields = [
        to_bytes(source_hash),
        to_bytes(from_),
        to_bytes(to),
        b"",
        encode_scalar(value),
        encode_scalar(gas_limit),
        b"",
        to_bytes(data),
    ]
    return HexBytes(bytes([MATRIX_HASH_PREIMAGE_TYPE]) + rlp.encode(fields))


def compute_matrix_transaction_hash(
    source_hash: HexBytes | bytes | str,
    from_: HexAddress | str,
    to: HexAddress | str | None,
    value: int,
    data: bytes | str,
    gas_limit: int,
    mint: int | None = None,
) -> HexBytes:
    """Compute the L2 transaction hash of a Matrix deposit.

    Example:

    .. code-block:: python

        matrix_tx_hash = compute_matrix_transaction_hash(
            l1_tx_hash,
            "0x1111111111111111111111111111111111111111",
            "0x2222222222222222222222222222222222222222",
            value=0,
            data=b"",
            gas_limit=21_000,
        )

    :param source_hash:
        Hash of the L1 transaction carrying the deposit

    :param from_:
        Effective L2 sender. For bridge-and-call this is the aliased bridge address.

    :param to:
        L2 recipient, ``None`` for contract creation

    :param value:
        Native value credited on L2

    :param data:
        L2 calldata

    :param gas_limit:
        L2 gas limit

    :param mint:
        Minted fee token amount.

        Accepted so call sites can pass everything they know about the deposit,
        but it is **not** part of the hash.

    :return:
        32 bytes keccak256
    """
    return HexBytes(keccak(get_matrix_transaction_hash_preimage(source_hash, from_, to, value, data, gas_limit)))
