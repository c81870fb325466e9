"""L1 to L2 address aliasing.

When an L1 contract causes an L2 call, the L2 sees the contract under an
aliased address. Otherwise an L1 contract and an unrelated L2 account sharing
the same address would be indistinguishable on L2.

The transform is the OP Stack / Arbitrum one: add a fixed offset modulo
the 160-bit address space.

- `Address aliasing in the OP Stack <https://specs.optimism.io/protocol/deposits.html#address-aliasing>`__
"""

from eth_typing import HexAddress
from web3 import Web3

from eth_matrix.constants import ADDRESS_MODULO, L1_TO_L2_ALIAS_OFFSET


def _to_address(value: int) -> HexAddress:
    return Web3.to_checksum_address(f"0x{value:040x}")


def apply_l1_to_l2_alias(address: HexAddress | str) -> HexAddress:
    """Get the L2 sender address of an L1 contract.

    Example:

    .. code-block:: python

        aliased = apply_l1_to_l2_alias("0x0000000000000000000000000000000000000000")
        assert aliased == "0x1111000000000000000000000000000000001111"

    :param address:
        L1 contract address

    :return:
        Checksummed L2 address
    """
    return _to_address((int(address, 16) + L1_TO_L2_ALIAS_OFFSET) % ADDRESS_MODULO)


def undo_l1_to_l2_alias(address: HexAddress | str) -> HexAddress:
    """Reverse :py:func:`apply_l1_to_l2_alias`."""
    return _to_address((int(address, 16) - L1_TO_L2_ALIAS_OFFSET) % ADDRESS_MODULO)
