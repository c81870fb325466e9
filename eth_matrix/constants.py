"""Matrix deposit protocol constants.

Matrix is an L2 chain settled on BNB Smart Chain. L1 activity reaches L2 as
deposit transactions: plain L1 transactions to the Matrix inbox whose calldata
carries an RLP encoded, type-tagged L2 call.

- `Matrix mainnet explorer <https://explorer.matrixlabs.app>`__
- `Matrix testnet explorer <https://testnet.explorer.matrixlabs.app>`__
"""

from eth_typing import HexAddress, HexStr


#: Type tag prefixed to a deposit payload carried in L1 calldata (``0x46``, ASCII ``F``).
MATRIX_TX_TYPE = 0x46

#: Type tag prefixed to the canonical hash preimage.
#:
#: Not a transmittable transaction type, only used when deriving
#: the L2 transaction hash from an L1 deposit.
MATRIX_HASH_PREIMAGE_TYPE = 0x7D

#: Offset added to an L1 contract address when it acts as an L2 sender.
L1_TO_L2_ALIAS_OFFSET = 0x1111000000000000000000000000000000001111

#: Size of the address space the alias offset wraps around.
ADDRESS_MODULO = 2**160

#: Matrix inbox on BNB Smart Chain. Deposits are L1 transactions sent here.
MATRIX_INBOX_ADDRESS: HexAddress = HexAddress(HexStr("0x00000000000000000000000000000000000FacE7"))

#: L2 predeploy exposing ``fctMintRate()``.
L2_L1_BLOCK_CONTRACT: HexAddress = HexAddress(HexStr("0x4200000000000000000000000000000000000015"))

#: L2 wrapped native token predeploy, receives bridge-and-call deliveries.
L2_WETH_CONTRACT: HexAddress = HexAddress(HexStr("0x4200000000000000000000000000000000000006"))

#: L2 gas limit used by bridge-and-call.
#:
#: This path is over-provisioned instead of estimated.
BRIDGE_AND_CALL_GAS_LIMIT = 50_000_000

#: Balance override used when we only want to know whether a call can succeed at all.
UNLIMITED_BALANCE = 2**256 - 1

#: Calldata gas for a zero byte.
ZERO_BYTE_GAS = 4

#: Calldata gas for a non-zero byte.
NON_ZERO_BYTE_GAS = 16

#: Flat per-byte cost used when pricing bridge-and-call deposits.
BRIDGE_BYTE_COST = 8
