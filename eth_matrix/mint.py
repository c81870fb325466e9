"""Fee token mint economics.

Every Matrix deposit mints L2 fee tokens (FCT) to its sender. The amount is
the L1 calldata cost of the deposit payload multiplied by the mint rate
read from the L2 ``L1Block`` contract.

Two cost functions exist and they are priced differently on-chain:

- :py:func:`calculate_input_gas_cost` weights bytes by their content and prices
  deposits made through :py:mod:`eth_matrix.submit`

- :py:func:`calculate_bridge_input_cost` is a flat per-byte cost and prices
  deposits made through :py:mod:`eth_matrix.bridge`

Do not swap one for the other.

Quotes must always be computed from the exact bytes being broadcast.
The gas limit changes between estimates and with it the payload length.
"""

import logging
from dataclasses import dataclass
from typing import Callable

from eth_matrix.chain import ChainPair
from eth_matrix.constants import BRIDGE_BYTE_COST, NON_ZERO_BYTE_GAS, ZERO_BYTE_GAS
from eth_matrix.rpc import MatrixChainClient

logger = logging.getLogger(__name__)


#: Maps encoded payload bytes to an input cost
CostFunction = Callable[[bytes], int]


@dataclass(slots=True, frozen=True)
class MintQuote:
    """How many fee tokens a deposit mints.

    Valid only for the payload it was computed from and the moment the rate was read.
    """

    #: ``fctMintRate()`` at the time of the quote (uint128)
    rate: int

    #: Cost of the payload bytes
    input_cost: int

    #: ``input_cost * rate``
    amount: int

    def __repr__(self):
        return f"<MintQuote rate:{self.rate} input cost:{self.input_cost} amount:{self.amount}>"


def calculate_input_gas_cost(data: bytes) -> int:
    """Calldata gas of the payload.

    4 gas per zero byte, 16 gas per non-zero byte, like intrinsic calldata gas on L1.
    """
    zero_bytes = data.count(0)
    non_zero_bytes = len(data) - zero_bytes
    return zero_bytes * ZERO_BYTE_GAS + non_zero_bytes * NON_ZERO_BYTE_GAS


def calculate_bridge_input_cost(data: bytes) -> int:
    """Flat 8 per byte cost used by bridge-and-call deposits."""
    return len(data) * BRIDGE_BYTE_COST


def quote_mint(
    encoded: bytes,
    rate: int,
    cost_function: CostFunction = calculate_input_gas_cost,
) -> MintQuote:
    """Price an encoded deposit payload.

    :param encoded:
        The deposit payload bytes, exactly as they will be broadcast

    :param rate:
        Live mint rate, see :py:func:`fetch_mint_rate`

    :param cost_function:
        Which on-chain pricing rule applies to this kind of deposit
    """
    assert rate >= 0, f"Bad mint rate {rate}"
    input_cost = cost_function(bytes(encoded))
    return MintQuote(rate=rate, input_cost=input_cost, amount=input_cost * rate)


def fetch_mint_rate(client: MatrixChainClient, chain_pair: ChainPair) -> int:
    """Read the current FCT mint rate.

    The rate moves every L1 block, so never cache the result.

    :return:
        ``fctMintRate()`` of the pair's ``L1Block`` contract
    """
    rate = client.get_mint_rate(chain_pair.contracts.l1_block)
    logger.info("FCT mint rate on %s is %d", chain_pair.name, rate)
    return rate
