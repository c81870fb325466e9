"""L1 gas price filling for deposit transactions.

BNB Smart Chain blocks carry ``baseFeePerGas`` but many nodes and wallets
still price with legacy ``gasPrice``. We pick the method from the latest block.
"""

import enum
import logging
from dataclasses import dataclass

from web3 import Web3

logger = logging.getLogger(__name__)


class GasPriceMethod(enum.Enum):
    """How the gas price was determined."""

    #: ``gasPrice``
    legacy = "legacy"

    #: EIP-1559 ``maxFeePerGas`` and ``maxPriorityFeePerGas``
    london = "london"


@dataclass(slots=True)
class GasPriceSuggestion:
    """Gas price parameters for one transaction."""

    method: GasPriceMethod

    legacy_gas_price: int | None = None

    base_fee: int | None = None

    max_priority_fee_per_gas: int | None = None

    max_fee_per_gas: int | None = None

    def __repr__(self):
        return f"<Gas pricing method:{self.method.name} base:{self.base_fee} priority:{self.max_priority_fee_per_gas} max:{self.max_fee_per_gas} legacy:{self.legacy_gas_price}>"

    def get_tx_gas_params(self) -> dict:
        """Gas fields to merge into a transaction dict."""
        if self.method == GasPriceMethod.london:
            return {"maxPriorityFeePerGas": self.max_priority_fee_per_gas, "maxFeePerGas": self.max_fee_per_gas}
        return {"gasPrice": self.legacy_gas_price}


def estimate_gas_price(web3: Web3, method: GasPriceMethod | None = None) -> GasPriceSuggestion:
    """Suggest gas price for the next L1 transaction.

    :param method:
        Force a pricing method. Autodetected from the latest block if not given.
    """
    base_fee = web3.eth.get_block("latest").get("baseFeePerGas")

    if method is None:
        method = GasPriceMethod.london if base_fee is not None else GasPriceMethod.legacy

    if method == GasPriceMethod.legacy:
        return GasPriceSuggestion(method=method, legacy_gas_price=web3.eth.gas_price)

    max_priority_fee_per_gas = web3.eth.max_priority_fee
    max_fee_per_gas = max_priority_fee_per_gas + 2 * (base_fee or 0)
    return GasPriceSuggestion(
        method=method,
        base_fee=base_fee,
        max_priority_fee_per_gas=max_priority_fee_per_gas,
        max_fee_per_gas=max_fee_per_gas,
    )


def apply_gas(tx: dict, suggestion: GasPriceSuggestion) -> dict:
    """Apply gas price fields to a raw transaction dict in place.

    Any existing pricing fields are replaced.
    """
    for key in ("gasPrice", "maxFeePerGas", "maxPriorityFeePerGas"):
        tx.pop(key, None)
    tx.update(suggestion.get_tx_gas_params())
    logger.debug("Applied gas pricing %s", suggestion)
    return tx
