"""ABI encoding helpers."""

from typing import Sequence

import eth_abi
from hexbytes import HexBytes
from web3 import Web3


def parse_signature_types(function_signature: str) -> list[str]:
    """Get argument types from a signature like ``transfer(address,uint256)``."""
    selector_text = function_signature[function_signature.find("(") + 1 : function_signature.rfind(")")]
    return [t.strip() for t in selector_text.split(",") if t.strip()]


def encode_with_signature(function_signature: str, args: Sequence) -> HexBytes:
    """Mimic Solidity's ``abi.encodeWithSignature()`` in Python.

    Example:

    .. code-block:: python

        payload = encode_with_signature("bridgeAndCall(address,uint256,address,bytes)", [user, value, target, b""])
        assert payload[0:4] == Web3.keccak(text="bridgeAndCall(address,uint256,address,bytes)")[0:4]

    :param function_signature:
        Solidity function signature that can be hashed to a selector.
        Argument types are parsed from it, so it must not contain spaces or argument names.

    :param args:
        Argument values to be encoded.
    """
    assert type(args) in (tuple, list), f"args must be a list or tuple, got {type(args)}"
    function_selector = Web3.keccak(text=function_signature)[0:4]
    arg_types = parse_signature_types(function_signature)
    if len(arg_types) != len(args):
        raise ValueError(f"{function_signature} takes {len(arg_types)} arguments, got {len(args)}")
    return HexBytes(function_selector + eth_abi.encode(arg_types, args))
