"""Exceptions raised by Matrix deposit pipelines.

All failures surface synchronously to the caller.
Nothing in this package retries on its own.
"""


class MatrixError(Exception):
    """Base class for all Matrix deposit errors."""

    #: Pipeline state the error was raised in, set by :py:mod:`eth_matrix.submit`
    state = None


class InvalidInput(MatrixError):
    """Bad or missing account, unsupported chain or missing contract addresses."""


class UnsupportedNetwork(InvalidInput):
    """The chain id does not belong to any configured L1/L2 chain pair."""


class SimulationFailed(MatrixError):
    """L2 gas estimation or trace dry run indicates the call reverts."""


class InsufficientFunds(SimulationFailed):
    """The call reverts when the sender holds only its real balance plus the minted amount."""


class DecodeError(MatrixError):
    """Calldata is not a well-formed Matrix deposit payload."""


class WrongDestination(DecodeError):
    """The L1 transaction was not sent to the Matrix inbox contract."""


class UpstreamFailure(MatrixError):
    """JSON-RPC node or wallet failed.

    The original exception is available as ``__cause__``.
    """
