"""eth_matrix package root.

Submit, price and resolve Matrix deposit transactions from BNB Smart Chain.

See :py:mod:`eth_matrix.submit`, :py:mod:`eth_matrix.bridge`
and :py:mod:`eth_matrix.resolve` for the entry points.
"""

import sys


#: Minimum required Python version to run this package
MIN_PYTHON_VERSION = (3, 10)


def _check_python_version():
    """Try early abort if the Python version is too old."""
    if sys.version_info < MIN_PYTHON_VERSION:
        raise RuntimeError(f"web3-matrix-deposit needs Python {MIN_PYTHON_VERSION[0]}.{MIN_PYTHON_VERSION[1]} or later")


_check_python_version()
