"""L1 to L2 address aliasing."""

from web3 import Web3

from eth_matrix.aliasing import apply_l1_to_l2_alias, undo_l1_to_l2_alias


def test_alias_zero_address():
    assert apply_l1_to_l2_alias("0x0000000000000000000000000000000000000000") == "0x1111000000000000000000000000000000001111"


def test_alias_wraps_around():
    aliased = apply_l1_to_l2_alias("0xffffffffffffffffffffffffffffffffffffffff")
    assert aliased == Web3.to_checksum_address("0x1111000000000000000000000000000000001110")


def test_alias_is_checksummed():
    aliased = apply_l1_to_l2_alias("0x" + "ab" * 20)
    assert aliased == Web3.to_checksum_address(aliased)


def test_undo_alias():
    for address in ["0x" + "0b" * 20, "0xffffffffffffffffffffffffffffffffffffffff", "0x0000000000000000000000000000000000000000"]:
        assert undo_l1_to_l2_alias(apply_l1_to_l2_alias(address)) == Web3.to_checksum_address(address)


def test_apply_alias_after_undo():
    for address in ["0x1111000000000000000000000000000000001111", "0x0000000000000000000000000000000000000001"]:
        assert apply_l1_to_l2_alias(undo_l1_to_l2_alias(address)) == Web3.to_checksum_address(address)
