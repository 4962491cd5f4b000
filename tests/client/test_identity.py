from unittest import TestCase
from parameterized import parameterized

import bittensor as bt

from roundtrip.client.identity import (
    InvalidPrivateKeyError,
    check_address,
    derive_address,
    normalize_address,
)

# Well known development account (//Alice).
ALICE_SEED = "0xe5be9a5092b81bca64be81d212e7f2f9eba183bb7a90954f7b76361f6edb5c0a"
ALICE_SS58 = "5GrwvaEF5zXb26Fz9rcQpDWS57CtERHpNehXCPcNoHGKutQY"
ALICE_PUBLIC_KEY = "d43593c715fdd31c61141abd04a99fd6822c8558854ccde39a5684e7a56da27d"


class TestNormalizeAddress(TestCase):
    def test_ss58_address(self):
        self.assertEqual(ALICE_PUBLIC_KEY, normalize_address(ALICE_SS58))

    @parameterized.expand(
        [
            ["0x" + ALICE_PUBLIC_KEY],
            ["0x" + ALICE_PUBLIC_KEY.upper()],
            ["0X" + ALICE_PUBLIC_KEY],
            ["  0x" + ALICE_PUBLIC_KEY + "  "],
        ]
    )
    def test_hex_public_key_is_case_normalized(self, address):
        self.assertEqual(ALICE_PUBLIC_KEY, normalize_address(address))

    def test_garbage_is_rejected(self):
        with self.assertRaises(ValueError):
            normalize_address("0xnothex")


class TestDeriveAddress(TestCase):
    @parameterized.expand(
        [
            ["not hex"],
            ["0x1234"],
            ["ab" * 33],
            [""],
        ]
    )
    def test_invalid_private_key(self, private_key):
        with self.assertRaises(InvalidPrivateKeyError):
            derive_address(private_key)

    def test_invalid_private_key_is_a_value_error(self):
        self.assertTrue(issubclass(InvalidPrivateKeyError, ValueError))

    def test_seed_is_deterministic(self):
        seed = "0x" + "42" * 32
        address = derive_address(seed)
        self.assertEqual(address, derive_address("42" * 32))
        self.assertEqual(32, len(bytes.fromhex(normalize_address(address))))


class TestDeriveKnownAddress(TestCase):
    @parameterized.expand(
        [
            [ALICE_SEED],
            [ALICE_SEED[2:]],
            [ALICE_SEED.upper().replace("0X", "0x")],
        ]
    )
    def test_alice_seed(self, seed):
        self.assertEqual(ALICE_SS58, derive_address(seed))

    def test_alice_expanded_private_key(self):
        private_key = bt.Keypair.create_from_seed(ALICE_SEED).private_key
        self.assertEqual(64, len(private_key))
        self.assertEqual(ALICE_SS58, derive_address(private_key.hex()))


class TestCheckAddress(TestCase):
    @parameterized.expand(
        [
            [ALICE_SS58],
            ["0x" + ALICE_PUBLIC_KEY],
            ["0x" + ALICE_PUBLIC_KEY.upper()],
        ]
    )
    def test_match_across_address_forms(self, expected_address):
        result = check_address(ALICE_SEED, expected_address)
        self.assertTrue(result.matches)
        self.assertEqual(ALICE_SS58, result.derived_address)

    def test_mismatch(self):
        result = check_address(ALICE_SEED, "0x" + "00" * 32)
        self.assertFalse(result.matches)

    def test_other_seed_does_not_match_alice(self):
        result = check_address("07" * 32, ALICE_SS58)
        self.assertFalse(result.matches)

    def test_undecodable_expected_address_never_matches(self):
        result = check_address(ALICE_SEED, "your address")
        self.assertFalse(result.matches)

    def test_derived_address_matches_itself(self):
        seed = "07" * 32
        result = check_address(seed, derive_address(seed))
        self.assertTrue(result.matches)
