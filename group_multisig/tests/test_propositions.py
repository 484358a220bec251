import struct
import unittest
from unittest import TestCase, mock

from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID

from group_multisig import loader, propositions, tokens
from group_multisig.errors import UnsupportedProposition
from group_multisig.multisig import MultiSig

PROGRAM_ID = Pubkey.from_string("BPFLoaderUpgradeab1e11111111111111111111111")
ENDPOINT = "http://localhost:8899"


def key(n: int) -> Pubkey:
    return Pubkey(bytes([n]) * 32)


class TestBuildInstructions(TestCase):
    def setUp(self):
        self.multisig = MultiSig(key(200))
        self.protected = key(50)
        self.proposer = key(1)

    def build(self, proposition):
        return propositions.build_instructions(
            ENDPOINT, self.multisig, self.protected, self.proposer, proposition
        )

    def test_create(self):
        [ix] = self.build(propositions.Create(lamports=10))
        self.assertEqual(ix.program_id, SYSTEM_PROGRAM_ID)
        self.assertEqual(ix.accounts[0].pubkey, self.proposer)
        self.assertEqual(ix.accounts[1].pubkey, self.protected)

    def test_transfer(self):
        [ix] = self.build(propositions.Transfer(destination=key(3), amount=1_000_000))
        self.assertEqual(ix.program_id, SYSTEM_PROGRAM_ID)
        self.assertEqual(bytes(ix.data), struct.pack("<IQ", 2, 1_000_000))
        self.assertEqual(ix.accounts[0].pubkey, self.protected)
        self.assertTrue(ix.accounts[0].is_signer)

    def test_upgrade(self):
        [ix] = self.build(propositions.Upgrade(buffer=key(4), program=key(5)))
        self.assertEqual(ix.program_id, loader.BPF_LOADER_UPGRADEABLE)
        self.assertEqual(bytes(ix.data), b"\x03\x00\x00\x00")
        self.assertEqual(ix.accounts[0].pubkey, loader.program_data_address(key(5)))
        self.assertEqual(ix.accounts[1].pubkey, key(5))
        self.assertEqual(ix.accounts[2].pubkey, key(4))
        self.assertEqual(ix.accounts[3].pubkey, self.protected)
        self.assertEqual(ix.accounts[6].pubkey, self.protected)
        self.assertTrue(ix.accounts[6].is_signer)

    def test_upgrade_multisig_targets_own_program(self):
        [ix] = self.build(propositions.UpgradeMultisig(buffer=key(4)))
        self.assertEqual(ix.accounts[1].pubkey, self.multisig.program_id)

    def test_delegate_upgrade_authority(self):
        [ix] = self.build(propositions.DelegateUpgradeAuthority(target=key(5), new_authority=key(6)))
        self.assertEqual(bytes(ix.data), b"\x04\x00\x00\x00")
        self.assertEqual(
            [m.pubkey for m in ix.accounts],
            [loader.program_data_address(key(5)), self.protected, key(6)],
        )

    def test_program_data_address(self):
        expected, _ = Pubkey.find_program_address([bytes(key(5))], PROGRAM_ID)
        self.assertEqual(loader.program_data_address(key(5)), expected)

    def test_delegate_mint_authority(self):
        [ix] = self.build(propositions.DelegateMintAuthority(target=key(7), new_authority=key(8)))
        self.assertEqual(ix.program_id, tokens.TOKEN_PROGRAM_ID)
        self.assertEqual(bytes(ix.data), b"\x06\x00\x01" + bytes(key(8)))
        self.assertEqual(ix.accounts[1].pubkey, self.protected)

    def test_delegate_token_authority(self):
        [ix] = self.build(propositions.DelegateTokenAuthority(target=key(7), new_authority=key(8)))
        self.assertEqual(bytes(ix.data), b"\x06\x02\x01" + bytes(key(8)))

    def test_mint_to(self):
        [ix] = self.build(propositions.MintTo(mint=key(9), destination=key(10), amount=1_000_000_000))
        self.assertEqual(bytes(ix.data), struct.pack("<BQ", 7, 1_000_000_000))
        self.assertEqual([m.pubkey for m in ix.accounts], [key(9), key(10), self.protected])

    def test_transfer_token(self):
        [ix] = self.build(propositions.TransferToken(source=key(11), destination=key(12), amount=5))
        self.assertEqual(bytes(ix.data), struct.pack("<BQ", 3, 5))
        self.assertEqual(ix.accounts[2].pubkey, self.protected)
        self.assertTrue(ix.accounts[2].is_signer)

    @mock.patch("group_multisig.tokens.rpc.get_minimum_balance_for_rent_exemption")
    def test_create_token_account(self, mock_rent):
        mock_rent.return_value = 2_039_280
        create, initialize = self.build(propositions.CreateTokenAccount(mint=key(9), seed="example"))

        mock_rent.assert_called_once_with(ENDPOINT, tokens.TOKEN_ACCOUNT_SPAN)
        token_account = Pubkey.create_with_seed(self.protected, "example", tokens.TOKEN_PROGRAM_ID)
        self.assertEqual(create.program_id, SYSTEM_PROGRAM_ID)
        self.assertIn(token_account, [m.pubkey for m in create.accounts])
        self.assertEqual(initialize.program_id, tokens.TOKEN_PROGRAM_ID)
        self.assertEqual(
            [m.pubkey for m in initialize.accounts][:3],
            [token_account, key(9), self.protected],
        )

    def test_unsupported(self):
        with self.assertRaises(UnsupportedProposition):
            self.build(object())


if __name__ == "__main__":
    unittest.main()
