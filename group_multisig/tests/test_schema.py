import struct
import unittest
from unittest import TestCase

from solders.pubkey import Pubkey

from group_multisig import schema
from group_multisig.errors import DecodeError, EncodeError
from group_multisig.types import (
    ApproveInstruction,
    GroupData,
    GroupMember,
    InitInstruction,
    ProposalConfig,
    ProposalData,
    ProposalState,
    ProposedAccountMeta,
    ProposedInstruction,
    ProposeInstruction,
    ProtectedAccountConfig,
)


def key(n: int) -> Pubkey:
    return Pubkey(bytes([n]) * 32)


def sample_instruction() -> ProposedInstruction:
    return ProposedInstruction(
        program_id=key(9),
        accounts=[
            ProposedAccountMeta(key(3), is_signer=True, is_writable=True),
            ProposedAccountMeta(key(4), is_signer=False, is_writable=True),
        ],
        data=b"\x02\x00\x00\x00\x40\x42\x0f\x00\x00\x00\x00\x00",
    )


class TestKnownLayouts(TestCase):
    def test_group_data(self):
        group = GroupData(members=[GroupMember(key(1), 1), GroupMember(key(2), 7)], threshold=2)
        expected = (
            b"\x02\x00\x00\x00"
            + b"\x01" * 32 + b"\x01\x00\x00\x00"
            + b"\x02" * 32 + b"\x07\x00\x00\x00"
            + b"\x02\x00\x00\x00"
        )
        self.assertEqual(schema.encode(group), expected)

    def test_empty_group(self):
        self.assertEqual(schema.encode(GroupData(members=[], threshold=0)), b"\x00" * 8)

    def test_account_meta_flags_are_bytes(self):
        meta = ProposedAccountMeta(key(5), is_signer=True, is_writable=False)
        self.assertEqual(schema.encode(meta), b"\x05" * 32 + b"\x01\x00")

    def test_proposed_instruction(self):
        instruction = ProposedInstruction(
            program_id=key(9),
            accounts=[ProposedAccountMeta(key(3), False, True)],
            data=b"\xaa\xbb",
        )
        expected = (
            b"\x09" * 32
            + b"\x01\x00\x00\x00" + b"\x03" * 32 + b"\x00\x01"
            + b"\x02\x00\x00\x00" + b"\xaa\xbb"
        )
        self.assertEqual(schema.encode(instruction), expected)

    def test_proposal_config_prefixes_group(self):
        config = ProposalConfig(group=key(8), instruction=sample_instruction())
        encoded = schema.encode(config)
        self.assertEqual(encoded[:32], bytes(key(8)))
        self.assertEqual(encoded[32:], schema.encode(sample_instruction()))

    def test_proposal_state(self):
        state = ProposalState(members=0b101, current_weight=3)
        self.assertEqual(schema.encode(state), struct.pack("<QI", 5, 3))

    def test_protected_account_config(self):
        config = ProtectedAccountConfig(lamports=1_000, space=165, owner=key(6))
        self.assertEqual(schema.encode(config), struct.pack("<QQ", 1_000, 165) + b"\x06" * 32)


class TestInstructionEnvelope(TestCase):
    def setUp(self):
        self.group = GroupData(members=[GroupMember(key(1), 1)], threshold=1)

    def test_approve_is_tag_only(self):
        self.assertEqual(schema.encode(ApproveInstruction()), b"\x02\x00\x00\x00")

    def test_init_without_protected_config(self):
        encoded = schema.encode(InitInstruction(self.group, lamports=500))
        expected = (
            b"\x00\x00\x00\x00"
            + schema.encode(self.group)
            + struct.pack("<Q", 500)
            + b"\x00"
        )
        self.assertEqual(encoded, expected)

    def test_init_with_protected_config(self):
        config = ProtectedAccountConfig(lamports=10, space=20, owner=key(6))
        encoded = schema.encode(InitInstruction(self.group, lamports=500, protected_account_config=config))
        self.assertEqual(encoded[-(1 + 48):-48], b"\x01")
        self.assertEqual(encoded[-48:], schema.encode(config))

    def test_propose(self):
        encoded = schema.encode(ProposeInstruction(sample_instruction(), lamports=2_039_280))
        expected = (
            b"\x01\x00\x00\x00"
            + schema.encode(sample_instruction())
            + struct.pack("<Q", 2_039_280)
        )
        self.assertEqual(encoded, expected)

    def test_decode_variants(self):
        init = InitInstruction(self.group, 1, ProtectedAccountConfig(2, 3, key(4)))
        propose = ProposeInstruction(sample_instruction(), 42)
        for value in (init, propose, ApproveInstruction()):
            self.assertEqual(schema.decode_instruction_data(schema.encode(value)), value)

    def test_unknown_tag(self):
        with self.assertRaises(DecodeError):
            schema.decode_instruction_data(b"\x03\x00\x00\x00")

    def test_trailing_bytes_rejected(self):
        with self.assertRaises(DecodeError):
            schema.decode_instruction_data(b"\x02\x00\x00\x00\x00")

    def test_decode_expected_variant(self):
        with self.assertRaises(DecodeError):
            schema.decode(schema.encode(ApproveInstruction()), InitInstruction)


class TestRoundTrip(TestCase):
    def test_values(self):
        values = [
            GroupData(members=[], threshold=0),
            GroupData(members=[GroupMember(key(1), 0), GroupMember(key(2), 2**32 - 1)], threshold=5),
            ProposedInstruction(program_id=key(1), accounts=[], data=b""),
            sample_instruction(),
            ProposalConfig(group=key(8), instruction=sample_instruction()),
            ProposalData(
                config=ProposalConfig(group=key(8), instruction=sample_instruction()),
                state=ProposalState(members=2**64 - 1, current_weight=0),
            ),
            ProtectedAccountConfig(lamports=0, space=0, owner=key(0)),
            GroupMember(key(7), 3),
            ProposedAccountMeta(key(5), is_signer=True, is_writable=False),
            ProposedAccountMeta(key(5), is_signer=False, is_writable=True),
            ProposalState(members=0, current_weight=2**32 - 1),
            InitInstruction(GroupData(members=[GroupMember(key(1), 1)], threshold=1), 0, None),
            InitInstruction(
                GroupData(members=[], threshold=0), 7, ProtectedAccountConfig(1, 2, key(3))
            ),
            ProposeInstruction(sample_instruction(), 0),
            ApproveInstruction(),
        ]
        for value in values:
            with self.subTest(value=value):
                self.assertEqual(schema.decode(schema.encode(value), type(value)), value)

    def test_lists_and_tuples_compare_equal(self):
        a = GroupData(members=[GroupMember(key(1), 1)], threshold=1)
        b = GroupData(members=(GroupMember(key(1), 1),), threshold=1)
        self.assertEqual(a, b)
        self.assertEqual(schema.encode(a), schema.encode(b))


class TestDecodeErrors(TestCase):
    def test_truncated(self):
        encoded = schema.encode(GroupData(members=[GroupMember(key(1), 1)], threshold=1))
        for cut in (0, 3, 20, len(encoded) - 1):
            with self.subTest(cut=cut):
                with self.assertRaises(DecodeError):
                    schema.decode_group_data(encoded[:cut])

    def test_length_prefix_past_end(self):
        # claims 5 members, carries none
        with self.assertRaises(DecodeError):
            schema.decode_group_data(b"\x05\x00\x00\x00\x01\x00\x00\x00")

    def test_invalid_option_flag(self):
        group = GroupData(members=[], threshold=1)
        data = b"\x00\x00\x00\x00" + schema.encode(group) + struct.pack("<Q", 0) + b"\x02"
        with self.assertRaises(DecodeError):
            schema.decode_instruction_data(data)

    def test_lenient_decode_allows_padding(self):
        group = GroupData(members=[GroupMember(key(1), 3)], threshold=3)
        padded = schema.encode(group) + b"\x00" * 4
        self.assertEqual(schema.decode_group_data(padded, strict=False), group)
        with self.assertRaises(DecodeError):
            schema.decode_group_data(padded)


class TestEncodeErrors(TestCase):
    def test_weight_out_of_range(self):
        with self.assertRaises(EncodeError):
            schema.encode(GroupData(members=[GroupMember(key(1), 2**32)], threshold=1))

    def test_negative_lamports(self):
        with self.assertRaises(EncodeError):
            schema.encode(ProposeInstruction(sample_instruction(), lamports=-1))

    def test_short_key_rejected(self):
        for width in (31, 33):
            with self.subTest(width=width):
                with self.assertRaises(EncodeError):
                    schema.encode(GroupMember(b"\x01" * width, 1))

    def test_unknown_type(self):
        with self.assertRaises(EncodeError):
            schema.encode("not a schema value")


if __name__ == "__main__":
    unittest.main()
