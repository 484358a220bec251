"""Upgradeable BPF loader instructions a group may propose."""

import struct

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.sysvar import CLOCK, RENT

from .pda import find_program_address

BPF_LOADER_UPGRADEABLE = Pubkey.from_string("BPFLoaderUpgradeab1e11111111111111111111111")

# UpgradeableLoaderInstruction variant tags (u32)
UPGRADE = 3
SET_AUTHORITY = 4


def program_data_address(program: Pubkey) -> Pubkey:
    """ProgramData account holding the code and upgrade authority of ``program``."""
    return find_program_address([bytes(program)], BPF_LOADER_UPGRADEABLE)[0]


def upgrade_instruction(
    program: Pubkey,
    buffer: Pubkey,
    spill: Pubkey,
    authority: Pubkey,
) -> Instruction:
    """Replace ``program``'s code with the contents of ``buffer``; leftover rent goes to ``spill``."""
    return Instruction(
        BPF_LOADER_UPGRADEABLE,
        struct.pack("<I", UPGRADE),
        [
            AccountMeta(program_data_address(program), is_signer=False, is_writable=True),
            AccountMeta(program, is_signer=False, is_writable=True),
            AccountMeta(buffer, is_signer=False, is_writable=True),
            AccountMeta(spill, is_signer=False, is_writable=True),
            AccountMeta(RENT, is_signer=False, is_writable=False),
            AccountMeta(CLOCK, is_signer=False, is_writable=False),
            AccountMeta(authority, is_signer=True, is_writable=False),
        ],
    )


def set_upgrade_authority_instruction(
    program: Pubkey,
    current_authority: Pubkey,
    new_authority: Pubkey,
) -> Instruction:
    return Instruction(
        BPF_LOADER_UPGRADEABLE,
        struct.pack("<I", SET_AUTHORITY),
        [
            AccountMeta(program_data_address(program), is_signer=False, is_writable=True),
            AccountMeta(current_authority, is_signer=True, is_writable=False),
            AccountMeta(new_authority, is_signer=False, is_writable=False),
        ],
    )
