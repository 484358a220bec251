"""SPL token instructions a group may propose.

Token Program Instruction Layout:
- byte 0: instruction tag
- InitializeAccount (1): no payload
- Transfer (3): amount (u64)
- SetAuthority (6): authority type (u8), new authority (1 byte option + 32 bytes)
- MintTo (7): amount (u64)
"""

import logging
import struct

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.system_program import CreateAccountWithSeedParams, create_account_with_seed
from solders.sysvar import RENT

from . import rpc

TOKEN_PROGRAM_ID = Pubkey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")

# Size of an SPL token account
TOKEN_ACCOUNT_SPAN = 165

INITIALIZE_ACCOUNT = 1
TRANSFER = 3
SET_AUTHORITY = 6
MINT_TO = 7

# AuthorityType
MINT_TOKENS = 0
ACCOUNT_OWNER = 2


def initialize_account_instruction(account: Pubkey, mint: Pubkey, owner: Pubkey) -> Instruction:
    return Instruction(
        TOKEN_PROGRAM_ID,
        struct.pack("<B", INITIALIZE_ACCOUNT),
        [
            AccountMeta(account, is_signer=False, is_writable=True),
            AccountMeta(mint, is_signer=False, is_writable=False),
            AccountMeta(owner, is_signer=False, is_writable=False),
            AccountMeta(RENT, is_signer=False, is_writable=False),
        ],
    )


def transfer_instruction(source: Pubkey, destination: Pubkey, owner: Pubkey, amount: int) -> Instruction:
    return Instruction(
        TOKEN_PROGRAM_ID,
        struct.pack("<BQ", TRANSFER, amount),
        [
            AccountMeta(source, is_signer=False, is_writable=True),
            AccountMeta(destination, is_signer=False, is_writable=True),
            AccountMeta(owner, is_signer=True, is_writable=False),
        ],
    )


def mint_to_instruction(mint: Pubkey, destination: Pubkey, authority: Pubkey, amount: int) -> Instruction:
    return Instruction(
        TOKEN_PROGRAM_ID,
        struct.pack("<BQ", MINT_TO, amount),
        [
            AccountMeta(mint, is_signer=False, is_writable=True),
            AccountMeta(destination, is_signer=False, is_writable=True),
            AccountMeta(authority, is_signer=True, is_writable=False),
        ],
    )


def set_authority_instruction(
    target: Pubkey,
    new_authority: Pubkey,
    authority_type: int,
    current_authority: Pubkey,
) -> Instruction:
    data = struct.pack("<BBB", SET_AUTHORITY, authority_type, 1) + bytes(new_authority)
    return Instruction(
        TOKEN_PROGRAM_ID,
        data,
        [
            AccountMeta(target, is_signer=False, is_writable=True),
            AccountMeta(current_authority, is_signer=True, is_writable=False),
        ],
    )


def create_token_account(
    endpoint: str,
    protected_account: Pubkey,
    mint: Pubkey,
    seed: str,
) -> list[Instruction]:
    """Create and initialize a token account at an address seeded from the protected account.

    The protected account is both the base and the funder of the new account.
    """
    balance_needed = rpc.get_minimum_balance_for_rent_exemption(endpoint, TOKEN_ACCOUNT_SPAN)
    token_account = Pubkey.create_with_seed(protected_account, seed, TOKEN_PROGRAM_ID)
    logging.info(f"creating token account: {token_account}")

    create = create_account_with_seed(CreateAccountWithSeedParams(
        from_pubkey=protected_account,
        to_pubkey=token_account,
        base=protected_account,
        seed=seed,
        lamports=balance_needed,
        space=TOKEN_ACCOUNT_SPAN,
        owner=TOKEN_PROGRAM_ID,
    ))
    initialize = initialize_account_instruction(token_account, mint, protected_account)
    return [create, initialize]
