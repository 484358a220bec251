"""High-level propositions and the instructions that carry them out."""

from dataclasses import dataclass
from enum import Enum
from typing import Union

from solders.instruction import Instruction
from solders.pubkey import Pubkey
from solders.system_program import (
    ID as SYSTEM_PROGRAM_ID,
    CreateAccountParams,
    TransferParams,
    create_account,
    transfer,
)

from . import loader, tokens
from .errors import UnsupportedProposition
from .multisig import MultiSig


class PropositionKind(Enum):
    CREATE = "create"
    TRANSFER = "transfer"
    UPGRADE = "upgrade"
    UPGRADE_MULTISIG = "upgrade-multisig"
    DELEGATE_UPGRADE_AUTHORITY = "delegate-upgrade-authority"
    DELEGATE_MINT_AUTHORITY = "delegate-mint-authority"
    DELEGATE_TOKEN_AUTHORITY = "delegate-token-authority"
    MINT_TO = "mint-to"
    CREATE_TOKEN_ACCOUNT = "create-token-account"
    TRANSFER_TOKEN = "transfer-token"


@dataclass(frozen=True)
class Create:
    lamports: int
    kind = PropositionKind.CREATE


@dataclass(frozen=True)
class Transfer:
    destination: Pubkey
    amount: int
    kind = PropositionKind.TRANSFER


@dataclass(frozen=True)
class Upgrade:
    buffer: Pubkey
    program: Pubkey
    kind = PropositionKind.UPGRADE


@dataclass(frozen=True)
class UpgradeMultisig:
    buffer: Pubkey
    kind = PropositionKind.UPGRADE_MULTISIG


@dataclass(frozen=True)
class DelegateUpgradeAuthority:
    target: Pubkey
    new_authority: Pubkey
    kind = PropositionKind.DELEGATE_UPGRADE_AUTHORITY


@dataclass(frozen=True)
class DelegateMintAuthority:
    target: Pubkey
    new_authority: Pubkey
    kind = PropositionKind.DELEGATE_MINT_AUTHORITY


@dataclass(frozen=True)
class DelegateTokenAuthority:
    target: Pubkey
    new_authority: Pubkey
    kind = PropositionKind.DELEGATE_TOKEN_AUTHORITY


@dataclass(frozen=True)
class MintTo:
    mint: Pubkey
    destination: Pubkey
    amount: int
    kind = PropositionKind.MINT_TO


@dataclass(frozen=True)
class CreateTokenAccount:
    mint: Pubkey
    seed: str
    kind = PropositionKind.CREATE_TOKEN_ACCOUNT


@dataclass(frozen=True)
class TransferToken:
    source: Pubkey
    destination: Pubkey
    amount: int
    kind = PropositionKind.TRANSFER_TOKEN


Proposition = Union[
    Create, Transfer, Upgrade, UpgradeMultisig, DelegateUpgradeAuthority,
    DelegateMintAuthority, DelegateTokenAuthority, MintTo, CreateTokenAccount, TransferToken,
]


def build_instructions(
    endpoint: str,
    multisig: MultiSig,
    protected_account: Pubkey,
    proposer: Pubkey,
    proposition: Proposition,
) -> list[Instruction]:
    """Translate a proposition into the instructions the protected account should run.

    Only CreateTokenAccount needs ``endpoint`` (for the token account rent).
    """
    if isinstance(proposition, Create):
        return [create_account(CreateAccountParams(
            from_pubkey=proposer,
            to_pubkey=protected_account,
            lamports=proposition.lamports,
            space=0,
            owner=SYSTEM_PROGRAM_ID,
        ))]
    if isinstance(proposition, Transfer):
        return [transfer(TransferParams(
            from_pubkey=protected_account,
            to_pubkey=proposition.destination,
            lamports=proposition.amount,
        ))]
    if isinstance(proposition, Upgrade):
        return [loader.upgrade_instruction(
            proposition.program, proposition.buffer, protected_account, protected_account,
        )]
    if isinstance(proposition, UpgradeMultisig):
        return [loader.upgrade_instruction(
            multisig.program_id, proposition.buffer, protected_account, protected_account,
        )]
    if isinstance(proposition, DelegateUpgradeAuthority):
        return [loader.set_upgrade_authority_instruction(
            proposition.target, protected_account, proposition.new_authority,
        )]
    if isinstance(proposition, DelegateTokenAuthority):
        return [tokens.set_authority_instruction(
            proposition.target, proposition.new_authority, tokens.ACCOUNT_OWNER, protected_account,
        )]
    if isinstance(proposition, DelegateMintAuthority):
        return [tokens.set_authority_instruction(
            proposition.target, proposition.new_authority, tokens.MINT_TOKENS, protected_account,
        )]
    if isinstance(proposition, MintTo):
        # Authority is implied to be the group's protected account
        return [tokens.mint_to_instruction(
            proposition.mint, proposition.destination, protected_account, proposition.amount,
        )]
    if isinstance(proposition, CreateTokenAccount):
        return tokens.create_token_account(endpoint, protected_account, proposition.mint, proposition.seed)
    if isinstance(proposition, TransferToken):
        return [tokens.transfer_instruction(
            proposition.source, proposition.destination, protected_account, proposition.amount,
        )]
    raise UnsupportedProposition(f"unsupported proposition: {proposition!r}")
