"""Type definitions for the group multisig client."""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional, Union

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey


class AccountType(IntEnum):
    """One-byte tag preceding every account payload owned by the program."""
    GROUP = 0
    PROPOSAL = 1


class InstructionTag(IntEnum):
    """Variant index of the instruction envelope."""
    INIT = 0
    PROPOSE = 1
    APPROVE = 2


@dataclass(frozen=True)
class GroupMember:
    """Group member and its approval weight."""
    public_key: Pubkey
    weight: int


@dataclass(frozen=True)
class GroupData:
    """Ordered membership and approval threshold. Member order is significant."""
    members: tuple[GroupMember, ...]
    threshold: int

    def __post_init__(self):
        # lists are accepted for convenience but stored as a tuple
        object.__setattr__(self, "members", tuple(self.members))


@dataclass(frozen=True)
class ProtectedAccountConfig:
    """Account the protected authority should own at initialization time."""
    lamports: int
    space: int
    owner: Pubkey


@dataclass(frozen=True)
class ProposedAccountMeta:
    pubkey: Pubkey
    is_signer: bool
    is_writable: bool


@dataclass(frozen=True)
class ProposedInstruction:
    """Program-agnostic description of an instruction the group wants to run."""
    program_id: Pubkey
    accounts: tuple[ProposedAccountMeta, ...]
    data: bytes

    def __post_init__(self):
        object.__setattr__(self, "accounts", tuple(self.accounts))
        object.__setattr__(self, "data", bytes(self.data))

    @classmethod
    def from_instruction(cls, instruction: Instruction) -> "ProposedInstruction":
        """Capture a solders instruction as a proposed instruction."""
        return cls(
            program_id=instruction.program_id,
            accounts=tuple(
                ProposedAccountMeta(meta.pubkey, meta.is_signer, meta.is_writable)
                for meta in instruction.accounts
            ),
            data=bytes(instruction.data),
        )

    def to_instruction(self) -> Instruction:
        """Convert back to a solders instruction, flags untouched."""
        return Instruction(
            self.program_id,
            self.data,
            [AccountMeta(a.pubkey, a.is_signer, a.is_writable) for a in self.accounts],
        )


@dataclass(frozen=True)
class ProposalConfig:
    """Group and instruction pair. Its canonical hash is the proposal identity."""
    group: Pubkey
    instruction: ProposedInstruction


@dataclass(frozen=True)
class ProposalState:
    """On-chain approval tally, read-only from the client."""
    members: int
    current_weight: int


@dataclass(frozen=True)
class ProposalData:
    config: ProposalConfig
    state: ProposalState


@dataclass(frozen=True)
class InitInstruction:
    group_data: GroupData
    lamports: int
    protected_account_config: Optional[ProtectedAccountConfig] = None


@dataclass(frozen=True)
class ProposeInstruction:
    instruction: ProposedInstruction
    lamports: int


@dataclass(frozen=True)
class ApproveInstruction:
    pass


InstructionData = Union[InitInstruction, ProposeInstruction, ApproveInstruction]


@dataclass(frozen=True)
class AccountInfo:
    """Raw account as returned by the node."""
    owner: Pubkey
    data: bytes
    lamports: int = 0
    executable: bool = False


@dataclass
class ProposalBatch:
    """Instructions for one transaction and the proposal keys they create, in order."""
    instructions: list[Instruction]
    proposal_keys: list[Pubkey]
    rent: list[int] = field(default_factory=list)
