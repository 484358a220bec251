"""Group Multisig - client for a weighted threshold multisig program on Solana."""

from .errors import (
    MultisigError,
    EncodeError,
    DecodeError,
    OwnerMismatch,
    TypeMismatch,
    AlreadyExecutedOrClosed,
    DerivationError,
    DerivationExhausted,
    UnsupportedProposition,
    AccountNotFound,
    RpcError,
)
from .multisig import MultiSig
from .pda import SeedTag, derive, find_program_address
from .proposals import (
    create_group,
    build_propose_batch,
    propose_multi,
    create_proposal,
    build_approve_batch,
    create_approve,
    create_multi_approve,
)
from .schema import encode, decode
from .types import (
    AccountInfo,
    AccountType,
    GroupMember,
    GroupData,
    ProtectedAccountConfig,
    ProposedAccountMeta,
    ProposedInstruction,
    ProposalConfig,
    ProposalState,
    ProposalData,
    InitInstruction,
    ProposeInstruction,
    ApproveInstruction,
    ProposalBatch,
)

__version__ = "1.0.0"
__all__ = [
    "MultisigError",
    "EncodeError",
    "DecodeError",
    "OwnerMismatch",
    "TypeMismatch",
    "AlreadyExecutedOrClosed",
    "DerivationError",
    "DerivationExhausted",
    "UnsupportedProposition",
    "AccountNotFound",
    "RpcError",
    "MultiSig",
    "SeedTag",
    "derive",
    "find_program_address",
    "create_group",
    "build_propose_batch",
    "propose_multi",
    "create_proposal",
    "build_approve_batch",
    "create_approve",
    "create_multi_approve",
    "encode",
    "decode",
    "AccountInfo",
    "AccountType",
    "GroupMember",
    "GroupData",
    "ProtectedAccountConfig",
    "ProposedAccountMeta",
    "ProposedInstruction",
    "ProposalConfig",
    "ProposalState",
    "ProposalData",
    "InitInstruction",
    "ProposeInstruction",
    "ApproveInstruction",
    "ProposalBatch",
]
