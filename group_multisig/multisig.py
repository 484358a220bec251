"""Instruction builders and account readers for the group multisig program."""

import logging
from typing import Optional

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID

from . import schema
from .errors import AlreadyExecutedOrClosed, DecodeError, OwnerMismatch, TypeMismatch
from .pda import SeedTag, derive, derive_from_key
from .types import (
    AccountInfo,
    AccountType,
    ApproveInstruction,
    GroupData,
    InitInstruction,
    ProposalConfig,
    ProposalData,
    ProposalState,
    ProposedAccountMeta,
    ProposedInstruction,
    ProposeInstruction,
    ProtectedAccountConfig,
)

# Account tag byte preceding every payload
ACCOUNT_TAG_SIZE = 1
# Length prefix the program reserves in front of a proposal payload
PROPOSAL_LENGTH_PREFIX_SIZE = 4


class MultiSig:
    """Stateless client for one deployment of the multisig program.

    Every method is a pure function of its arguments and the program id;
    nothing here talks to the network.
    """

    def __init__(self, program_id: Pubkey, system_program_id: Pubkey = SYSTEM_PROGRAM_ID):
        self.program_id = program_id
        self.system_program_id = system_program_id

    # -- address derivation ------------------------------------------------

    def group_account_key(self, group_data: GroupData) -> Pubkey:
        return derive(SeedTag.GROUP, schema.encode(group_data), self.program_id)

    def protected_account_key(self, group_account_key: Pubkey) -> Pubkey:
        return derive_from_key(SeedTag.PROTECTED, group_account_key, self.program_id)

    def proposal_account_key(self, config: ProposalConfig) -> Pubkey:
        return derive(SeedTag.PROPOSAL, schema.encode(config), self.program_id)

    # -- account sizing ----------------------------------------------------

    def group_account_space(self, group_data: GroupData) -> int:
        return len(schema.encode(group_data)) + ACCOUNT_TAG_SIZE

    def proposal_account_space(self, config: ProposalConfig) -> int:
        # ProposalState is fixed width, so placeholder values give the real size
        placeholder = ProposalData(config=config, state=ProposalState(members=1, current_weight=1))
        return len(schema.encode(placeholder)) + PROPOSAL_LENGTH_PREFIX_SIZE + ACCOUNT_TAG_SIZE

    def account_space(self, value) -> int:
        """Bytes to allocate for the account holding ``value``.

        Accepts group data, a proposal config, or the init/propose instruction
        that creates the account.
        """
        if isinstance(value, InitInstruction):
            value = value.group_data
        if isinstance(value, GroupData):
            return self.group_account_space(value)
        if isinstance(value, ProposeInstruction):
            # the group key is fixed width, any key gives the same size
            value = ProposalConfig(group=Pubkey.default(), instruction=value.instruction)
        if isinstance(value, ProposalConfig):
            return self.proposal_account_space(value)
        raise TypeError(f"no account is allocated for {type(value).__name__}")

    # -- account readers ---------------------------------------------------

    def _check_owner(self, info: AccountInfo) -> None:
        if info.owner != self.program_id:
            raise OwnerMismatch(self.program_id, info.owner)

    @staticmethod
    def _check_account_type(data: bytes, expected: AccountType) -> None:
        if len(data) == 0:
            raise DecodeError("account data is empty")
        if data[0] != expected:
            raise TypeMismatch(int(expected), data[0])

    def read_group_account_data(self, info: AccountInfo) -> GroupData:
        self._check_owner(info)
        self._check_account_type(info.data, AccountType.GROUP)
        return schema.decode_group_data(info.data[ACCOUNT_TAG_SIZE:], strict=False)

    def read_proposal_account_data(self, info: AccountInfo) -> ProposalData:
        self._check_owner(info)
        if not any(info.data[ACCOUNT_TAG_SIZE:]):
            raise AlreadyExecutedOrClosed("proposal data is zero (proposal may be complete)")
        self._check_account_type(info.data, AccountType.PROPOSAL)
        return schema.decode_proposal_data(info.data[ACCOUNT_TAG_SIZE:], strict=False)

    # -- instructions ------------------------------------------------------

    def _remap_accounts(
        self, accounts: tuple[ProposedAccountMeta, ...], protected_account_key: Pubkey
    ) -> list[AccountMeta]:
        # The protected account signs through the program, never with a key
        return [
            AccountMeta(
                pubkey=account.pubkey,
                is_signer=False if account.pubkey == protected_account_key else account.is_signer,
                is_writable=account.is_writable,
            )
            for account in accounts
        ]

    def init(
        self,
        group_data: GroupData,
        lamports: int,
        payer: Pubkey,
        protected_account_config: Optional[ProtectedAccountConfig] = None,
    ) -> Instruction:
        """Create the group account and its protected account."""
        data = InitInstruction(group_data, lamports, protected_account_config)
        group_account_key = self.group_account_key(group_data)
        protected_account_key = self.protected_account_key(group_account_key)
        logging.info(f"group account: {group_account_key}")
        logging.info(f"protected account: {protected_account_key}")

        return Instruction(
            self.program_id,
            schema.encode(data),
            [
                AccountMeta(payer, is_signer=True, is_writable=True),
                AccountMeta(group_account_key, is_signer=False, is_writable=True),
                AccountMeta(self.system_program_id, is_signer=False, is_writable=False),
                AccountMeta(protected_account_key, is_signer=False, is_writable=True),
            ],
        )

    def propose(
        self,
        instruction: ProposedInstruction,
        lamports: int,
        group_account_key: Pubkey,
        proposer: Pubkey,
    ) -> Instruction:
        """Create a proposal account for ``instruction`` and fund it with ``lamports``."""
        config = ProposalConfig(group=group_account_key, instruction=instruction)
        proposal_key = self.proposal_account_key(config)
        protected_account_key = self.protected_account_key(group_account_key)
        data = ProposeInstruction(instruction=instruction, lamports=lamports)

        return Instruction(
            self.program_id,
            schema.encode(data),
            [
                AccountMeta(proposer, is_signer=True, is_writable=True),
                AccountMeta(group_account_key, is_signer=False, is_writable=True),
                AccountMeta(proposal_key, is_signer=False, is_writable=True),
                AccountMeta(self.system_program_id, is_signer=False, is_writable=False),
                AccountMeta(instruction.program_id, is_signer=False, is_writable=False),
                *self._remap_accounts(instruction.accounts, protected_account_key),
            ],
        )

    def approve(
        self,
        proposal_account_key: Pubkey,
        config: ProposalConfig,
        approver: Pubkey,
    ) -> Instruction:
        """Add ``approver``'s weight to a proposal."""
        protected_account_key = self.protected_account_key(config.group)

        return Instruction(
            self.program_id,
            schema.encode(ApproveInstruction()),
            [
                AccountMeta(approver, is_signer=True, is_writable=True),
                AccountMeta(config.group, is_signer=False, is_writable=True),
                AccountMeta(proposal_account_key, is_signer=False, is_writable=True),
                AccountMeta(config.instruction.program_id, is_signer=False, is_writable=False),
                *self._remap_accounts(config.instruction.accounts, protected_account_key),
            ],
        )
