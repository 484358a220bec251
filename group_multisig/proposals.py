"""Proposal and approval workflows built on the MultiSig client."""

import logging
from typing import Optional, Sequence

from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from . import rpc
from .errors import AccountNotFound, AlreadyExecutedOrClosed
from .multisig import MultiSig
from .propositions import Proposition, build_instructions
from .types import GroupData, ProposalBatch, ProposalConfig, ProposedInstruction, ProtectedAccountConfig


def create_group(
    endpoint: str,
    multisig: MultiSig,
    payer: Keypair,
    group_data: GroupData,
    lamports: int,
    protected_account_config: Optional[ProtectedAccountConfig] = None,
) -> tuple[Pubkey, Pubkey]:
    """Initialize a group on chain. Returns (group account, protected account)."""
    instruction = multisig.init(group_data, lamports, payer.pubkey(), protected_account_config)
    rpc.send_and_confirm(endpoint, [instruction], [payer])
    group_account = multisig.group_account_key(group_data)
    return group_account, multisig.protected_account_key(group_account)


def build_propose_batch(
    endpoint: str,
    multisig: MultiSig,
    proposer: Pubkey,
    group_account: Pubkey,
    instructions: Sequence[Instruction],
) -> ProposalBatch:
    """One propose instruction per proposed instruction, each funded for rent exemption."""
    batch = ProposalBatch(instructions=[], proposal_keys=[])
    for instruction in instructions:
        proposed = ProposedInstruction.from_instruction(instruction)
        config = ProposalConfig(group=group_account, instruction=proposed)
        proposal_key = multisig.proposal_account_key(config)

        rent = rpc.get_minimum_balance_for_rent_exemption(
            endpoint, multisig.proposal_account_space(config)
        )
        batch.instructions.append(multisig.propose(proposed, rent, group_account, proposer))
        batch.proposal_keys.append(proposal_key)
        batch.rent.append(rent)
    return batch


def propose_multi(
    endpoint: str,
    multisig: MultiSig,
    signer: Keypair,
    group_account: Pubkey,
    instructions: Sequence[Instruction],
) -> list[Pubkey]:
    """Propose every instruction in a single transaction."""
    batch = build_propose_batch(endpoint, multisig, signer.pubkey(), group_account, instructions)
    rpc.send_and_confirm(endpoint, batch.instructions, [signer])
    logging.info("created proposal accounts:")
    for proposal_key in batch.proposal_keys:
        logging.info(f"\tkey: {proposal_key}")
    return batch.proposal_keys


def create_proposal(
    endpoint: str,
    multisig: MultiSig,
    group_account: Pubkey,
    signer: Keypair,
    proposition: Proposition,
) -> list[Pubkey]:
    protected_account = multisig.protected_account_key(group_account)
    instructions = build_instructions(endpoint, multisig, protected_account, signer.pubkey(), proposition)
    return propose_multi(endpoint, multisig, signer, group_account, instructions)


def build_approve_batch(
    endpoint: str,
    multisig: MultiSig,
    approver: Pubkey,
    proposals: Sequence[Pubkey],
    skip_executed: bool = False,
) -> list[Instruction]:
    """One approve instruction per proposal, after reading and validating each account.

    With ``skip_executed`` proposals whose data is zeroed are logged and left
    out; otherwise AlreadyExecutedOrClosed propagates.
    """
    instructions = []
    for proposal in proposals:
        info = rpc.get_account_info(endpoint, proposal)
        if info is None:
            raise AccountNotFound(proposal)

        try:
            proposal_data = multisig.read_proposal_account_data(info)
        except AlreadyExecutedOrClosed:
            if not skip_executed:
                raise
            logging.warning(f"skipping proposal {proposal}: already executed or closed")
            continue

        group_account = proposal_data.config.group
        logging.info(f"group account: {group_account}")
        logging.info(f"protected account: {multisig.protected_account_key(group_account)}")
        instructions.append(multisig.approve(proposal, proposal_data.config, approver))
    return instructions


def create_multi_approve(
    endpoint: str,
    multisig: MultiSig,
    signer: Keypair,
    proposals: Sequence[Pubkey],
    skip_executed: bool = False,
) -> Optional[str]:
    """Approve all proposals in one transaction; returns the signature, or None if nothing to send."""
    logging.info(f"signing with account {signer.pubkey()}")
    instructions = build_approve_batch(endpoint, multisig, signer.pubkey(), proposals, skip_executed)
    if not instructions:
        logging.warning("no proposals left to approve")
        return None
    return rpc.send_and_confirm(endpoint, instructions, [signer])


def create_approve(endpoint: str, multisig: MultiSig, signer: Keypair, proposal: Pubkey) -> Optional[str]:
    return create_multi_approve(endpoint, multisig, signer, [proposal])
