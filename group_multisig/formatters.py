"""Output formatters for group and proposal accounts."""

import json

import base58
from solders.pubkey import Pubkey

from .types import GroupData, ProposalBatch, ProposalData


def group_to_dict(address: Pubkey, protected: Pubkey, group: GroupData) -> dict:
    return {
        "address": str(address),
        "protected_account": str(protected),
        "threshold": group.threshold,
        "total_weight": sum(m.weight for m in group.members),
        "members": [
            {"public_key": str(m.public_key), "weight": m.weight}
            for m in group.members
        ],
    }


def proposal_to_dict(address: Pubkey, proposal: ProposalData) -> dict:
    instruction = proposal.config.instruction
    return {
        "address": str(address),
        "group": str(proposal.config.group),
        "instruction": {
            "program_id": str(instruction.program_id),
            "accounts": [
                {
                    "pubkey": str(a.pubkey),
                    "is_signer": a.is_signer,
                    "is_writable": a.is_writable,
                }
                for a in instruction.accounts
            ],
            "data": instruction.data.hex(),
        },
        "state": {
            "members": proposal.state.members,
            "current_weight": proposal.state.current_weight,
        },
    }


def format_group_table(address: Pubkey, protected: Pubkey, group: GroupData) -> str:
    """Format a group account as a table."""
    lines = []
    divider = "─" * 70
    total_weight = sum(m.weight for m in group.members)

    lines.append(divider)
    lines.append(f"GROUP: {address}")
    lines.append(divider)
    lines.append(f"Protected Account:  {protected}")
    lines.append(f"Threshold:          {group.threshold} of {total_weight} weight")
    lines.append(f"Member Count:       {len(group.members)}")
    lines.append("")
    lines.append("Members:")
    for member in group.members:
        lines.append(f"  {member.public_key}")
        lines.append(f"    Weight: {member.weight}")
    lines.append(divider)

    return "\n".join(lines)


def format_proposal_table(address: Pubkey, proposal: ProposalData) -> str:
    """Format a proposal account as a table."""
    lines = []
    divider = "─" * 70
    instruction = proposal.config.instruction

    lines.append(divider)
    lines.append(f"PROPOSAL: {address}")
    lines.append(divider)
    lines.append(f"Group:              {proposal.config.group}")
    lines.append(f"Current Weight:     {proposal.state.current_weight}")
    lines.append(f"Approved Members:   {proposal.state.members:#b}")
    lines.append("")
    lines.append("Proposed Instruction:")
    lines.append(f"  Program:          {instruction.program_id}")
    lines.append(f"  Data (base58):    {base58.b58encode(instruction.data).decode() or '(empty)'}")
    lines.append("  Accounts:")
    for account in instruction.accounts:
        flags = []
        if account.is_signer:
            flags.append("signer")
        if account.is_writable:
            flags.append("writable")
        lines.append(f"    {account.pubkey} [{', '.join(flags) or 'readonly'}]")
    lines.append(divider)

    return "\n".join(lines)


def format_group_json(address: Pubkey, protected: Pubkey, group: GroupData) -> str:
    return json.dumps(group_to_dict(address, protected, group), indent=2)


def format_proposal_json(address: Pubkey, proposal: ProposalData) -> str:
    return json.dumps(proposal_to_dict(address, proposal), indent=2)


def format_proposal_keys(keys: list[Pubkey]) -> str:
    """One line per created proposal account."""
    return "\n".join(f"proposal public key: {key}" for key in keys)


def format_batch_summary(batch: ProposalBatch) -> str:
    lines = [f"{len(batch.proposal_keys)} proposal(s):"]
    for key, rent in zip(batch.proposal_keys, batch.rent):
        lines.append(f"  {key}  rent: {rent} lamports")
    return "\n".join(lines)
