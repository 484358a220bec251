#!/usr/bin/env python3
"""CLI interface for the group multisig client."""

import logging
import sys
from functools import wraps
from typing import Optional

import click
import requests
from solders.pubkey import Pubkey

from . import propositions, proposals, rpc
from .config import DEFAULT_CONFIG_PATH, load_keypair, load_settings, mask_api_key
from .errors import AccountNotFound, MultisigError
from .formatters import (
    format_batch_summary,
    format_group_json,
    format_group_table,
    format_proposal_json,
    format_proposal_keys,
    format_proposal_table,
)
from .multisig import MultiSig
from .types import GroupData, GroupMember, ProtectedAccountConfig


class PubkeyType(click.ParamType):
    name = "pubkey"

    def convert(self, value, param, ctx):
        if isinstance(value, Pubkey):
            return value
        try:
            return Pubkey.from_string(value)
        except ValueError:
            self.fail(f"{value!r} is not a valid public key", param, ctx)


class MemberType(click.ParamType):
    """PUBKEY[:WEIGHT], weight defaults to 1."""
    name = "member"

    def convert(self, value, param, ctx):
        key, _, weight = value.partition(":")
        try:
            return GroupMember(Pubkey.from_string(key), int(weight) if weight else 1)
        except ValueError:
            self.fail(f"{value!r} is not PUBKEY[:WEIGHT]", param, ctx)


PUBKEY = PubkeyType()
MEMBER = MemberType()


class Context:
    def __init__(self, endpoint: str, program_id: Optional[Pubkey]):
        self.endpoint = endpoint
        self.program_id = program_id

    @property
    def multisig(self) -> MultiSig:
        if self.program_id is None:
            raise click.UsageError("program id not set: use --program-id or MULTISIG_PROGRAM_ID")
        return MultiSig(self.program_id)


def handle_errors(f):
    """Report package and transport errors as `Error: ...` and exit 1."""
    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except (MultisigError, requests.RequestException) as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)
    return wrapper


@click.group()
@click.version_option(version="1.0.0")
@click.option("-c", "--config", "config_path", default=DEFAULT_CONFIG_PATH, show_default=True,
              help="YAML config file")
@click.option("-r", "--rpc", help="RPC endpoint URL")
@click.option("-p", "--program-id", type=PUBKEY, help="Multisig program id")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
@click.pass_context
def cli(ctx, config_path: str, rpc: Optional[str], program_id: Optional[Pubkey], verbose: bool):
    """Create groups, propose and approve instructions for a group multisig."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[logging.StreamHandler()],
    )
    settings = load_settings(config_path)
    ctx.obj = Context(
        endpoint=rpc or settings.rpc_url,
        program_id=program_id or settings.program_id,
    )
    logging.debug(f"Using RPC: {mask_api_key(ctx.obj.endpoint)}")


@cli.command()
@click.option("-m", "--member", "members", type=MEMBER, multiple=True, required=True,
              help="Member as PUBKEY[:WEIGHT], in order")
@click.option("-t", "--threshold", type=int, required=True, help="Approval weight threshold")
@click.pass_obj
@handle_errors
def derive(obj: Context, members, threshold: int):
    """Print the group and protected addresses for a membership, offline."""
    group_data = GroupData(members=members, threshold=threshold)
    multisig = obj.multisig
    group = multisig.group_account_key(group_data)
    click.echo(f"group: {group}")
    click.echo(f"protected: {multisig.protected_account_key(group)}")
    click.echo(f"space: {multisig.group_account_space(group_data)}")


@cli.command()
@click.option("-k", "--key", required=True, type=click.Path(exists=True), help="Payer keyfile")
@click.option("-m", "--member", "members", type=MEMBER, multiple=True, required=True,
              help="Member as PUBKEY[:WEIGHT], in order")
@click.option("-t", "--threshold", type=int, required=True, help="Approval weight threshold")
@click.option("-l", "--lamports", type=int, default=0, show_default=True,
              help="Lamports for the protected account")
@click.option("--protected-lamports", type=int, help="Balance of an extra account the protected account owns")
@click.option("--protected-space", type=int, help="Space of that account")
@click.option("--protected-owner", type=PUBKEY, help="Owner program of that account")
@click.pass_obj
@handle_errors
def init(obj: Context, key: str, members, threshold: int, lamports: int,
         protected_lamports: Optional[int], protected_space: Optional[int],
         protected_owner: Optional[Pubkey]):
    """Create a group and its protected account."""
    protected_config = None
    if protected_owner is not None:
        protected_config = ProtectedAccountConfig(
            lamports=protected_lamports or 0,
            space=protected_space or 0,
            owner=protected_owner,
        )
    payer = load_keypair(key)
    group, protected = proposals.create_group(
        obj.endpoint, obj.multisig, payer,
        GroupData(members=members, threshold=threshold), lamports, protected_config,
    )
    click.echo(f"group: {group}")
    click.echo(f"protected: {protected}")


@cli.group()
def propose():
    """Propose an instruction for the group's protected account."""


def proposal_command(name: str, help_text: str):
    """Register a propose subcommand taking --group, --key and --dry-run."""
    def decorator(build):
        @propose.command(name, help=help_text)
        @click.option("-g", "--group", required=True, type=PUBKEY, help="Group account")
        @click.option("-k", "--key", required=True, type=click.Path(exists=True), help="Proposer keyfile")
        @click.option("--dry-run", is_flag=True, help="Print the proposals without sending")
        @click.pass_obj
        @handle_errors
        def command(obj: Context, group: Pubkey, key: str, dry_run: bool, **kwargs):
            proposition = build(**kwargs)
            signer = load_keypair(key)
            multisig = obj.multisig
            if dry_run:
                protected = multisig.protected_account_key(group)
                instructions = propositions.build_instructions(
                    obj.endpoint, multisig, protected, signer.pubkey(), proposition
                )
                batch = proposals.build_propose_batch(
                    obj.endpoint, multisig, signer.pubkey(), group, instructions
                )
                click.echo(format_batch_summary(batch))
                return
            keys = proposals.create_proposal(obj.endpoint, multisig, group, signer, proposition)
            click.echo(format_proposal_keys(keys))
        return command
    return decorator


@click.option("-l", "--lamports", type=int, required=True)
@proposal_command("create", "Create the protected account, funded by the proposer.")
def propose_create(lamports):
    return propositions.Create(lamports=lamports)


@click.option("-d", "--destination", type=PUBKEY, required=True)
@click.option("-a", "--amount", type=int, required=True, help="Lamports")
@proposal_command("transfer", "Transfer lamports out of the protected account.")
def propose_transfer(destination, amount):
    return propositions.Transfer(destination=destination, amount=amount)


@click.option("-b", "--buffer", type=PUBKEY, required=True)
@click.option("--program", type=PUBKEY, required=True)
@proposal_command("upgrade", "Upgrade a program owned by the protected account.")
def propose_upgrade(buffer, program):
    return propositions.Upgrade(buffer=buffer, program=program)


@click.option("-b", "--buffer", type=PUBKEY, required=True)
@proposal_command("upgrade-multisig", "Upgrade the multisig program itself.")
def propose_upgrade_multisig(buffer):
    return propositions.UpgradeMultisig(buffer=buffer)


@click.option("--target", type=PUBKEY, required=True, help="Program")
@click.option("--new-authority", type=PUBKEY, required=True)
@proposal_command("delegate-upgrade-authority", "Hand a program's upgrade authority to another key.")
def propose_delegate_upgrade_authority(target, new_authority):
    return propositions.DelegateUpgradeAuthority(target=target, new_authority=new_authority)


@click.option("--target", type=PUBKEY, required=True, help="Mint")
@click.option("--new-authority", type=PUBKEY, required=True)
@proposal_command("delegate-mint-authority", "Hand a mint's minting authority to another key.")
def propose_delegate_mint_authority(target, new_authority):
    return propositions.DelegateMintAuthority(target=target, new_authority=new_authority)


@click.option("--target", type=PUBKEY, required=True, help="Token account")
@click.option("--new-authority", type=PUBKEY, required=True)
@proposal_command("delegate-token-authority", "Hand a token account's ownership to another key.")
def propose_delegate_token_authority(target, new_authority):
    return propositions.DelegateTokenAuthority(target=target, new_authority=new_authority)


@click.option("--mint", type=PUBKEY, required=True)
@click.option("-d", "--destination", type=PUBKEY, required=True)
@click.option("-a", "--amount", type=int, required=True)
@proposal_command("mint-to", "Mint tokens with the protected account as mint authority.")
def propose_mint_to(mint, destination, amount):
    return propositions.MintTo(mint=mint, destination=destination, amount=amount)


@click.option("--mint", type=PUBKEY, required=True)
@click.option("-s", "--seed", required=True)
@proposal_command("create-token-account", "Create a token account owned by the protected account.")
def propose_create_token_account(mint, seed):
    return propositions.CreateTokenAccount(mint=mint, seed=seed)


@click.option("--source", type=PUBKEY, required=True)
@click.option("-d", "--destination", type=PUBKEY, required=True)
@click.option("-a", "--amount", type=int, required=True)
@proposal_command("transfer-token", "Transfer tokens out of a token account the protected account owns.")
def propose_transfer_token(source, destination, amount):
    return propositions.TransferToken(source=source, destination=destination, amount=amount)


@cli.command()
@click.option("-k", "--key", required=True, type=click.Path(exists=True), help="Approver keyfile")
@click.option("-P", "--proposal", "proposal_keys", type=PUBKEY, multiple=True, required=True,
              help="Proposal account (repeatable; all approved in one transaction)")
@click.option("--skip-executed", is_flag=True, help="Skip proposals that were already executed")
@click.pass_obj
@handle_errors
def approve(obj: Context, key: str, proposal_keys, skip_executed: bool):
    """Approve one or more proposals."""
    signer = load_keypair(key)
    signature = proposals.create_multi_approve(
        obj.endpoint, obj.multisig, signer, list(proposal_keys), skip_executed
    )
    if signature:
        click.echo(f"signature: {signature}")


def _fetch(obj: Context, address: Pubkey):
    info = rpc.get_account_info(obj.endpoint, address)
    if info is None:
        raise AccountNotFound(address)
    return info


@cli.command("show-group")
@click.argument("address", type=PUBKEY)
@click.option("-f", "--format", type=click.Choice(["table", "json"]), default="table", help="Output format")
@click.pass_obj
@handle_errors
def show_group(obj: Context, address: Pubkey, format: str):
    """Decode a group account."""
    multisig = obj.multisig
    group = multisig.read_group_account_data(_fetch(obj, address))
    protected = multisig.protected_account_key(address)
    if format == "json":
        click.echo(format_group_json(address, protected, group))
    else:
        click.echo(format_group_table(address, protected, group))


@cli.command("show-proposal")
@click.argument("address", type=PUBKEY)
@click.option("-f", "--format", type=click.Choice(["table", "json"]), default="table", help="Output format")
@click.pass_obj
@handle_errors
def show_proposal(obj: Context, address: Pubkey, format: str):
    """Decode a proposal account."""
    proposal = obj.multisig.read_proposal_account_data(_fetch(obj, address))
    if format == "json":
        click.echo(format_proposal_json(address, proposal))
    else:
        click.echo(format_proposal_table(address, proposal))


def main():
    cli()


if __name__ == "__main__":
    main()
