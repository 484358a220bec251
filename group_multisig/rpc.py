"""Minimal Solana JSON-RPC transport used by the orchestration layer."""

import base64
import logging
from typing import Optional, Sequence

import requests
from requests.adapters import HTTPAdapter
from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.transaction import Transaction
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential
from urllib3.util.retry import Retry

from .errors import RpcError
from .types import AccountInfo

DEFAULT_COMMITMENT = "confirmed"

# Create global session with pooling and retries
session = requests.Session()
session.headers.update({"User-Agent": "group-multisig/1.0"})

retry_cfg = Retry(total=5, backoff_factor=0.5,
                  status_forcelist=(429, 500, 502, 503, 504),
                  allowed_methods=frozenset(["GET", "POST"]))
adapter = HTTPAdapter(max_retries=retry_cfg, pool_connections=4, pool_maxsize=8)
session.mount("https://", adapter)
session.mount("http://", adapter)


class TransactionPending(RpcError):
    """Transaction has not reached the requested commitment yet."""


def rpc_request(endpoint: str, method: str, params: list):
    """Make a JSON-RPC request to Solana."""
    payload = {
        "jsonrpc": "2.0",
        "id": 1,
        "method": method,
        "params": params,
    }
    logging.debug(f"rpc {method} -> {endpoint}")
    response = session.post(endpoint, json=payload, timeout=30)
    response.raise_for_status()
    result = response.json()
    if "error" in result:
        raise RpcError(f"RPC error: {result['error']}")
    return result.get("result")


def decode_base64_account_data(data: list) -> bytes:
    """Decode base64 account data from RPC response."""
    if isinstance(data, list) and len(data) >= 1:
        return base64.b64decode(data[0])
    return b""


def get_account_info(
    endpoint: str, address: Pubkey, commitment: str = DEFAULT_COMMITMENT
) -> Optional[AccountInfo]:
    """Fetch an account, or None if it does not exist."""
    result = rpc_request(endpoint, "getAccountInfo", [
        str(address),
        {"encoding": "base64", "commitment": commitment}
    ])
    value = result.get("value") if result else None
    if value is None:
        return None
    return AccountInfo(
        owner=Pubkey.from_string(value["owner"]),
        data=decode_base64_account_data(value.get("data", [])),
        lamports=value.get("lamports", 0),
        executable=value.get("executable", False),
    )


def get_minimum_balance_for_rent_exemption(
    endpoint: str, space: int, commitment: str = DEFAULT_COMMITMENT
) -> int:
    return rpc_request(endpoint, "getMinimumBalanceForRentExemption", [
        space,
        {"commitment": commitment}
    ])


def get_latest_blockhash(endpoint: str, commitment: str = DEFAULT_COMMITMENT) -> Hash:
    result = rpc_request(endpoint, "getLatestBlockhash", [{"commitment": commitment}])
    return Hash.from_string(result["value"]["blockhash"])


def send_transaction(endpoint: str, transaction: Transaction, commitment: str = DEFAULT_COMMITMENT) -> str:
    """Submit a signed transaction, returning its signature."""
    encoded = base64.b64encode(bytes(transaction)).decode()
    return rpc_request(endpoint, "sendTransaction", [
        encoded,
        {"encoding": "base64", "preflightCommitment": commitment}
    ])


_COMMITMENT_LEVELS = {"processed": 0, "confirmed": 1, "finalized": 2}


@retry(
    retry=retry_if_exception_type(TransactionPending),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
    stop=stop_after_attempt(30),
    reraise=True,
)
def confirm_transaction(endpoint: str, signature: str, commitment: str = DEFAULT_COMMITMENT) -> dict:
    """Poll until ``signature`` reaches ``commitment``; raise RpcError if it failed."""
    result = rpc_request(endpoint, "getSignatureStatuses", [[signature]])
    status = (result or {}).get("value", [None])[0]
    if status is None:
        raise TransactionPending(f"transaction {signature} not yet seen")
    if status.get("err"):
        raise RpcError(f"transaction {signature} failed: {status['err']}")
    reached = _COMMITMENT_LEVELS.get(status.get("confirmationStatus"), -1)
    if reached < _COMMITMENT_LEVELS.get(commitment, 1):
        raise TransactionPending(f"transaction {signature} at {status.get('confirmationStatus')}")
    return status


def send_and_confirm(
    endpoint: str,
    instructions: Sequence[Instruction],
    signers: Sequence[Keypair],
    commitment: str = DEFAULT_COMMITMENT,
) -> str:
    """Sign ``instructions`` into one transaction paid by ``signers[0]`` and wait for it."""
    blockhash = get_latest_blockhash(endpoint, commitment)
    transaction = Transaction.new_signed_with_payer(
        list(instructions), signers[0].pubkey(), list(signers), blockhash
    )
    signature = send_transaction(endpoint, transaction, commitment)
    logging.info(f"submitted transaction {signature}")
    confirm_transaction(endpoint, signature, commitment)
    return signature
