"""Runtime settings: program id, RPC endpoint and commitment."""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml
from solders.keypair import Keypair
from solders.pubkey import Pubkey

DEFAULT_CONFIG_PATH = "multisig.yaml"
DEFAULT_RPC_URL = "https://api.mainnet-beta.solana.com"


@dataclass
class Settings:
    program_id: Optional[Pubkey]
    rpc_url: str
    commitment: str = "confirmed"


def get_rpc_endpoint(configured: Optional[str] = None) -> str:
    """Get RPC endpoint from environment, then config, then the public default."""
    if api_key := os.environ.get("HELIUS_API_KEY"):
        return f"https://mainnet.helius-rpc.com/?api-key={api_key}"
    if rpc_url := os.environ.get("SOLANA_RPC_URL"):
        return rpc_url
    return configured or DEFAULT_RPC_URL


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> dict:
    """Read the YAML config file; a missing file yields an empty config."""
    path = Path(config_path)
    if not path.exists():
        logging.debug(f"no config file at {config_path}")
        return {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


def load_settings(config_path: str = DEFAULT_CONFIG_PATH) -> Settings:
    config = load_config(config_path)
    program_id = os.environ.get("MULTISIG_PROGRAM_ID") or config.get("program_id")
    return Settings(
        program_id=Pubkey.from_string(program_id) if program_id else None,
        rpc_url=get_rpc_endpoint(config.get("rpc_url")),
        commitment=os.environ.get("SOLANA_COMMITMENT") or config.get("commitment", "confirmed"),
    )


def load_keypair(path: str) -> Keypair:
    """Load a Solana CLI keyfile (JSON array of 64 integers)."""
    with open(os.path.expanduser(path)) as f:
        secret = json.load(f)
    return Keypair.from_bytes(bytes(secret))


def mask_api_key(url: str) -> str:
    """Mask API key in URL for display."""
    if "api-key=" in url:
        return url.split("api-key=")[0] + "api-key=***"
    return url
