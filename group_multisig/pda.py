"""Program-derived address computation.

Addresses are derived the way the chain's runtime derives them: bump seeds
are tried from 255 down to 1 and the first one that yields an address off
the ed25519 curve wins. Each candidate comes from
``Pubkey.create_program_address``.
"""

import hashlib
import logging
from enum import IntEnum
from typing import Sequence

from solders.errors import PubkeyError
from solders.pubkey import Pubkey

from .errors import DerivationError, DerivationExhausted


class SeedTag(IntEnum):
    """First seed byte for each address namespace."""
    GROUP = 0
    PROPOSAL = 1
    PROTECTED = 2

    def seed(self) -> bytes:
        return bytes([self.value])


def digest(data: bytes) -> bytes:
    """SHA-256 of canonical bytes."""
    return hashlib.sha256(data).digest()


def create_program_address(seeds: Sequence[bytes], program_id: Pubkey) -> Pubkey:
    """Address for exactly these seeds; raises DerivationError if there is none."""
    try:
        return Pubkey.create_program_address(list(seeds), program_id)
    except PubkeyError as e:
        raise DerivationError(f"cannot derive address from seeds: {e}") from e


def find_program_address(seeds: Sequence[bytes], program_id: Pubkey) -> tuple[Pubkey, int]:
    """Search bump seeds from 255 down to 1 for an off-curve address."""
    seeds = [bytes(s) for s in seeds]
    last_error = None
    for bump in range(255, 0, -1):
        try:
            return create_program_address(seeds + [bytes([bump])], program_id), bump
        except DerivationError as e:
            last_error = e
    raise DerivationExhausted(f"no viable bump seed for program {program_id}: {last_error}")


def derive(tag: SeedTag, canonical_bytes: bytes, program_id: Pubkey) -> Pubkey:
    """Address for a canonical encoding in the namespace of ``tag``."""
    address, bump = find_program_address([tag.seed(), digest(canonical_bytes)], program_id)
    logging.debug(f"derived {tag.name.lower()} address {address} (bump {bump})")
    return address


def derive_from_key(tag: SeedTag, key: Pubkey, program_id: Pubkey) -> Pubkey:
    """Address seeded by a key used verbatim rather than hashed."""
    address, bump = find_program_address([tag.seed(), bytes(key)], program_id)
    logging.debug(f"derived {tag.name.lower()} address {address} (bump {bump})")
    return address
