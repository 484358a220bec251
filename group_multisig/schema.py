"""Canonical binary layout of the values exchanged with the multisig program.

Layout rules:
- unsigned integers are little-endian (u8, u32, u64)
- 32-byte keys are written verbatim
- sequences carry a u32 element count followed by each element
- optional values carry a 1-byte presence flag (0 = absent, 1 = present)
- booleans are single bytes (0/1)
- the instruction envelope is a u32 variant index (Init=0, Propose=1,
  Approve=2) followed by the variant body

The same bytes are sent to the program and hashed to derive addresses, so
field order, widths and tag numbers must never change.
"""

import struct
from typing import Callable, Optional, TypeVar

from solders.pubkey import Pubkey

from .errors import DecodeError, EncodeError
from .types import (
    ApproveInstruction,
    GroupData,
    GroupMember,
    InitInstruction,
    InstructionData,
    InstructionTag,
    ProposalConfig,
    ProposalData,
    ProposalState,
    ProposedAccountMeta,
    ProposedInstruction,
    ProposeInstruction,
    ProtectedAccountConfig,
)

T = TypeVar("T")

PUBKEY_LENGTH = 32


class Writer:
    """Append-only byte buffer."""

    def __init__(self):
        self._buf = bytearray()

    def u8(self, value: int) -> "Writer":
        return self._pack("<B", value)

    def u32(self, value: int) -> "Writer":
        return self._pack("<I", value)

    def u64(self, value: int) -> "Writer":
        return self._pack("<Q", value)

    def boolean(self, value: bool) -> "Writer":
        return self.u8(1 if value else 0)

    def pubkey(self, value: Pubkey) -> "Writer":
        raw = bytes(value)
        if len(raw) != PUBKEY_LENGTH:
            raise EncodeError(f"public key must be {PUBKEY_LENGTH} bytes, got {len(raw)}")
        self._buf += raw
        return self

    def byte_vec(self, value: bytes) -> "Writer":
        self.u32(len(value))
        self._buf += value
        return self

    def _pack(self, fmt: str, value: int) -> "Writer":
        try:
            self._buf += struct.pack(fmt, value)
        except struct.error as e:
            raise EncodeError(f"cannot encode {value!r} as {fmt}: {e}") from e
        return self

    def getvalue(self) -> bytes:
        return bytes(self._buf)


class Reader:
    """Cursor over a byte buffer; every read checks for underflow."""

    def __init__(self, data: bytes, offset: int = 0):
        self.data = bytes(data)
        self.offset = offset

    def remaining(self) -> int:
        return len(self.data) - self.offset

    def take(self, n: int) -> bytes:
        if self.remaining() < n:
            raise DecodeError(
                f"buffer too short at offset {self.offset}: need {n}, have {self.remaining()}"
            )
        chunk = self.data[self.offset:self.offset + n]
        self.offset += n
        return chunk

    def u8(self) -> int:
        return self.take(1)[0]

    def u32(self) -> int:
        return struct.unpack("<I", self.take(4))[0]

    def u64(self) -> int:
        return struct.unpack("<Q", self.take(8))[0]

    def boolean(self) -> bool:
        return self.u8() != 0

    def pubkey(self) -> Pubkey:
        return Pubkey(self.take(PUBKEY_LENGTH))

    def byte_vec(self) -> bytes:
        return self.take(self.u32())

    def vec(self, read_item: Callable[["Reader"], T]) -> list[T]:
        count = self.u32()
        return [read_item(self) for _ in range(count)]

    def option(self, read_item: Callable[["Reader"], T]) -> Optional[T]:
        flag = self.u8()
        if flag == 0:
            return None
        if flag != 1:
            raise DecodeError(f"invalid option flag {flag} at offset {self.offset - 1}")
        return read_item(self)

    def finish(self) -> None:
        if self.remaining():
            raise DecodeError(f"{self.remaining()} unexpected trailing bytes")


# ---------------------------------------------------------------------------
# Writers
# ---------------------------------------------------------------------------


def write_group_member(w: Writer, member: GroupMember) -> None:
    w.pubkey(member.public_key).u32(member.weight)


def write_group_data(w: Writer, group: GroupData) -> None:
    w.u32(len(group.members))
    for member in group.members:
        write_group_member(w, member)
    w.u32(group.threshold)


def write_protected_account_config(w: Writer, config: ProtectedAccountConfig) -> None:
    w.u64(config.lamports).u64(config.space).pubkey(config.owner)


def write_account_meta(w: Writer, meta: ProposedAccountMeta) -> None:
    w.pubkey(meta.pubkey).boolean(meta.is_signer).boolean(meta.is_writable)


def write_proposed_instruction(w: Writer, instruction: ProposedInstruction) -> None:
    w.pubkey(instruction.program_id)
    w.u32(len(instruction.accounts))
    for meta in instruction.accounts:
        write_account_meta(w, meta)
    w.byte_vec(instruction.data)


def write_proposal_config(w: Writer, config: ProposalConfig) -> None:
    w.pubkey(config.group)
    write_proposed_instruction(w, config.instruction)


def write_proposal_state(w: Writer, state: ProposalState) -> None:
    w.u64(state.members).u32(state.current_weight)


def write_proposal_data(w: Writer, data: ProposalData) -> None:
    write_proposal_config(w, data.config)
    write_proposal_state(w, data.state)


def write_init_instruction(w: Writer, init: InitInstruction) -> None:
    write_group_data(w, init.group_data)
    w.u64(init.lamports)
    if init.protected_account_config is None:
        w.u8(0)
    else:
        w.u8(1)
        write_protected_account_config(w, init.protected_account_config)


def write_propose_instruction(w: Writer, propose: ProposeInstruction) -> None:
    write_proposed_instruction(w, propose.instruction)
    w.u64(propose.lamports)


def write_approve_instruction(w: Writer, approve: ApproveInstruction) -> None:
    pass


def write_instruction_data(w: Writer, instruction: InstructionData) -> None:
    if isinstance(instruction, InitInstruction):
        w.u32(InstructionTag.INIT)
        write_init_instruction(w, instruction)
    elif isinstance(instruction, ProposeInstruction):
        w.u32(InstructionTag.PROPOSE)
        write_propose_instruction(w, instruction)
    elif isinstance(instruction, ApproveInstruction):
        w.u32(InstructionTag.APPROVE)
        write_approve_instruction(w, instruction)
    else:
        raise EncodeError(f"unknown instruction variant: {type(instruction).__name__}")


_WRITERS = {
    GroupMember: write_group_member,
    GroupData: write_group_data,
    ProtectedAccountConfig: write_protected_account_config,
    ProposedAccountMeta: write_account_meta,
    ProposedInstruction: write_proposed_instruction,
    ProposalConfig: write_proposal_config,
    ProposalState: write_proposal_state,
    ProposalData: write_proposal_data,
    InitInstruction: write_instruction_data,
    ProposeInstruction: write_instruction_data,
    ApproveInstruction: write_instruction_data,
}


def encode(value) -> bytes:
    """Canonical encoding of any schema value.

    Instruction variants are wrapped in the tagged envelope.
    """
    try:
        write = _WRITERS[type(value)]
    except KeyError:
        raise EncodeError(f"no layout for {type(value).__name__}") from None
    w = Writer()
    write(w, value)
    return w.getvalue()


# ---------------------------------------------------------------------------
# Readers
# ---------------------------------------------------------------------------


def read_group_member(r: Reader) -> GroupMember:
    return GroupMember(public_key=r.pubkey(), weight=r.u32())


def read_group_data(r: Reader) -> GroupData:
    members = r.vec(read_group_member)
    return GroupData(members=tuple(members), threshold=r.u32())


def read_protected_account_config(r: Reader) -> ProtectedAccountConfig:
    return ProtectedAccountConfig(lamports=r.u64(), space=r.u64(), owner=r.pubkey())


def read_account_meta(r: Reader) -> ProposedAccountMeta:
    return ProposedAccountMeta(pubkey=r.pubkey(), is_signer=r.boolean(), is_writable=r.boolean())


def read_proposed_instruction(r: Reader) -> ProposedInstruction:
    program_id = r.pubkey()
    accounts = r.vec(read_account_meta)
    return ProposedInstruction(program_id=program_id, accounts=tuple(accounts), data=r.byte_vec())


def read_proposal_config(r: Reader) -> ProposalConfig:
    group = r.pubkey()
    return ProposalConfig(group=group, instruction=read_proposed_instruction(r))


def read_proposal_state(r: Reader) -> ProposalState:
    return ProposalState(members=r.u64(), current_weight=r.u32())


def read_proposal_data(r: Reader) -> ProposalData:
    config = read_proposal_config(r)
    return ProposalData(config=config, state=read_proposal_state(r))


def read_init_instruction(r: Reader) -> InitInstruction:
    group_data = read_group_data(r)
    lamports = r.u64()
    return InitInstruction(
        group_data=group_data,
        lamports=lamports,
        protected_account_config=r.option(read_protected_account_config),
    )


def read_propose_instruction(r: Reader) -> ProposeInstruction:
    instruction = read_proposed_instruction(r)
    return ProposeInstruction(instruction=instruction, lamports=r.u64())


def read_approve_instruction(r: Reader) -> ApproveInstruction:
    return ApproveInstruction()


_VARIANT_READERS = {
    InstructionTag.INIT: read_init_instruction,
    InstructionTag.PROPOSE: read_propose_instruction,
    InstructionTag.APPROVE: read_approve_instruction,
}


def read_instruction_data(r: Reader) -> InstructionData:
    tag = r.u32()
    try:
        read_variant = _VARIANT_READERS[InstructionTag(tag)]
    except ValueError:
        raise DecodeError(f"unknown instruction tag {tag}") from None
    return read_variant(r)


def _decode(read: Callable[[Reader], T], data: bytes, strict: bool) -> T:
    r = Reader(data)
    value = read(r)
    if strict:
        r.finish()
    return value


def decode_group_data(data: bytes, strict: bool = True) -> GroupData:
    return _decode(read_group_data, data, strict)


def decode_proposed_instruction(data: bytes, strict: bool = True) -> ProposedInstruction:
    return _decode(read_proposed_instruction, data, strict)


def decode_proposal_config(data: bytes, strict: bool = True) -> ProposalConfig:
    return _decode(read_proposal_config, data, strict)


def decode_proposal_data(data: bytes, strict: bool = True) -> ProposalData:
    return _decode(read_proposal_data, data, strict)


def decode_instruction_data(data: bytes) -> InstructionData:
    """Decode a tagged instruction envelope. Trailing bytes are rejected."""
    return _decode(read_instruction_data, data, strict=True)


_READERS = {
    GroupMember: read_group_member,
    GroupData: read_group_data,
    ProtectedAccountConfig: read_protected_account_config,
    ProposedAccountMeta: read_account_meta,
    ProposedInstruction: read_proposed_instruction,
    ProposalConfig: read_proposal_config,
    ProposalState: read_proposal_state,
    ProposalData: read_proposal_data,
}


def decode(data: bytes, shape: type, strict: bool = True):
    """Decode ``data`` as ``shape``. Instruction variants decode through the envelope."""
    if shape in (InitInstruction, ProposeInstruction, ApproveInstruction):
        value = decode_instruction_data(data)
        if not isinstance(value, shape):
            raise DecodeError(f"expected {shape.__name__}, got {type(value).__name__}")
        return value
    try:
        read = _READERS[shape]
    except KeyError:
        raise DecodeError(f"no layout for {shape.__name__}") from None
    return _decode(read, data, strict)
