"""Exceptions raised by the group multisig client."""


class MultisigError(Exception):
    """Base class for every error raised by this package."""


class EncodeError(MultisigError):
    """A value cannot be represented in the wire format (e.g. integer out of range)."""


class DecodeError(MultisigError):
    """Bytes are truncated, malformed, or carry an unknown variant tag."""


class OwnerMismatch(MultisigError):
    """Account is not owned by the multisig program."""

    def __init__(self, expected, actual):
        super().__init__(f"invalid account owner: expected {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class TypeMismatch(MultisigError):
    """Account type tag does not match the expected account kind."""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"invalid account type: expected tag {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class AlreadyExecutedOrClosed(MultisigError):
    """Proposal account data is zeroed; the proposal was executed or closed."""


class DerivationError(MultisigError):
    """Seeds are not acceptable for program address derivation."""


class DerivationExhausted(DerivationError):
    """No bump seed produced an off-curve program address."""


class UnsupportedProposition(MultisigError):
    """No instruction-building rule exists for the proposition kind."""


class AccountNotFound(MultisigError):
    """Account does not exist on chain."""

    def __init__(self, address):
        super().__init__(f"account not found: {address}")
        self.address = address


class RpcError(MultisigError):
    """JSON-RPC node returned an error or a transaction failed to confirm."""
