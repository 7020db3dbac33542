"""Exception types for the yield vault.

The kernel reports expected rejections as stable string codes in
``StepResult.rejection``. Each code is the name of one class below;
``step_or_raise()`` and the controller shell raise the matching exception.
"""

from __future__ import annotations


class VaultError(Exception):
    """Base class for rejected vault operations."""

    code: str = "VaultError"

    def __init__(self, message: str = "") -> None:
        self.message = message or self.code
        super().__init__(self.message)


class NotOwner(VaultError):
    code = "NotOwner"


class ContractPaused(VaultError):
    code = "ContractPaused"


class NotPaused(VaultError):
    code = "NotPaused"


class UnsupportedAsset(VaultError):
    code = "UnsupportedAsset"


class InvalidAmount(VaultError):
    code = "InvalidAmount"


class InvalidAddress(VaultError):
    code = "InvalidAddress"


class NoBalance(VaultError):
    code = "NoBalance"


class InsufficientShares(VaultError):
    code = "InsufficientShares"


class InvalidIndex(VaultError):
    code = "InvalidIndex"


class ProtocolLimitReached(VaultError):
    code = "ProtocolLimitReached"


class DuplicateProtocol(VaultError):
    code = "DuplicateProtocol"


class TransferFailed(VaultError):
    code = "TransferFailed"


class AdapterFailure(VaultError):
    code = "AdapterFailure"


class Reentrancy(VaultError):
    code = "Reentrancy"


class VaultInvariantError(Exception):
    """Raised when a post-state violates one or more invariants."""

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")


ERRORS_BY_CODE: dict[str, type[VaultError]] = {
    cls.code: cls
    for cls in (
        NotOwner,
        ContractPaused,
        NotPaused,
        UnsupportedAsset,
        InvalidAmount,
        InvalidAddress,
        NoBalance,
        InsufficientShares,
        InvalidIndex,
        ProtocolLimitReached,
        DuplicateProtocol,
        TransferFailed,
        AdapterFailure,
        Reentrancy,
    )
}


def error_for(code: str, message: str = "") -> VaultError:
    """Build the exception for a rejection code (unknown codes map to VaultError)."""
    cls = ERRORS_BY_CODE.get(code)
    if cls is None:
        return VaultError(message or code)
    return cls(message)
