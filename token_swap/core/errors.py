"""Exception taxonomy for the token-swap engine.

Every failure the engine can report is a ``SwapError`` subclass carrying a
stable integer ``code``. Category bases let callers catch a whole family
(e.g. all account-binding failures) without enumerating members.

``integration.runtime.SwapRuntime.invoke`` converts these into failed
``ProcessResult`` values; ``invoke_or_raise`` lets them propagate.
"""

from __future__ import annotations

from typing import Dict, Optional, Type


class SwapError(Exception):
    """Base class for all token-swap failures."""

    code: int = -1

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = (self.__doc__ or type(self).__name__).strip()
        super().__init__(message)


# -- categories --------------------------------------------------------------


class StateError(SwapError):
    """Pool record is in the wrong lifecycle state."""


class AuthorizationError(SwapError):
    """Ownership, authority or signing relationship does not hold."""


class AccountBindingError(SwapError):
    """A supplied account does not match what the pool expects."""


class EconomicError(SwapError):
    """The requested operation is economically invalid."""


class MathError(SwapError):
    """Checked arithmetic failed."""


# -- state -------------------------------------------------------------------


class AlreadyInUse(StateError):
    """Swap account already in use"""

    code = 0


class InvalidState(StateError):
    """Swap account is not initialized or holds an unknown record version"""

    code = 1


# -- authorization -----------------------------------------------------------


class InvalidAuthority(AuthorizationError):
    """Supplied authority does not match the derived pool authority"""

    code = 2


class InvalidProgramAddress(InvalidAuthority):
    """Seeds do not derive a valid program address"""

    code = 3


class InvalidOwner(AuthorizationError):
    """Input account owner is not the program address"""

    code = 4


class InvalidOutputOwner(AuthorizationError):
    """Output pool account owner cannot be the program address"""

    code = 5


class InvalidDelegate(AuthorizationError):
    """Token account has a delegate"""

    code = 6


class InvalidCloseAuthority(AuthorizationError):
    """Token account has a close authority"""

    code = 7


class InvalidFreezeAuthority(AuthorizationError):
    """Pool token mint has a freeze authority"""

    code = 8


class IncorrectProgramId(AuthorizationError):
    """Swap account is not owned by this program"""

    code = 9


# -- account binding ---------------------------------------------------------


class ExpectedMint(AccountBindingError):
    """Deserialized account is not a token ledger mint"""

    code = 10


class ExpectedAccount(AccountBindingError):
    """Deserialized account is not a token ledger account"""

    code = 11


class InvalidInput(AccountBindingError):
    """InvalidInput"""

    code = 12


class IncorrectSwapAccount(AccountBindingError):
    """Address of the provided swap token account is incorrect"""

    code = 13


class IncorrectPoolMint(AccountBindingError):
    """Address of the provided pool token mint is incorrect"""

    code = 14


class IncorrectFeeAccount(AccountBindingError):
    """Pool fee token account incorrect"""

    code = 15


class IncorrectTokenLedgerProgram(AccountBindingError):
    """The provided token ledger program does not match the token ledger program expected by the swap"""

    code = 16


class RepeatedMint(AccountBindingError):
    """Swap input token accounts have the same mint"""

    code = 17


class IncorrectAccountCount(AccountBindingError):
    """Wrong number of accounts supplied for this instruction"""

    code = 18


class InvalidInstruction(AccountBindingError):
    """Invalid instruction"""

    code = 19


# -- economic ----------------------------------------------------------------


class ZeroTradingTokens(EconomicError):
    """Given pool token amount results in zero trading tokens"""

    code = 20


class ExceededSlippage(EconomicError):
    """Swap instruction exceeds desired slippage limit"""

    code = 21


class UnsupportedCurveOperation(EconomicError):
    """The operation cannot be performed on the given curve"""

    code = 22


class UnsupportedCurveType(EconomicError):
    """The provided curve type is not supported by the program owner"""

    code = 23


class InvalidCurve(EconomicError):
    """The provided curve parameters are invalid"""

    code = 24


class InvalidSupply(EconomicError):
    """Pool token mint has a non-zero supply"""

    code = 25


class EmptySupply(EconomicError):
    """Swap token account has no balance"""

    code = 26


class InvalidFee(EconomicError):
    """The provided fee does not match the program owner's constraints"""

    code = 27


# -- math --------------------------------------------------------------------


class CalculationFailure(MathError):
    """General calculation failure due to overflow or underflow"""

    code = 28


class ConversionFailure(MathError):
    """Conversion to or from u64 failed"""

    code = 29


class FeeCalculationFailure(MathError):
    """Fee calculation failed due to overflow, underflow, or unexpected 0"""

    code = 30


def _collect(base: Type[SwapError]) -> Dict[int, Type[SwapError]]:
    out: Dict[int, Type[SwapError]] = {}
    for cls in base.__subclasses__():
        if cls.code >= 0:
            out[cls.code] = cls
        out.update(_collect(cls))
    return out


ERROR_CODES: Dict[int, Type[SwapError]] = _collect(SwapError)


def error_from_code(code: int) -> Type[SwapError]:
    """Map a stable error code back to its exception class."""
    if not isinstance(code, int) or isinstance(code, bool):
        raise TypeError("code must be an int")
    try:
        return ERROR_CODES[code]
    except KeyError as exc:
        raise ValueError(f"unknown swap error code: {code}") from exc
