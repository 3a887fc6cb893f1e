"""
Token-swap AMM engine.

Layers:
- ``core``: fixed-point math, fees, price curves, constraints, errors
- ``state``: pool record, authority derivation, token ledger capability
- ``integration``: instruction codec, dispatcher, host runtime, configuration
"""

from .core.errors import SwapError
from .integration.processor import Processor
from .integration.runtime import ProcessResult, SwapRuntime

__all__ = ["SwapError", "Processor", "ProcessResult", "SwapRuntime"]
