"""
Instruction codec, dispatcher and host runtime.
"""

from .config import ProcessorConfig, config_from_env, load_constraints
from .instruction import Opcode, pack_instruction, unpack_instruction
from .processor import InvocationContext, Processor, ProgramAccount
from .runtime import ProcessResult, SwapRuntime

__all__ = [
    "ProcessorConfig",
    "config_from_env",
    "load_constraints",
    "Opcode",
    "pack_instruction",
    "unpack_instruction",
    "InvocationContext",
    "Processor",
    "ProgramAccount",
    "ProcessResult",
    "SwapRuntime",
]
