from .build import CleanTarget, run_build, run_check, run_clean, run_rebuild
from .cairo import CairoBackend
from .evm import EvmBackend

__all__ = [
    "CairoBackend",
    "CleanTarget",
    "EvmBackend",
    "run_build",
    "run_check",
    "run_clean",
    "run_rebuild",
]
