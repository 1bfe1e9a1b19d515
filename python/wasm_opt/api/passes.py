#
# This file is distributed under the MIT License. See LICENSE.md for details.
#

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Generator, List, Optional

from ._capi import GLOBAL_OPTIONS_LOCK, ffi, get_api
from .exceptions import OptimizationError
from .module import Module
from .utils import make_c_string

logger = logging.getLogger(__name__)


@dataclass
class PassOptions:
    """Engine-level knobs, mirroring the globals exposed by libbinaryen"""

    optimize_level: int = 0
    shrink_level: int = 0
    debug_info: bool = False
    traps_never_happen: bool = False
    low_memory_unused: bool = False
    zero_filled_memory: bool = False
    fast_math: bool = False
    always_inline_max_size: int = 2
    flexible_inline_max_size: int = 20
    one_caller_inline_max_size: int = -1
    allow_inlining_functions_with_loops: bool = False
    arguments: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def with_default_optimization_options(cls) -> "PassOptions":
        """The levels wasm-opt uses for a bare `-O`"""
        return cls(optimize_level=2, shrink_level=1)

    def set_optimize_level(self, level: int):
        self.optimize_level = level

    def set_shrink_level(self, level: int):
        self.shrink_level = level


# (getter, setter, PassOptions attribute)
_GLOBALS = [
    ("BinaryenGetOptimizeLevel", "BinaryenSetOptimizeLevel", "optimize_level"),
    ("BinaryenGetShrinkLevel", "BinaryenSetShrinkLevel", "shrink_level"),
    ("BinaryenGetDebugInfo", "BinaryenSetDebugInfo", "debug_info"),
    ("BinaryenGetTrapsNeverHappen", "BinaryenSetTrapsNeverHappen", "traps_never_happen"),
    ("BinaryenGetLowMemoryUnused", "BinaryenSetLowMemoryUnused", "low_memory_unused"),
    ("BinaryenGetZeroFilledMemory", "BinaryenSetZeroFilledMemory", "zero_filled_memory"),
    ("BinaryenGetFastMath", "BinaryenSetFastMath", "fast_math"),
    (
        "BinaryenGetAlwaysInlineMaxSize",
        "BinaryenSetAlwaysInlineMaxSize",
        "always_inline_max_size",
    ),
    (
        "BinaryenGetFlexibleInlineMaxSize",
        "BinaryenSetFlexibleInlineMaxSize",
        "flexible_inline_max_size",
    ),
    (
        "BinaryenGetOneCallerInlineMaxSize",
        "BinaryenSetOneCallerInlineMaxSize",
        "one_caller_inline_max_size",
    ),
    (
        "BinaryenGetAllowInliningFunctionsWithLoops",
        "BinaryenSetAllowInliningFunctionsWithLoops",
        "allow_inlining_functions_with_loops",
    ),
]


def _to_c_value(setter: str, value):
    # BinaryenIndex is unsigned, -1 means "no limit"
    if setter.endswith("InlineMaxSize") and value < 0:
        return 0xFFFFFFFF
    return value


@contextmanager
def installed(options: PassOptions) -> Generator[None, None, None]:
    """Install `options` in libbinaryen's globals, restoring the previous values on exit"""
    api = get_api()
    with GLOBAL_OPTIONS_LOCK:
        saved = [(setter, getattr(api, getter)()) for getter, setter, _ in _GLOBALS]
        try:
            for _, setter, attribute in _GLOBALS:
                value = getattr(options, attribute)
                try:
                    getattr(api, setter)(_to_c_value(setter, value))
                except OverflowError as e:
                    raise OptimizationError(f"Invalid {attribute} {value}: {e}") from e
            for name, value in options.arguments.items():
                api.BinaryenSetPassArgument(make_c_string(name), make_c_string(value))
            yield
        finally:
            api.BinaryenClearPassArguments()
            for setter, value in saved:
                getattr(api, setter)(value)


class PassRunner:
    def __init__(self, module: Module, options: Optional[PassOptions] = None):
        self.module = module
        self.options = (
            options if options is not None else PassOptions.with_default_optimization_options()
        )
        self.add_default_passes = False
        self.passes: List[str] = []

    @classmethod
    def new_with_options(cls, module: Module, options: PassOptions) -> "PassRunner":
        return cls(module, options)

    def add_default_optimization_passes(self):
        self.add_default_passes = True

    def add(self, pass_name: str):
        self.passes.append(pass_name)

    def run(self):
        api = get_api()
        with installed(self.options):
            if self.add_default_passes:
                logger.debug(
                    "Running default passes (optimize level %d, shrink level %d)",
                    self.options.optimize_level,
                    self.options.shrink_level,
                )
                api.BinaryenModuleOptimize(self.module.ref)

            if self.passes:
                logger.debug("Running passes: %s", ", ".join(self.passes))
                names = [make_c_string(name) for name in self.passes]
                api.BinaryenModuleRunPasses(
                    self.module.ref, ffi.new("const char*[]", names), len(names)
                )
