#
# This file is distributed under the MIT License. See LICENSE.md for details.
#

from typing import List, Sequence

from .api.exceptions import OptimizationError


class WasmOptError(Exception):
    pass


class InputFileRequired(WasmOptError):
    def __init__(self):
        super().__init__("An input file is required")


class OutputFileRequired(WasmOptError):
    def __init__(self):
        super().__init__("The `-o` option to `wasm-opt` is required")


class UnexpectedEndOfArgs(WasmOptError):
    def __init__(self, flag: str):
        self.flag = flag
        super().__init__(
            f"The `wasm-opt` argument list ended while expecting a value for `{flag}`"
        )


class UnsupportedArgs(WasmOptError):
    # `args` is taken by BaseException, the offending tokens live in `arguments`
    def __init__(self, arguments: Sequence):
        self.arguments: List = list(arguments)
        super().__init__(f"Unsupported `wasm-opt` command-line arguments: {self.arguments!r}")


class UnimplementedArgument(WasmOptError):
    def __init__(self, flag: str):
        self.flag = flag
        super().__init__(f"The `wasm-opt` argument `{flag}` is recognized but not implemented")


class ExecutionError(WasmOptError):
    def __init__(self, error: OptimizationError):
        self.error = error
        super().__init__(f"Error while optimizing wasm modules: {error}")
