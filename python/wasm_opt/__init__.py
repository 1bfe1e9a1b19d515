#
# This file is distributed under the MIT License. See LICENSE.md for details.
#

from .api.exceptions import OptimizationError
from .errors import ExecutionError, InputFileRequired, OutputFileRequired, UnexpectedEndOfArgs
from .errors import UnimplementedArgument, UnsupportedArgs, WasmOptError
from .integration import Command, ParsedCliArgs, parse_args, parse_command_args
from .integration import run_from_command_args
from .options import FileType, OptimizationOptions
from .profiles import Profile

__all__ = [
    "Command",
    "ExecutionError",
    "FileType",
    "InputFileRequired",
    "OptimizationError",
    "OptimizationOptions",
    "OutputFileRequired",
    "ParsedCliArgs",
    "Profile",
    "UnexpectedEndOfArgs",
    "UnimplementedArgument",
    "UnsupportedArgs",
    "WasmOptError",
    "parse_args",
    "parse_command_args",
    "run_from_command_args",
]
