#
# This file is distributed under the MIT License. See LICENSE.md for details.
#

"""
Easy integration with tools that already drive `wasm-opt` through its command
line.

`run_from_command_args` interprets a `Command` holding a `wasm-opt` command
line as an `OptimizationOptions` and runs it in-process, so that a program can
build a single command and either spawn the real tool or call this library.
New programs that just need to optimize wasm should use `OptimizationOptions`
directly.

This is provided on a best-effort basis. It understands the command-line
options that `OptimizationOptions` can express, but it may not parse, or in
some cases interpret, them exactly like the real tool does. Every argument it
does not understand is reported through `UnsupportedArgs` instead of being
ignored.

The `-o` argument is required: `wasm-opt` writes to stdout by default, this
library only writes to files. Only the arguments are interpreted, the
environment is ignored.

libbinaryen terminates the process when it fails to parse a module. Obviously
malformed input (unbalanced text, truncated binaries) is reported as an
`ExecutionError`, anything subtler still ends the process, so programs that
must survive arbitrary input should spawn the real tool instead.
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Union

from .api.exceptions import OptimizationError
from .api.features import Feature
from .errors import ExecutionError, InputFileRequired, OutputFileRequired, UnexpectedEndOfArgs
from .errors import UnimplementedArgument, UnsupportedArgs
from .options import FileType, OptimizationOptions
from .profiles import Profile, profile_flags

logger = logging.getLogger(__name__)

Arg = Union[str, bytes, os.PathLike]

_UNSIGNED = re.compile(r"[0-9]+")

# Levels are C ints, inlining sizes are BinaryenIndex (uint32_t)
_LEVEL_MAX = 2**31 - 1
_SIZE_MAX = 2**32 - 1


class Command:
    """A program and its arguments, in the spirit of `subprocess` argument lists"""

    def __init__(self, program: Arg, args: Iterable[Arg] = ()):
        self._program = program
        self._args: List[Arg] = list(args)

    @classmethod
    def from_argv(cls, argv: Sequence[Arg]) -> "Command":
        if len(argv) == 0:
            raise ValueError("argv must contain at least the program name")
        return cls(argv[0], argv[1:])

    def arg(self, arg: Arg) -> "Command":
        self._args.append(arg)
        return self

    def args(self, args: Iterable[Arg]) -> "Command":
        self._args.extend(args)
        return self

    def get_program(self) -> Arg:
        return self._program

    def get_args(self) -> List[Arg]:
        return list(self._args)

    def to_argv(self) -> List[Union[str, bytes]]:
        return [os.fspath(item) for item in [self._program, *self._args]]

    def __repr__(self):
        return f"Command({self._program!r}, {self._args!r})"


@dataclass
class ParsedCliArgs:
    options: OptimizationOptions
    input_file: Path
    input_sourcemap: Optional[Path]
    output_file: Path
    output_sourcemap: Optional[Path]


def as_text(arg: Arg) -> Optional[str]:
    """Return the argument as text, or None if it is not valid unicode"""
    raw = os.fspath(arg)
    if isinstance(raw, bytes):
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            return None

    # Lone surrogates come from os.fsdecode on undecodable bytes
    try:
        raw.encode("utf-8")
    except UnicodeEncodeError:
        return None
    return raw


def as_path(arg: Arg) -> Path:
    return Path(os.fsdecode(os.fspath(arg)))


Handler = Callable[["ArgumentScanner", str], None]
_FLAGS: Dict[str, Handler] = {}


def flag(*spellings: str) -> Callable[[Handler], Handler]:
    def register(handler: Handler) -> Handler:
        for spelling in spellings:
            assert spelling not in _FLAGS, f"{spelling} registered twice"
            _FLAGS[spelling] = handler
        return handler

    return register


class ArgumentScanner:
    """
    Single pass over the argument list. The cursor is explicit since several
    flags consume the following argument as their value.

    Single-valued flags and the input file bind on their first occurrence, any
    later occurrence is recorded as unsupported together with its value.
    """

    def __init__(self, args: Sequence[Arg]):
        self.args = list(args)
        self.position = 0
        self.options = OptimizationOptions()
        self.input_file: Optional[Path] = None
        self.input_sourcemap: Optional[Path] = None
        self.output_file: Optional[Path] = None
        self.output_sourcemap: Optional[Path] = None
        self.unsupported: List[Arg] = []
        self._bound: Set[str] = set()

    def scan(self) -> ParsedCliArgs:
        while self.position < len(self.args):
            token = self.args[self.position]
            self.position += 1

            text = as_text(token)
            if text is None:
                # Not unicode, might still be the input file
                self._positional(token)
                continue

            handler = _FLAGS.get(text)
            if handler is not None:
                handler(self, text)
            elif not self._feature_flag(text):
                self._positional(token)

        return self._finish()

    def _finish(self) -> ParsedCliArgs:
        if self.input_file is None:
            raise InputFileRequired()
        if self.output_file is None:
            raise OutputFileRequired()
        if len(self.unsupported) > 0:
            raise UnsupportedArgs(self.unsupported)

        return ParsedCliArgs(
            options=self.options,
            input_file=self.input_file,
            input_sourcemap=self.input_sourcemap,
            output_file=self.output_file,
            output_sourcemap=self.output_sourcemap,
        )

    def _positional(self, token: Arg):
        if self.input_file is None:
            self.input_file = as_path(token)
        else:
            self.unsupported.append(token)

    def _take_value(self, flag_text: str) -> Arg:
        if self.position >= len(self.args):
            raise UnexpectedEndOfArgs(flag_text)
        value = self.args[self.position]
        self.position += 1
        return value

    def _reject(self, flag_text: str, value: Arg):
        self.unsupported.extend([flag_text, value])

    def _single_value(self, flag_text: str, key: str) -> Optional[Arg]:
        value = self._take_value(flag_text)
        if key in self._bound:
            self._reject(flag_text, value)
            return None
        self._bound.add(key)
        return value

    def _single_path(self, flag_text: str, key: str) -> Optional[Path]:
        value = self._single_value(flag_text, key)
        return as_path(value) if value is not None else None

    def _single_unsigned(self, flag_text: str, key: str, maximum: int) -> Optional[int]:
        value = self._take_value(flag_text)
        text = as_text(value)
        if (
            key in self._bound
            or text is None
            or not _UNSIGNED.fullmatch(text)
            or int(text) > maximum
        ):
            self._reject(flag_text, value)
            return None
        self._bound.add(key)
        return int(text)

    def _feature_flag(self, text: str) -> bool:
        for prefix, apply in (
            ("--enable-", self.options.enable_feature),
            ("--disable-", self.options.disable_feature),
        ):
            if text.startswith(prefix):
                try:
                    feature = Feature.from_flag_name(text[len(prefix) :])
                except KeyError:
                    return False
                apply(feature)
                return True
        return False

    # Keep these in the order the options are defined by wasm-opt

    # wasm-opt.cpp

    @flag("--output", "-o")
    def _output(self, flag_text: str):
        path = self._single_path(flag_text, "output")
        if path is not None:
            self.output_file = path

    @flag("--emit-text", "-S")
    def _emit_text(self, flag_text: str):
        self.options.writer_file_type(FileType.WAT)

    @flag("--input-source-map", "-ism")
    def _input_source_map(self, flag_text: str):
        path = self._single_path(flag_text, "input-source-map")
        if path is not None:
            self.input_sourcemap = path

    @flag("--output-source-map", "-osm")
    def _output_source_map(self, flag_text: str):
        path = self._single_path(flag_text, "output-source-map")
        if path is not None:
            self.output_sourcemap = path

    @flag("--output-source-map-url", "-osu")
    def _output_source_map_url(self, flag_text: str):
        value = self._single_value(flag_text, "output-source-map-url")
        if value is None:
            return
        text = as_text(value)
        if text is None:
            self._reject(flag_text, value)
        else:
            self.options.writer.source_map_url = text

    # optimization-options.h

    @flag(*profile_flags())
    def _profile(self, flag_text: str):
        Profile.by_name(flag_text).apply_to(self.options)

    @flag("--optimize-level", "-ol")
    def _optimize_level(self, flag_text: str):
        level = self._single_unsigned(flag_text, "optimize-level", _LEVEL_MAX)
        if level is not None:
            self.options.optimize_level(level)

    @flag("--shrink-level", "-s")
    def _shrink_level(self, flag_text: str):
        level = self._single_unsigned(flag_text, "shrink-level", _LEVEL_MAX)
        if level is not None:
            self.options.shrink_level(level)

    @flag("--debuginfo", "-g")
    def _debuginfo(self, flag_text: str):
        self.options.debug_info(True)

    @flag("--always-inline-max-function-size", "-aimfs")
    def _always_inline_max_size(self, flag_text: str):
        size = self._single_unsigned(flag_text, "always-inline-max-function-size", _SIZE_MAX)
        if size is not None:
            self.options.inlining.always_inline_max_size = size

    @flag("--flexible-inline-max-function-size", "-fimfs")
    def _flexible_inline_max_size(self, flag_text: str):
        size = self._single_unsigned(flag_text, "flexible-inline-max-function-size", _SIZE_MAX)
        if size is not None:
            self.options.inlining.flexible_inline_max_size = size

    @flag("--one-caller-inline-max-function-size", "-ocimfs", "-ocifms")
    def _one_caller_inline_max_size(self, flag_text: str):
        size = self._single_unsigned(flag_text, "one-caller-inline-max-function-size", _SIZE_MAX)
        if size is not None:
            self.options.inlining.one_caller_inline_max_size = size

    @flag("--inline-functions-with-loops", "-ifwl")
    def _inline_functions_with_loops(self, flag_text: str):
        self.options.inlining.allow_functions_with_loops = True

    @flag("--partial-inlining-ifs", "-pii")
    def _unimplemented(self, flag_text: str):
        # libbinaryen's C API has no setter for this one
        raise UnimplementedArgument(flag_text)

    @flag("--traps-never-happen", "-tnh")
    def _traps_never_happen(self, flag_text: str):
        self.options.passopts.traps_never_happen = True

    @flag("--low-memory-unused", "-lmu")
    def _low_memory_unused(self, flag_text: str):
        self.options.passopts.low_memory_unused = True

    @flag("--fast-math", "-ffm")
    def _fast_math(self, flag_text: str):
        self.options.passopts.fast_math = True

    @flag("--zero-filled-memory", "-uim")
    def _zero_filled_memory(self, flag_text: str):
        self.options.passopts.zero_filled_memory = True

    # tool-options.h

    @flag("--mvp-features", "-mvp")
    def _mvp_features(self, flag_text: str):
        self.options.mvp_features_only()

    @flag("--all-features", "-all")
    def _all_features(self, flag_text: str):
        self.options.all_features()

    @flag("--quiet", "-q")
    def _quiet(self, flag_text: str):
        pass

    @flag("--no-validation", "-n")
    def _no_validation(self, flag_text: str):
        self.options.validate(False)

    @flag("--pass-arg", "-pa")
    def _pass_arg(self, flag_text: str):
        value = self._take_value(flag_text)
        text = as_text(value)
        if text is None:
            self._reject(flag_text, value)
            return

        key, _, argument = text.partition("@")
        if key == "" or key in self.options.passopts.arguments:
            self._reject(flag_text, value)
            return
        self.options.set_pass_arg(key, argument if "@" in text else "1")


def parse_args(args: Sequence[Arg]) -> ParsedCliArgs:
    """Translate `wasm-opt` arguments, without the program name"""
    return ArgumentScanner(args).scan()


def parse_command_args(command: Command) -> ParsedCliArgs:
    return parse_args(command.get_args())


def run_from_command_args(command: Command):
    """
    Interpret `command` as `wasm-opt` arguments and run the optimization
    in-process.

    Raises `InputFileRequired`, `OutputFileRequired`, `UnexpectedEndOfArgs`,
    `UnimplementedArgument` or `UnsupportedArgs` if the arguments can't be
    translated, and `ExecutionError` if the optimization itself fails.
    """
    parsed = parse_command_args(command)
    logger.debug(
        "Translated %r: input %s, output %s", command, parsed.input_file, parsed.output_file
    )

    try:
        parsed.options.run_with_sourcemaps(
            parsed.input_file,
            parsed.input_sourcemap,
            parsed.output_file,
            parsed.output_sourcemap,
        )
    except OptimizationError as e:
        raise ExecutionError(e) from e
