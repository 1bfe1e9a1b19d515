#
# This file is distributed under the MIT License. See LICENSE.md for details.
#

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Set

from .api.features import Feature
from .api.passes import PassOptions as EnginePassOptions
from .profiles import Profile


class FileType(Enum):
    WASM = "wasm"
    WAT = "wat"
    # Sniff the input, readers only
    ANY = "any"


class FeatureBaseline(Enum):
    DEFAULT = "default"
    MVP = "mvp"
    ALL = "all"


@dataclass
class ReaderOptions:
    file_type: FileType = FileType.ANY


@dataclass
class WriterOptions:
    file_type: FileType = FileType.WASM
    source_map_url: Optional[str] = None


@dataclass
class InliningOptions:
    always_inline_max_size: int = 2
    one_caller_inline_max_size: int = -1
    flexible_inline_max_size: int = 20
    allow_functions_with_loops: bool = False


@dataclass
class PassOptions:
    validate: bool = True
    debug_info: bool = False
    optimize_level: int = 0
    shrink_level: int = 0
    traps_never_happen: bool = False
    low_memory_unused: bool = False
    fast_math: bool = False
    zero_filled_memory: bool = False
    arguments: Dict[str, str] = field(default_factory=dict)


@dataclass
class FeatureSelection:
    baseline: FeatureBaseline = FeatureBaseline.DEFAULT
    enabled: Set[Feature] = field(default_factory=set)
    disabled: Set[Feature] = field(default_factory=set)

    def is_default(self) -> bool:
        return self.baseline == FeatureBaseline.DEFAULT and not self.enabled and not self.disabled


@dataclass
class Passes:
    add_default_passes: bool = False
    more_passes: List[str] = field(default_factory=list)


@dataclass
class OptimizationOptions:
    """
    Everything needed to optimize one module. Construct it with the defaults,
    or from a profile, then tweak it with the builder methods, which all return
    `self`.
    """

    reader: ReaderOptions = field(default_factory=ReaderOptions)
    writer: WriterOptions = field(default_factory=WriterOptions)
    inlining: InliningOptions = field(default_factory=InliningOptions)
    passopts: PassOptions = field(default_factory=PassOptions)
    features: FeatureSelection = field(default_factory=FeatureSelection)
    passes: Passes = field(default_factory=Passes)

    @classmethod
    def new_from_profile(cls, profile: Profile) -> "OptimizationOptions":
        options = cls()
        profile.apply_to(options)
        return options

    @classmethod
    def new_opt_level_0(cls) -> "OptimizationOptions":
        return cls.new_from_profile(Profile.opt_level_0())

    @classmethod
    def new_opt_level_1(cls) -> "OptimizationOptions":
        return cls.new_from_profile(Profile.opt_level_1())

    @classmethod
    def new_opt_level_2(cls) -> "OptimizationOptions":
        return cls.new_from_profile(Profile.opt_level_2())

    @classmethod
    def new_opt_level_3(cls) -> "OptimizationOptions":
        return cls.new_from_profile(Profile.opt_level_3())

    @classmethod
    def new_opt_level_4(cls) -> "OptimizationOptions":
        return cls.new_from_profile(Profile.opt_level_4())

    @classmethod
    def new_optimize_for_size(cls) -> "OptimizationOptions":
        return cls.new_from_profile(Profile.optimize_for_size())

    @classmethod
    def new_optimize_for_size_aggressively(cls) -> "OptimizationOptions":
        return cls.new_from_profile(Profile.optimize_for_size_aggressively())

    def reader_file_type(self, file_type: FileType) -> "OptimizationOptions":
        self.reader.file_type = file_type
        return self

    def writer_file_type(self, file_type: FileType) -> "OptimizationOptions":
        if file_type == FileType.ANY:
            raise ValueError("The writer needs a concrete file type")
        self.writer.file_type = file_type
        return self

    def optimize_level(self, level: int) -> "OptimizationOptions":
        self.passopts.optimize_level = level
        return self

    def shrink_level(self, level: int) -> "OptimizationOptions":
        self.passopts.shrink_level = level
        return self

    def debug_info(self, on: bool = True) -> "OptimizationOptions":
        self.passopts.debug_info = on
        return self

    def validate(self, on: bool = True) -> "OptimizationOptions":
        self.passopts.validate = on
        return self

    def set_pass_arg(self, key: str, value: str) -> "OptimizationOptions":
        self.passopts.arguments[key] = value
        return self

    def add_default_passes(self, on: bool = True) -> "OptimizationOptions":
        self.passes.add_default_passes = on
        return self

    def add_pass(self, pass_name: str) -> "OptimizationOptions":
        self.passes.more_passes.append(pass_name)
        return self

    def mvp_features_only(self) -> "OptimizationOptions":
        self.features.baseline = FeatureBaseline.MVP
        return self

    def all_features(self) -> "OptimizationOptions":
        self.features.baseline = FeatureBaseline.ALL
        return self

    def enable_feature(self, feature: Feature) -> "OptimizationOptions":
        self.features.enabled.add(feature)
        self.features.disabled.discard(feature)
        return self

    def disable_feature(self, feature: Feature) -> "OptimizationOptions":
        self.features.disabled.add(feature)
        self.features.enabled.discard(feature)
        return self

    def engine_pass_options(self) -> EnginePassOptions:
        return EnginePassOptions(
            optimize_level=self.passopts.optimize_level,
            shrink_level=self.passopts.shrink_level,
            debug_info=self.passopts.debug_info,
            traps_never_happen=self.passopts.traps_never_happen,
            low_memory_unused=self.passopts.low_memory_unused,
            zero_filled_memory=self.passopts.zero_filled_memory,
            fast_math=self.passopts.fast_math,
            always_inline_max_size=self.inlining.always_inline_max_size,
            flexible_inline_max_size=self.inlining.flexible_inline_max_size,
            one_caller_inline_max_size=self.inlining.one_caller_inline_max_size,
            allow_inlining_functions_with_loops=self.inlining.allow_functions_with_loops,
            arguments=dict(self.passopts.arguments),
        )

    def run(self, infile: Path, outfile: Path):
        self.run_with_sourcemaps(infile, None, outfile, None)

    def run_with_sourcemaps(
        self,
        infile: Path,
        infile_sourcemap: Optional[Path],
        outfile: Path,
        outfile_sourcemap: Optional[Path],
    ):
        from .run import run_with_sourcemaps

        run_with_sourcemaps(self, infile, infile_sourcemap, outfile, outfile_sourcemap)
