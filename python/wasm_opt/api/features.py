#
# This file is distributed under the MIT License. See LICENSE.md for details.
#

from enum import Enum
from typing import Iterable

from ._capi import get_api


class Feature(Enum):
    """WebAssembly proposals, named as in `--enable-<name>`/`--disable-<name>`"""

    SIGN_EXT = ("sign-ext", "BinaryenFeatureSignExt")
    THREADS = ("threads", "BinaryenFeatureAtomics")
    MUTABLE_GLOBALS = ("mutable-globals", "BinaryenFeatureMutableGlobals")
    NONTRAPPING_FLOAT_TO_INT = ("nontrapping-float-to-int", "BinaryenFeatureNontrappingFPToInt")
    SIMD = ("simd", "BinaryenFeatureSIMD128")
    BULK_MEMORY = ("bulk-memory", "BinaryenFeatureBulkMemory")
    EXCEPTION_HANDLING = ("exception-handling", "BinaryenFeatureExceptionHandling")
    TAIL_CALL = ("tail-call", "BinaryenFeatureTailCall")
    REFERENCE_TYPES = ("reference-types", "BinaryenFeatureReferenceTypes")
    MULTIVALUE = ("multivalue", "BinaryenFeatureMultivalue")
    GC = ("gc", "BinaryenFeatureGC")
    MEMORY64 = ("memory64", "BinaryenFeatureMemory64")
    RELAXED_SIMD = ("relaxed-simd", "BinaryenFeatureRelaxedSIMD")
    EXTENDED_CONST = ("extended-const", "BinaryenFeatureExtendedConst")
    STRINGS = ("strings", "BinaryenFeatureStrings")
    MULTIMEMORY = ("multimemory", "BinaryenFeatureMultiMemory")

    def __init__(self, flag_name: str, c_function: str):
        self.flag_name = flag_name
        self.c_function = c_function

    @classmethod
    def from_flag_name(cls, name: str) -> "Feature":
        for feature in cls:
            if feature.flag_name == name:
                return feature
        raise KeyError(name)

    def mask(self) -> int:
        return int(getattr(get_api(), self.c_function)())


def mvp_mask() -> int:
    return int(get_api().BinaryenFeatureMVP())


def all_mask() -> int:
    return int(get_api().BinaryenFeatureAll())


def combine(base: int, enabled: Iterable[Feature], disabled: Iterable[Feature]) -> int:
    result = base
    for feature in enabled:
        result |= feature.mask()
    for feature in disabled:
        result &= ~feature.mask()
    return result & 0xFFFFFFFF
