#
# This file is distributed under the MIT License. See LICENSE.md for details.
#

from ._capi import find_library, is_available
from .exceptions import EngineNotFound, InvalidModule, OptimizationError, ValidationFailed
from .features import Feature
from .module import Module, ModuleReader, ModuleWriter
from .passes import PassOptions, PassRunner, installed

__all__ = [
    "EngineNotFound",
    "Feature",
    "InvalidModule",
    "Module",
    "ModuleReader",
    "ModuleWriter",
    "OptimizationError",
    "PassOptions",
    "PassRunner",
    "ValidationFailed",
    "find_library",
    "installed",
    "is_available",
]
