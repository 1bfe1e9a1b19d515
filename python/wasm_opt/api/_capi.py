#
# This file is distributed under the MIT License. See LICENSE.md for details.
#

import ctypes.util
import logging
import os
import threading
from pathlib import Path
from typing import Any, Optional

from cffi import FFI

from .exceptions import EngineNotFound

logger = logging.getLogger(__name__)

# Subset of binaryen-c.h used by this package
BINARYEN_CDEF = """
typedef struct BinaryenModule* BinaryenModuleRef;
typedef uint32_t BinaryenIndex;
typedef uint32_t BinaryenFeatures;

typedef struct {
  void* binary;
  size_t binaryBytes;
  char* sourceMap;
} BinaryenModuleAllocateAndWriteResult;

BinaryenModuleRef BinaryenModuleCreate(void);
void BinaryenModuleDispose(BinaryenModuleRef module);
BinaryenModuleRef BinaryenModuleRead(char* input, size_t inputSize);
BinaryenModuleRef BinaryenModuleParse(const char* text);
bool BinaryenModuleValidate(BinaryenModuleRef module);

void BinaryenModuleOptimize(BinaryenModuleRef module);
void BinaryenModuleRunPasses(BinaryenModuleRef module, const char** passes, BinaryenIndex numPasses);

BinaryenModuleAllocateAndWriteResult BinaryenModuleAllocateAndWrite(
  BinaryenModuleRef module, const char* sourceMapUrl);
char* BinaryenModuleAllocateAndWriteText(BinaryenModuleRef module);

BinaryenFeatures BinaryenModuleGetFeatures(BinaryenModuleRef module);
void BinaryenModuleSetFeatures(BinaryenModuleRef module, BinaryenFeatures features);

BinaryenFeatures BinaryenFeatureMVP(void);
BinaryenFeatures BinaryenFeatureAtomics(void);
BinaryenFeatures BinaryenFeatureBulkMemory(void);
BinaryenFeatures BinaryenFeatureMutableGlobals(void);
BinaryenFeatures BinaryenFeatureNontrappingFPToInt(void);
BinaryenFeatures BinaryenFeatureSignExt(void);
BinaryenFeatures BinaryenFeatureSIMD128(void);
BinaryenFeatures BinaryenFeatureExceptionHandling(void);
BinaryenFeatures BinaryenFeatureTailCall(void);
BinaryenFeatures BinaryenFeatureReferenceTypes(void);
BinaryenFeatures BinaryenFeatureMultivalue(void);
BinaryenFeatures BinaryenFeatureGC(void);
BinaryenFeatures BinaryenFeatureMemory64(void);
BinaryenFeatures BinaryenFeatureRelaxedSIMD(void);
BinaryenFeatures BinaryenFeatureExtendedConst(void);
BinaryenFeatures BinaryenFeatureStrings(void);
BinaryenFeatures BinaryenFeatureMultiMemory(void);
BinaryenFeatures BinaryenFeatureAll(void);

int BinaryenGetOptimizeLevel(void);
void BinaryenSetOptimizeLevel(int level);
int BinaryenGetShrinkLevel(void);
void BinaryenSetShrinkLevel(int level);
bool BinaryenGetDebugInfo(void);
void BinaryenSetDebugInfo(bool on);
bool BinaryenGetTrapsNeverHappen(void);
void BinaryenSetTrapsNeverHappen(bool on);
bool BinaryenGetLowMemoryUnused(void);
void BinaryenSetLowMemoryUnused(bool on);
bool BinaryenGetZeroFilledMemory(void);
void BinaryenSetZeroFilledMemory(bool on);
bool BinaryenGetFastMath(void);
void BinaryenSetFastMath(bool value);
void BinaryenSetPassArgument(const char* name, const char* value);
void BinaryenClearPassArguments(void);
BinaryenIndex BinaryenGetAlwaysInlineMaxSize(void);
void BinaryenSetAlwaysInlineMaxSize(BinaryenIndex size);
BinaryenIndex BinaryenGetFlexibleInlineMaxSize(void);
void BinaryenSetFlexibleInlineMaxSize(BinaryenIndex size);
BinaryenIndex BinaryenGetOneCallerInlineMaxSize(void);
void BinaryenSetOneCallerInlineMaxSize(BinaryenIndex size);
bool BinaryenGetAllowInliningFunctionsWithLoops(void);
void BinaryenSetAllowInliningFunctionsWithLoops(bool enabled);
"""

LIBC_CDEF = """
void free(void* ptr);
"""

LIBRARY_ENV_VAR = "BINARYEN_LIBRARY"

ffi = FFI()
ffi.cdef(BINARYEN_CDEF)
ffi.cdef(LIBC_CDEF)

# libbinaryen keeps pass options in process-wide globals, anything that reads or
# writes them must hold this lock
GLOBAL_OPTIONS_LOCK = threading.RLock()

_api: Optional[Any] = None
_libc: Optional[Any] = None
_load_lock = threading.Lock()


def find_library() -> Optional[Path]:
    """Locate libbinaryen, `$BINARYEN_LIBRARY` takes precedence over the system search"""
    from_env = os.environ.get(LIBRARY_ENV_VAR)
    if from_env:
        return Path(from_env)

    found = ctypes.util.find_library("binaryen")
    if found is None:
        return None
    return Path(found)


def get_api():
    global _api, _libc
    with _load_lock:
        if _api is not None:
            return _api

        library_path = find_library()
        if library_path is None:
            raise EngineNotFound(
                f"Could not find libbinaryen, install binaryen or set ${LIBRARY_ENV_VAR}"
            )

        logger.debug("Loading %s", library_path)
        try:
            _api = ffi.dlopen(str(library_path))
        except OSError as e:
            raise EngineNotFound(f"Could not load {library_path}: {e}") from e
        _libc = ffi.dlopen(None)
        return _api


def free(pointer) -> None:
    """Release a buffer allocated by libbinaryen with malloc"""
    get_api()
    assert _libc is not None
    if pointer != ffi.NULL:
        _libc.free(pointer)


def is_available() -> bool:
    try:
        get_api()
    except EngineNotFound:
        return False
    return True
