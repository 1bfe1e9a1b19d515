#
# This file is distributed under the MIT License. See LICENSE.md for details.
#

import logging
from pathlib import Path
from typing import Optional

from ._capi import GLOBAL_OPTIONS_LOCK, ffi, free, get_api
from .exceptions import InvalidModule, OptimizationError
from .utils import WASM_MAGIC, WASM_VERSION, binary_framing_error, is_wasm_binary, make_c_string
from .utils import save_file, text_nesting_error

logger = logging.getLogger(__name__)


class Module:
    """A wasm module owned by libbinaryen"""

    def __init__(self):
        self._module = None
        self._replace(get_api().BinaryenModuleCreate())

    def _replace(self, module_ref):
        # Ensures the previous module is released as soon as it is dropped
        if module_ref == ffi.NULL:
            raise OptimizationError("libbinaryen returned a null module")
        self._module = ffi.gc(module_ref, get_api().BinaryenModuleDispose)

    @property
    def ref(self):
        return self._module

    def validate(self) -> bool:
        with GLOBAL_OPTIONS_LOCK:
            return bool(get_api().BinaryenModuleValidate(self._module))

    @property
    def features(self) -> int:
        return int(get_api().BinaryenModuleGetFeatures(self._module))

    @features.setter
    def features(self, mask: int):
        get_api().BinaryenModuleSetFeatures(self._module, mask)


def _read_file(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise OptimizationError(f"Could not read {path}: {e.strerror}") from e


def _check_no_sourcemap(sourcemap: Optional[Path]):
    if sourcemap is not None:
        raise OptimizationError(
            f"Cannot read input source map {sourcemap}: not supported by libbinaryen's C API"
        )


class ModuleReader:
    def read_text(self, path: Path, module: Module):
        path = Path(path)
        self._parse_text(path, _read_file(path), module)

    def read_binary(self, path: Path, module: Module, sourcemap: Optional[Path] = None):
        path = Path(path)
        _check_no_sourcemap(sourcemap)
        self._parse_binary(path, _read_file(path), module)

    def read(self, path: Path, module: Module, sourcemap: Optional[Path] = None):
        """Read either format, picking binary when the file starts with the wasm magic"""
        path = Path(path)
        _check_no_sourcemap(sourcemap)
        data = _read_file(path)
        if is_wasm_binary(data):
            self._parse_binary(path, data, module)
        else:
            self._parse_text(path, data, module)

    @staticmethod
    def _parse_text(path: Path, data: bytes, module: Module):
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidModule(path, "text module is not valid UTF-8") from e
        if "\0" in text:
            raise InvalidModule(path, "text module contains a NUL character")
        # libbinaryen aborts the process on parse errors, catch the obvious ones here
        reason = text_nesting_error(text)
        if reason is not None:
            raise InvalidModule(path, reason)

        logger.debug("Parsing text module %s", path)
        module._replace(get_api().BinaryenModuleParse(make_c_string(text)))

    @staticmethod
    def _parse_binary(path: Path, data: bytes, module: Module):
        if not is_wasm_binary(data):
            raise InvalidModule(path, "missing wasm magic number")
        if data[len(WASM_MAGIC) : len(WASM_MAGIC) + len(WASM_VERSION)] != WASM_VERSION:
            raise InvalidModule(path, "unsupported wasm binary version")
        reason = binary_framing_error(data)
        if reason is not None:
            raise InvalidModule(path, reason)

        logger.debug("Reading binary module %s (%d bytes)", path, len(data))
        buffer = ffi.from_buffer("char[]", data)
        module._replace(get_api().BinaryenModuleRead(buffer, len(data)))


class ModuleWriter:
    def write_text(self, module: Module, path: Path):
        path = Path(path)
        with GLOBAL_OPTIONS_LOCK:
            text = get_api().BinaryenModuleAllocateAndWriteText(module.ref)
        try:
            content = ffi.string(text).decode("utf-8")
        finally:
            free(text)

        logger.debug("Writing text module %s", path)
        _write_file(path, content)

    def write_binary(
        self,
        module: Module,
        path: Path,
        sourcemap: Optional[Path] = None,
        sourcemap_url: Optional[str] = None,
    ):
        path = Path(path)
        # The URL is only embedded when a source map is written alongside
        url = ffi.NULL
        if sourcemap is not None:
            sourcemap = Path(sourcemap)
            url = make_c_string(sourcemap_url if sourcemap_url is not None else sourcemap.name)
        elif sourcemap_url is not None:
            logger.warning("No output source map requested, ignoring URL %s", sourcemap_url)

        with GLOBAL_OPTIONS_LOCK:
            result = get_api().BinaryenModuleAllocateAndWrite(module.ref, url)
        try:
            binary = ffi.unpack(ffi.cast("char*", result.binary), result.binaryBytes)
            source_map = None
            if result.sourceMap != ffi.NULL:
                source_map = ffi.string(result.sourceMap).decode("utf-8")
        finally:
            free(result.binary)
            free(result.sourceMap)

        logger.debug("Writing binary module %s (%d bytes)", path, len(binary))
        _write_file(path, binary)
        if sourcemap is not None:
            _write_file(sourcemap, source_map or "")


def _write_file(path: Path, content: bytes | str):
    try:
        save_file(path, content)
    except OSError as e:
        raise OptimizationError(f"Could not write {path}: {e.strerror}") from e
