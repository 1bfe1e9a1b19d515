#
# This file is distributed under the MIT License. See LICENSE.md for details.
#
# pylint: disable=redefined-outer-name

from pathlib import Path

import pytest

from wasm_opt.api import Module, ModuleReader, ModuleWriter, is_available

DATA_DIR = Path(__file__).parent / "data"


@pytest.fixture
def binaryen():
    if not is_available():
        pytest.skip("libbinaryen is not available")


@pytest.fixture
def hello_world_wat(tmp_path) -> Path:
    path = tmp_path / "hello_world.wat"
    path.write_bytes((DATA_DIR / "hello_world.wat").read_bytes())
    return path


@pytest.fixture
def hello_world_wasm(binaryen, hello_world_wat, tmp_path) -> Path:
    # Names are kept out of the binary, so it's only as large as its code
    module = Module()
    ModuleReader().read_text(hello_world_wat, module)
    path = tmp_path / "hello_world.wasm"
    ModuleWriter().write_binary(module, path)
    return path
