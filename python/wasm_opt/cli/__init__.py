#
# This file is distributed under the MIT License. See LICENSE.md for details.
#

from .main import run, wasm_opt

__all__ = ["run", "wasm_opt"]
