#
# This file is distributed under the MIT License. See LICENSE.md for details.
#

from pathlib import Path

import pytest

from wasm_opt.api.utils import WASM_MAGIC, WASM_VERSION, binary_framing_error
from wasm_opt.api.utils import text_nesting_error

HEADER = WASM_MAGIC + WASM_VERSION


def test_sample_module_is_balanced():
    text = (Path(__file__).parent / "data" / "hello_world.wat").read_text(encoding="utf-8")
    assert text_nesting_error(text) is None


@pytest.mark.parametrize(
    "text",
    [
        "(module)",
        '(module (export "a)" (func 0)) (func))',
        '(module (data "\\")("))',
        ";; )\n(module)",
        "(module) ;; trailing (",
        "(; ( ;)(module)",
        "(; (; ) ;) ;)(module)",
    ],
)
def test_balanced_text(text):
    assert text_nesting_error(text) is None


@pytest.mark.parametrize(
    "text,reason",
    [
        ("(module (func)", "unbalanced '('"),
        ("(module))", "unbalanced ')' at offset 8"),
        ('(module (export "a', "unterminated string"),
        ("(module (; )", "unterminated block comment"),
    ],
)
def test_unbalanced_text(text, reason):
    assert text_nesting_error(text) == reason


def test_binary_framing():
    assert binary_framing_error(HEADER) is None
    assert binary_framing_error(HEADER + bytes([1, 4, 1, 2, 3, 4])) is None
    # Two byte section size
    assert binary_framing_error(HEADER + bytes([0, 0x81, 0x01]) + b"\0" * 129) is None


def test_truncated_binary():
    assert binary_framing_error(HEADER + bytes([1, 5, 1, 2])) == (
        "section at offset 8 is truncated"
    )
    assert binary_framing_error(HEADER + bytes([1, 0x80])) == "malformed section size at offset 8"
    assert binary_framing_error(HEADER + bytes([1, 0x80, 0x80, 0x80, 0x80, 0x80, 0])) == (
        "malformed section size at offset 8"
    )
