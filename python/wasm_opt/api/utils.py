#
# This file is distributed under the MIT License. See LICENSE.md for details.
#

from pathlib import Path
from typing import Optional, Tuple

from ._capi import ffi

WASM_MAGIC = b"\x00asm"
WASM_VERSION = b"\x01\x00\x00\x00"


def make_c_string(s: bytes | str):
    if isinstance(s, bytes):
        return ffi.new("char[]", s)
    if isinstance(s, str):
        return ffi.new("char[]", s.encode("utf-8"))
    raise TypeError(f"Invalid type: {s.__class__}")


def save_file(path: Path, content: bytes | str):
    if isinstance(content, str):
        with open(path, "w", encoding="utf-8") as str_f:
            str_f.write(content)
    else:
        with open(path, "wb") as bytes_f:
            bytes_f.write(content)


def is_wasm_binary(data: bytes) -> bool:
    return data[: len(WASM_MAGIC)] == WASM_MAGIC


def _read_leb128_u32(data: bytes, offset: int) -> Tuple[Optional[int], int]:
    result = 0
    for index in range(5):
        if offset >= len(data):
            return None, offset
        byte = data[offset]
        offset += 1
        result |= (byte & 0x7F) << (7 * index)
        if byte & 0x80 == 0:
            return result, offset
    return None, offset


def binary_framing_error(data: bytes) -> Optional[str]:
    """
    Walk the section headers of a wasm binary, returning why they don't frame
    the data exactly, or None. Section contents are not inspected.
    """
    offset = len(WASM_MAGIC) + len(WASM_VERSION)
    while offset < len(data):
        section_start = offset
        offset += 1
        size, offset = _read_leb128_u32(data, offset)
        if size is None:
            return f"malformed section size at offset {section_start}"
        if offset + size > len(data):
            return f"section at offset {section_start} is truncated"
        offset += size
    return None


def text_nesting_error(text: str) -> Optional[str]:
    """
    Check that the parentheses of a text module are balanced, skipping strings
    and comments. Returns why they are not, or None.
    """
    depth = 0
    comment_depth = 0
    index = 0
    length = len(text)
    while index < length:
        pair = text[index : index + 2]
        if comment_depth > 0:
            if pair == "(;":
                comment_depth += 1
                index += 2
            elif pair == ";)":
                comment_depth -= 1
                index += 2
            else:
                index += 1
        elif pair == "(;":
            comment_depth += 1
            index += 2
        elif pair == ";;":
            newline = text.find("\n", index)
            index = length if newline == -1 else newline + 1
        elif text[index] == '"':
            index += 1
            while index < length and text[index] != '"':
                index += 2 if text[index] == "\\" else 1
            if index >= length:
                return "unterminated string"
            index += 1
        else:
            if text[index] == "(":
                depth += 1
            elif text[index] == ")":
                depth -= 1
                if depth < 0:
                    return f"unbalanced ')' at offset {index}"
            index += 1

    if comment_depth > 0:
        return "unterminated block comment"
    if depth > 0:
        return "unbalanced '('"
    return None
