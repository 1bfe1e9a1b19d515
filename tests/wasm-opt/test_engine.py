#
# This file is distributed under the MIT License. See LICENSE.md for details.
#
# pylint: disable=redefined-outer-name,unused-argument

from pathlib import Path

import pytest

from wasm_opt import Command, ExecutionError, FileType, OptimizationOptions
from wasm_opt import run_from_command_args
from wasm_opt.api import InvalidModule, Module, ModuleReader, ModuleWriter, OptimizationError
from wasm_opt.api import PassOptions, PassRunner, find_library
from wasm_opt.api._capi import get_api


def optimized_size(path: Path, out: Path, optimize_level: int, shrink_level: int) -> int:
    module = Module()
    ModuleReader().read_binary(path, module)

    pass_options = PassOptions()
    pass_options.set_optimize_level(optimize_level)
    pass_options.set_shrink_level(shrink_level)

    runner = PassRunner.new_with_options(module, pass_options)
    runner.add_default_optimization_passes()
    runner.run()

    ModuleWriter().write_binary(module, out)
    return len(out.read_bytes())


def test_find_library_honors_environment(monkeypatch):
    monkeypatch.setenv("BINARYEN_LIBRARY", "/opt/binaryen/lib/libbinaryen.so")
    assert find_library() == Path("/opt/binaryen/lib/libbinaryen.so")


def test_read_write_text(binaryen, hello_world_wat, tmp_path):
    module = Module()
    ModuleReader().read_text(hello_world_wat, module)
    first = tmp_path / "first.wat"
    ModuleWriter().write_text(module, first)

    another = Module()
    ModuleReader().read_text(first, another)
    second = tmp_path / "second.wat"
    ModuleWriter().write_text(another, second)

    assert first.read_bytes() == second.read_bytes()


def test_read_write_binary(binaryen, hello_world_wasm, tmp_path):
    module = Module()
    ModuleReader().read_binary(hello_world_wasm, module)
    first = tmp_path / "first.wasm"
    ModuleWriter().write_binary(module, first)

    another = Module()
    ModuleReader().read_binary(first, another)
    second = tmp_path / "second.wasm"
    ModuleWriter().write_binary(another, second)

    assert first.read_bytes() == second.read_bytes()


def test_read_sniffs_format(binaryen, hello_world_wat, hello_world_wasm, tmp_path):
    from_text = Module()
    ModuleReader().read(hello_world_wat, from_text)
    from_binary = Module()
    ModuleReader().read(hello_world_wasm, from_binary)

    text_out = tmp_path / "from_text.wasm"
    binary_out = tmp_path / "from_binary.wasm"
    ModuleWriter().write_binary(from_text, text_out)
    ModuleWriter().write_binary(from_binary, binary_out)
    assert text_out.read_bytes() == binary_out.read_bytes()


def test_binary_without_magic(binaryen, hello_world_wat):
    with pytest.raises(InvalidModule):
        ModuleReader().read_binary(hello_world_wat, Module())


def test_input_sourcemap_is_rejected(binaryen, hello_world_wasm, tmp_path):
    with pytest.raises(OptimizationError):
        ModuleReader().read_binary(hello_world_wasm, Module(), tmp_path / "in.wasm.map")


def test_module_validates(binaryen, hello_world_wasm):
    module = Module()
    ModuleReader().read_binary(hello_world_wasm, module)
    assert module.validate()


def test_pass_runner_shrinks(binaryen, hello_world_wasm, tmp_path):
    module = Module()
    ModuleReader().read_binary(hello_world_wasm, module)

    runner = PassRunner(module)
    runner.add_default_optimization_passes()
    runner.run()

    out = tmp_path / "optimized.wasm"
    ModuleWriter().write_binary(module, out)
    assert len(hello_world_wasm.read_bytes()) > len(out.read_bytes())


def test_pass_options_are_monotone(binaryen, hello_world_wasm, tmp_path):
    original = len(hello_world_wasm.read_bytes())
    default = optimized_size(hello_world_wasm, tmp_path / "0.wasm", 2, 1)
    aggressive = optimized_size(hello_world_wasm, tmp_path / "1.wasm", 5, 5)
    ridiculous = optimized_size(
        hello_world_wasm, tmp_path / "2.wasm", 2_000_000_000, 2_000_000_000
    )

    assert original > default
    assert default >= aggressive
    assert aggressive >= ridiculous


def test_named_passes(binaryen, hello_world_wasm, tmp_path):
    module = Module()
    ModuleReader().read_binary(hello_world_wasm, module)

    runner = PassRunner(module)
    runner.add("remove-unused-module-elements")
    runner.run()

    out = tmp_path / "out.wasm"
    ModuleWriter().write_binary(module, out)
    assert len(hello_world_wasm.read_bytes()) > len(out.read_bytes())


def test_globals_are_restored(binaryen, hello_world_wasm):
    api = get_api()
    before = (api.BinaryenGetOptimizeLevel(), api.BinaryenGetShrinkLevel())

    module = Module()
    ModuleReader().read_binary(hello_world_wasm, module)
    runner = PassRunner(module, PassOptions(optimize_level=4, shrink_level=2))
    runner.add_default_optimization_passes()
    runner.run()

    assert (api.BinaryenGetOptimizeLevel(), api.BinaryenGetShrinkLevel()) == before


def test_run_options(binaryen, hello_world_wasm, tmp_path):
    unoptimized = tmp_path / "o0.wasm"
    optimized = tmp_path / "oz.wasm"
    OptimizationOptions.new_opt_level_0().run(hello_world_wasm, unoptimized)
    OptimizationOptions.new_optimize_for_size_aggressively().run(hello_world_wasm, optimized)

    assert unoptimized.read_bytes() == hello_world_wasm.read_bytes()
    assert len(optimized.read_bytes()) < len(unoptimized.read_bytes())


def test_run_text_output(binaryen, hello_world_wasm, tmp_path):
    out = tmp_path / "out.wat"
    OptimizationOptions.new_opt_level_2().writer_file_type(FileType.WAT).run(hello_world_wasm, out)
    assert out.read_text(encoding="utf-8").lstrip().startswith("(module")


def test_run_text_input(binaryen, hello_world_wat, tmp_path):
    out = tmp_path / "out.wasm"
    OptimizationOptions.new_opt_level_2().reader_file_type(FileType.WAT).run(hello_world_wat, out)
    assert out.read_bytes()[:4] == b"\x00asm"


def test_run_from_command_args(binaryen, hello_world_wasm, tmp_path):
    out = tmp_path / "out.wasm"
    run_from_command_args(Command("wasm-opt", [hello_world_wasm, "-Oz", "-o", out]))
    assert len(out.read_bytes()) < len(hello_world_wasm.read_bytes())


def test_run_from_command_args_with_output_sourcemap(binaryen, hello_world_wasm, tmp_path):
    out = tmp_path / "out.wasm"
    sourcemap = tmp_path / "out.wasm.map"
    run_from_command_args(
        Command("wasm-opt", [hello_world_wasm, "-O", "-g", "-o", out, "-osm", sourcemap])
    )
    assert out.read_bytes()[:4] == b"\x00asm"
    assert sourcemap.read_text(encoding="utf-8").startswith("{")


def test_unbalanced_text_is_rejected(binaryen, tmp_path):
    path = tmp_path / "broken.wat"
    path.write_text("(module (func $f (result i32) (i32.const 0))", encoding="utf-8")
    with pytest.raises(InvalidModule):
        ModuleReader().read_text(path, Module())


def test_truncated_binary_is_rejected(binaryen, hello_world_wasm, tmp_path):
    path = tmp_path / "truncated.wasm"
    path.write_bytes(hello_world_wasm.read_bytes()[:-3])
    with pytest.raises(InvalidModule):
        ModuleReader().read_binary(path, Module())

    with pytest.raises(ExecutionError):
        run_from_command_args(Command("wasm-opt", [path, "-O", "-o", tmp_path / "out.wasm"]))


def test_out_of_range_levels_are_engine_errors(binaryen, hello_world_wasm, tmp_path):
    api = get_api()
    before = (api.BinaryenGetOptimizeLevel(), api.BinaryenGetShrinkLevel())

    module = Module()
    ModuleReader().read_binary(hello_world_wasm, module)
    runner = PassRunner(module, PassOptions(optimize_level=2, shrink_level=2**31))
    runner.add_default_optimization_passes()
    with pytest.raises(OptimizationError):
        runner.run()
    assert (api.BinaryenGetOptimizeLevel(), api.BinaryenGetShrinkLevel()) == before

    with pytest.raises(OptimizationError):
        OptimizationOptions().optimize_level(2**40).run(hello_world_wasm, tmp_path / "out.wasm")


def test_source_map_url_needs_source_map(binaryen, hello_world_wasm, tmp_path):
    module = Module()
    ModuleReader().read_binary(hello_world_wasm, module)

    plain = tmp_path / "plain.wasm"
    with_url = tmp_path / "with_url.wasm"
    ModuleWriter().write_binary(module, plain)
    ModuleWriter().write_binary(module, with_url, sourcemap_url="https://example.com/out.map")
    assert plain.read_bytes() == with_url.read_bytes()
