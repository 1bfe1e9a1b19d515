#
# This file is distributed under the MIT License. See LICENSE.md for details.
#

import logging
from pathlib import Path
from typing import Optional

from .api import features as engine_features
from .api.exceptions import OptimizationError, ValidationFailed
from .api.module import Module, ModuleReader, ModuleWriter
from .api.passes import PassRunner, installed
from .options import FeatureBaseline, FileType, OptimizationOptions

logger = logging.getLogger(__name__)


def read_module(options: OptimizationOptions, infile: Path, sourcemap: Optional[Path]) -> Module:
    module = Module()
    reader = ModuleReader()
    if options.reader.file_type == FileType.WASM:
        reader.read_binary(infile, module, sourcemap)
    elif options.reader.file_type == FileType.WAT:
        if sourcemap is not None:
            raise OptimizationError("Input source maps can only be used with binary input")
        reader.read_text(infile, module)
    else:
        reader.read(infile, module, sourcemap)
    return module


def apply_features(options: OptimizationOptions, module: Module):
    selection = options.features
    if selection.is_default():
        return

    if selection.baseline == FeatureBaseline.MVP:
        base = engine_features.mvp_mask()
    elif selection.baseline == FeatureBaseline.ALL:
        base = engine_features.all_mask()
    else:
        base = module.features

    module.features = engine_features.combine(base, selection.enabled, selection.disabled)
    logger.debug("Module features set to %#x", module.features)


def write_module(
    options: OptimizationOptions,
    module: Module,
    outfile: Path,
    sourcemap: Optional[Path],
):
    writer = ModuleWriter()
    if options.writer.file_type == FileType.WAT:
        if sourcemap is not None:
            logger.warning("Source maps are only written for binary output, ignoring %s", sourcemap)
        writer.write_text(module, outfile)
    else:
        writer.write_binary(module, outfile, sourcemap, options.writer.source_map_url)


def run_with_sourcemaps(
    options: OptimizationOptions,
    infile: Path,
    infile_sourcemap: Optional[Path],
    outfile: Path,
    outfile_sourcemap: Optional[Path],
):
    """
    Read `infile`, optimize it according to `options` and write the result to
    `outfile`. Every failure is raised as an `OptimizationError`; there is no
    partial success and nothing is rolled back if writing fails.
    """
    infile = Path(infile)
    outfile = Path(outfile)
    infile_sourcemap = Path(infile_sourcemap) if infile_sourcemap is not None else None
    outfile_sourcemap = Path(outfile_sourcemap) if outfile_sourcemap is not None else None

    logger.debug("Optimizing %s into %s", infile, outfile)
    module = read_module(options, infile, infile_sourcemap)
    apply_features(options, module)

    if options.passopts.validate and not module.validate():
        raise ValidationFailed(infile)

    pass_options = options.engine_pass_options()
    runner = PassRunner(module, pass_options)
    if options.passes.add_default_passes:
        runner.add_default_optimization_passes()
    for pass_name in options.passes.more_passes:
        runner.add(pass_name)
    runner.run()

    # The binary writer honors the debug info setting, keep it installed while writing
    with installed(pass_options):
        write_module(options, module, outfile, outfile_sourcemap)
