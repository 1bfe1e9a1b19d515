#
# This file is distributed under the MIT License. See LICENSE.md for details.
#

import logging
import sys
from typing import Sequence

import click

from wasm_opt.errors import ExecutionError, WasmOptError
from wasm_opt.integration import Command, run_from_command_args

from .support import CommandNotFound, try_run

logger = logging.getLogger(__name__)


def run_subprocess(command: Command, dry_run: bool) -> int:
    try:
        return try_run(command.to_argv(), dry_run)
    except CommandNotFound as e:
        logger.error("%s", e)
        return 1


@click.command(
    context_settings={
        # Everything after our own options belongs to wasm-opt
        "ignore_unknown_options": True,
        "allow_interspersed_args": False,
    }
)
@click.option("--verbose", is_flag=True, help="Log what is being done.")
@click.option(
    "--fallback",
    is_flag=True,
    help=(
        "If the arguments can't be translated, run the real wasm-opt with the same"
        " arguments instead of failing."
    ),
)
@click.option(
    "--program",
    default="wasm-opt",
    show_default=True,
    help="The wasm-opt executable used by --fallback.",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="With --fallback, print the wasm-opt command line instead of running it.",
)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def wasm_opt(verbose, fallback, program, dry_run, args):
    """
    Run a wasm-opt command line in-process.

    The supported subset of wasm-opt's arguments is translated and executed
    through libbinaryen without spawning wasm-opt, e.g.
    `wasm-opt-py input.wasm -Oz -o output.wasm`.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    command = Command(program, args)
    try:
        run_from_command_args(command)
    except ExecutionError as e:
        logger.error("%s", e)
        sys.exit(1)
    except WasmOptError as e:
        if not fallback:
            logger.error("%s", e)
            sys.exit(1)
        logger.info("%s, falling back to %s", e, program)
        sys.exit(run_subprocess(command, dry_run))


def main(args: Sequence[str]) -> None:
    # pylint: disable=E1120 no-value-for-parameter
    wasm_opt(args=args, prog_name="wasm-opt-py")


def run():
    main(sys.argv[1:])


if __name__ == "__main__":
    run()
