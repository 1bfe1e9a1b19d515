#
# This file is distributed under the MIT License. See LICENSE.md for details.
#

import logging
import os
import shlex
import signal
from shutil import which
from subprocess import Popen
from typing import Iterable, List, Union

logger = logging.getLogger(__name__)


class CommandNotFound(Exception):
    pass


def shlex_join(split_command: Iterable[Union[str, bytes]]) -> str:
    return " ".join(shlex.quote(os.fsdecode(arg)) for arg in split_command)


def get_command(command: Union[str, bytes]) -> str:
    command = os.fsdecode(command)
    if os.path.isfile(command):
        return command

    path = which(command)
    if not path:
        raise CommandNotFound(f'Couldn\'t find "{command}".')
    return os.path.abspath(path)


def try_run(command: List[Union[str, bytes]], dry_run: bool = False) -> int:
    """Run `command` to completion and return its exit status, SIGINT goes to the child"""
    command = [get_command(command[0]), *command[1:]]
    logger.info("%s", shlex_join(command))

    if dry_run:
        return 0

    try:
        signal.signal(signal.SIGINT, signal.SIG_IGN)
        process = Popen(command, preexec_fn=lambda: signal.signal(signal.SIGINT, signal.SIG_DFL))
        return process.wait()
    finally:
        signal.signal(signal.SIGINT, signal.SIG_DFL)
