#
# This file is distributed under the MIT License. See LICENSE.md for details.
#

from .cli import run

run()
