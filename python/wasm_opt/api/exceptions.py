#
# This file is distributed under the MIT License. See LICENSE.md for details.
#


class OptimizationError(Exception):
    pass


class EngineNotFound(OptimizationError):
    pass


class InvalidModule(OptimizationError):
    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class ValidationFailed(OptimizationError):
    def __init__(self, path):
        self.path = path
        super().__init__(f"{path}: module failed validation")
