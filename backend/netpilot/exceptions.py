"""
Errors raised by the QoS core.

Validation errors are raised before any command runs; command errors carry the
process failure together with the captured output.
"""


class QoSError(Exception):
    """Base class for QoS core errors"""


class RuleValidationError(QoSError):
    """A rule is missing a required setting or carries an invalid one"""


class UnsupportedAlgorithmError(RuleValidationError):
    """The requested algorithm tag is not one we know how to install"""

    def __init__(self, algorithm: str):
        self.algorithm = algorithm
        super().__init__(f"unsupported QoS algorithm: {algorithm}")


class CommandExecutionError(QoSError):
    """An external command failed to run or exited non-zero"""

    def __init__(self, message: str, exit_code: int = None, output: str = ""):
        self.exit_code = exit_code
        self.output = output
        super().__init__(message)
