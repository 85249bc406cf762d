class EncodingError(Exception):
    """Raised when the encoder could not produce an image."""

    def __init__(
        self,
        message: str,
        input_path: str | None = None,
        returncode: int | None = None,
        stderr: str | None = None,
    ):
        self.input_path = input_path
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


class EncodingTimeout(EncodingError):
    """Raised when an encoder call runs past its time limit."""

    pass


class ProbeError(Exception):
    """Raised when media metadata cannot be read."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Could not probe {path}: {reason}")
