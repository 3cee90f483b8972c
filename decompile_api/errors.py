class DecompileError(Exception):
    """A request-scoped failure carrying the status and message sent to the client."""

    status_code = 500
    message = "Internal decompilation error"

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self):
        return {"error": self.message}


class EmptyPayload(DecompileError):
    status_code = 400
    message = "No bytecode provided"


class PayloadTooLarge(DecompileError):
    status_code = 413

    def __init__(self, max_size):
        super().__init__(f"Payload too large. Maximum size is {max_size} bytes")


class MalformedBytecode(DecompileError):
    status_code = 400
    message = "Invalid bytecode: too short"


class StagingIOError(DecompileError):
    pass


class DecompilerUnavailable(DecompileError):
    message = "Decompiler binary not found"


class DecompileTimeout(DecompileError):
    status_code = 504
    message = "Decompilation timeout exceeded"


class OutputTooLarge(DecompileError):
    status_code = 413
    message = "Bytecode too complex or output too large"


class EmptyDecompilation(DecompileError):
    message = "Decompilation failed: empty output"


class DecompileFailed(DecompileError):
    pass
