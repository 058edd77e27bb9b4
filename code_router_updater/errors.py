from __future__ import annotations


class UpdaterError(RuntimeError):
    """Base class for failures reported to the operator with exit code 1."""


class ArgumentError(UpdaterError):
    pass


class FetchError(UpdaterError):
    def __init__(self, message: str, *, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class AuthenticationError(FetchError):
    pass


class ConfigReadError(UpdaterError):
    def __init__(self, path: str, detail: str):
        self.path = path
        self.detail = detail
        super().__init__(f"Config file '{path}' is not valid JSON: {detail}")


class ConfigWriteError(UpdaterError):
    pass
