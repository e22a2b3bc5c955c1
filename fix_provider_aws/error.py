from typing import List


class ProviderError(Exception):
    pass


class ValidationError(ProviderError):
    """
    The given configuration does not satisfy the resource schema.
    Raised before any remote call is made.
    """

    def __init__(self, kind: str, errors: List[str]) -> None:
        super().__init__(f"Invalid configuration for {kind}: " + "; ".join(errors))
        self.kind = kind
        self.errors = errors


class UnknownResourceKind(ProviderError):
    def __init__(self, kind: str) -> None:
        super().__init__(f"Resource kind {kind} is not supported by this provider")
        self.kind = kind


class RemoteError(ProviderError):
    """
    A call to the remote API has failed.
    The underlying exception is available as cause.
    """

    operation: str = "calling"

    def __init__(self, kind: str, display: str, cause: Exception) -> None:
        super().__init__(f"error {self.operation} {display}: {cause}")
        self.kind = kind
        self.cause = cause


class RemoteCreateError(RemoteError):
    operation = "creating"


class RemoteReadError(RemoteError):
    operation = "reading"


class RemoteDeleteError(RemoteError):
    operation = "deleting"
