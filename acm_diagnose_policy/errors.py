class DiagnosisError(Exception):
    """
    Base class for failures surfaced to the caller as an error result.
    """


class InvalidArgumentsError(DiagnosisError):
    def __init__(self, field: str, message: str, hint: str = ""):
        self.field = field
        self.message = message
        self.hint = hint
        text = f"validation error for '{field}': {message}"
        if hint:
            text += f" (hint: {hint})"
        super().__init__(text)


class PolicyNotFoundError(DiagnosisError):
    def __init__(self, name: str, namespace: str = ""):
        self.name = name
        self.namespace = namespace
        if namespace:
            text = (
                f"policy {name!r} not found in namespace {namespace!r} "
                "or any other namespace"
            )
        else:
            text = f"policy {name!r} not found in any namespace"
        super().__init__(text)


class ResourceAccessError(DiagnosisError):
    """
    A get/list call against the resource-access capability failed.
    """


class ResourceNotFoundError(ResourceAccessError):
    pass


class OperationCanceledError(DiagnosisError):
    def __init__(self, message: str = "operation canceled"):
        super().__init__(message)


class RuleValidationError(DiagnosisError, ValueError):
    """
    A classification rule violates the rule contract.
    """


def format_error_for_user(err: BaseException | None) -> str:
    if err is None:
        return ""

    if isinstance(err, OperationCanceledError):
        return "Operation was canceled before completion."

    if isinstance(err, ResourceAccessError) and not isinstance(
        err, ResourceNotFoundError
    ):
        return (
            f"Failed to read policy resources: {err}. "
            "Please verify the snapshot or cluster access is available."
        )

    return str(err)
