"""Structured API errors.

Every error a handler raises on purpose derives from ``ApiError`` and is
rendered as the protocol's ``ErrorResponse`` envelope. Anything else that
escapes a handler is reported as an ``InternalFault``.
"""


class ApiError(Exception):
    status_code = 400
    code = "InvalidRequest"
    type = "Sender"

    def __init__(self, message: str, status_code: int = None, code: str = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code

    def __str__(self) -> str:
        return f"{self.status_code} {self.code}: {self.message}"


class ValidationError(ApiError):
    code = "ValidationError"


class LoadBalancerNotFound(ApiError):
    code = "LoadBalancerNotFound"

    def __init__(self, name: str):
        super().__init__(f"There is no ACTIVE Load Balancer named '{name}'")


class AccessPointNotFound(ApiError):
    code = "AccessPointNotFound"

    def __init__(self):
        super().__init__("The specified load balancer does not exist.")


class InvalidInstance(ApiError):
    code = "InvalidInstance"

    def __init__(self, instance_id: str):
        super().__init__(f'InvalidInstance found in [{instance_id}]. Invalid id: "{instance_id}"')


class ListenerNotFound(ApiError):
    code = "ListenerNotFound"

    def __init__(self):
        super().__init__("The load balancer does not have a listener configured at the specified port.")


class DuplicateListener(ApiError):
    # The real service answers a port clash with a bare 400.
    code = "400"

    def __init__(self):
        super().__init__("Bad Request")


class InvalidInput(ApiError):
    code = "InvalidInput"


class InvalidAction(ApiError):
    code = "InvalidParameterValue"

    def __init__(self):
        super().__init__("Unrecognized Action")


class InternalFault(ApiError):
    status_code = 500
    code = "InternalFailure"
    type = "Receiver"

    def __init__(self, message: str = "The server encountered an internal error."):
        super().__init__(message)
