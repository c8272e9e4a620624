"""
Service-level exceptions, translated into response envelopes by the routes
"""


class ServiceError(Exception):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(ServiceError):
    """Record is absent or belongs to another user"""


class ValidationError(ServiceError):
    pass


class UpstreamServiceError(ServiceError):
    """The language-model API failed"""


class ColumnInferenceError(ServiceError):
    """Column detection produced nothing usable"""
