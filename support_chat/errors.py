class SupportChatException(Exception):
    pass


class ImproperlyConfigured(SupportChatException):
    pass


class NotFoundError(SupportChatException):
    """ Raised by the store when an update targets an unknown identifier """


class ProtocolError(SupportChatException):
    """ Raised for chat channel events that cannot be handled """


class ExternalServiceAPIError(SupportChatException):
    """ Exception to mark network communication errors """

    def __init__(self, code, message):
        self.code = code
        super().__init__(message)


class CompletionTimeoutError(ExternalServiceAPIError):
    """ The completion service did not answer within the configured wait """

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(504, f"Completion request timed out after {timeout:g}s")
