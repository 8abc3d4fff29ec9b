"""Application-level errors."""


class MessageDeliveryError(Exception):
    """Sending a message to the agent failed after the user message was stored.

    The underlying failure is chained as `__cause__`.
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)
