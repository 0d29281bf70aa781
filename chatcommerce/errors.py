"""Error taxonomy for the message decision pipeline."""


class ChatCommerceError(Exception):
    """Base class for pipeline errors."""


class AnalysisError(ChatCommerceError):
    """The message analyzer was unreachable, timed out, or returned unusable output."""


class PersistenceError(ChatCommerceError):
    """A keyed record could not be read from or written to the store."""


class InvalidInputError(ChatCommerceError):
    """The inbound message was rejected before entering the pipeline."""


class OrderCreationError(ChatCommerceError):
    """The final order record could not be written after confirmation."""
