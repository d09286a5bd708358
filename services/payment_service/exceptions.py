class PaymentFlowError(Exception):
    """Base class for errors raised inside the payment flow."""


class ConfigurationError(PaymentFlowError):
    """Raised when required configuration is missing or malformed."""


class MissingDestinationError(ConfigurationError):
    def __init__(self, method):
        self.method = method
        super().__init__(f"No payment destination configured for method '{method}'")


class OrderExistsError(PaymentFlowError):
    def __init__(self, owner_id: str):
        self.owner_id = owner_id
        super().__init__(f"Owner '{owner_id}' already has a pending order")


class InvalidSubmissionError(PaymentFlowError):
    """Raised when a selection or form carries values the flow cannot use."""
