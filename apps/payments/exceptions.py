class PaymentError(Exception):
    """Base class for billing errors."""


class SignatureInvalid(PaymentError):
    pass


class PayloadParseError(PaymentError):
    pass


class PaymentNotFound(PaymentError):
    pass


class ProcessingError(PaymentError):
    """Raised inside a confirmation transaction; the transaction is rolled back."""


class ProvisioningError(ProcessingError):
    pass


class OrderGatewayError(PaymentError):
    pass


class NotificationError(PaymentError):
    pass
