"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class NotFoundError(DomainException):
    """Referenced account, biller, schedule or transaction does not exist"""

    def __init__(self, entity: str, entity_id: object):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class SchemaMismatchError(DomainException):
    """Database rejected a table or column the application relies on"""

    pass


class DuplicatePaymentError(DomainException):
    """A uniqueness rule rejected a second write for the same obligation"""

    pass


class InvalidEntityError(DomainException):
    """Entity data is malformed or violates a business rule"""

    pass


class PaymentPolicyError(DomainException):
    """Payment is well-formed but not allowed by installment policy"""

    pass
