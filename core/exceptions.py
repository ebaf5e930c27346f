"""Exception hierarchy for the configurator.

ConfiguratorException (base)
├── StorageUnavailable
├── TransactionFailure
├── NotFoundException
│   ├── ConfigurationNotFoundException
│   ├── CartNotFoundException
│   └── CartItemNotFoundException
├── InvalidConfigurationError
├── InvalidStateTransition
└── ImmutableEntityError

Validation failures are not exceptions: they are returned as
``ValidationResult(is_valid=False, errors=[...])``.
"""


class ConfiguratorException(Exception):
    """Base exception for all configurator errors.

    Attributes:
        message: Human-readable error message
        details: Optional dict with additional context (entity IDs, states, etc.)
    """

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.__class__.__name__}('{self.message}', {details_str})"
        return f"{self.__class__.__name__}('{self.message}')"


class StorageUnavailable(ConfiguratorException):
    """Raised when the backing store cannot be reached. Never retried."""

    def __init__(self, reason: str):
        super().__init__(f"Storage unavailable: {reason}", details={"reason": reason})
        self.reason = reason


class TransactionFailure(ConfiguratorException):
    """Raised when a transaction was rolled back; nothing it wrote is visible."""

    def __init__(self, reason: str):
        super().__init__(f"Transaction failed: {reason}", details={"reason": reason})
        self.reason = reason


class NotFoundException(ConfiguratorException):
    """Base exception for missing entities."""
    pass


class ConfigurationNotFoundException(NotFoundException):
    def __init__(self, configuration_id: str):
        super().__init__(
            f"Configuration {configuration_id} not found",
            details={"configuration_id": configuration_id},
        )
        self.configuration_id = configuration_id


class CartNotFoundException(NotFoundException):
    def __init__(self, cart_id: str):
        super().__init__(f"Cart {cart_id} not found", details={"cart_id": cart_id})
        self.cart_id = cart_id


class CartItemNotFoundException(NotFoundException):
    def __init__(self, cart_id: str, item_id: str):
        super().__init__(
            f"Cart item {item_id} not found in cart {cart_id}",
            details={"cart_id": cart_id, "item_id": item_id},
        )
        self.cart_id = cart_id
        self.item_id = item_id


class InvalidConfigurationError(ConfiguratorException):
    """Raised by the cart when asked to add a configuration that failed validation."""

    def __init__(self, configuration_id: str, errors: list[str]):
        super().__init__(
            f"Configuration {configuration_id} is invalid: {'; '.join(errors)}",
            details={"configuration_id": configuration_id, "errors": errors},
        )
        self.configuration_id = configuration_id
        self.errors = list(errors)


class InvalidStateTransition(ConfiguratorException):
    def __init__(self, from_state: str, to_state: str, allowed: list[str]):
        super().__init__(
            f"Cannot transition from {from_state} to {to_state}. Allowed: {allowed}",
            details={"from_state": from_state, "to_state": to_state},
        )
        self.from_state = from_state
        self.to_state = to_state


class ImmutableEntityError(ConfiguratorException):
    """Raised when updating an entity that may no longer change."""

    def __init__(self, entity: str, entity_id: str, reason: str):
        super().__init__(
            f"{entity} {entity_id} cannot be modified: {reason}",
            details={"entity": entity, "entity_id": entity_id},
        )
        self.entity = entity
        self.entity_id = entity_id
