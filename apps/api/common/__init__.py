from .errors import (
    privacy_operation_error_handler,
    register_api_error_handlers,
    request_validation_error_handler,
)

__all__ = [
    "privacy_operation_error_handler",
    "register_api_error_handlers",
    "request_validation_error_handler",
]
