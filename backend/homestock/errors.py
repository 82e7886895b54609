# Overview: Stable error taxonomy shared by services, routes and the CLI.

"""
Error kinds surfaced to callers.

Every kind carries a stable ``code`` and the HTTP status the API layer maps
it to. None of them is retried by the core.

- Unauthorized: capability check failed. Never reveals whether the target
  exists.
- NotFound: entity absent inside a home the caller can already read.
- DuplicateKey: uniqueness violation (per-home names, global scan tokens).
- DanglingReference: a parent row needed for tenant resolution is missing.
- ConstraintViolation: invalid value, enum, cycle, or payload shape.
"""


class HomeStockError(Exception):
    code = "error"
    status_code = 400
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    def to_dict(self) -> dict:
        return {"error": self.code, "message": str(self)}


class Unauthorized(HomeStockError):
    code = "unauthorized"
    status_code = 403
    default_message = "Access denied"


class NotFound(HomeStockError):
    code = "not_found"
    status_code = 404
    default_message = "Not found"


class DuplicateKey(HomeStockError):
    code = "duplicate_key"
    status_code = 409
    default_message = "Duplicate key"


class DanglingReference(HomeStockError):
    code = "dangling_reference"
    status_code = 409
    default_message = "Referenced entity is missing"


class ConstraintViolation(HomeStockError):
    code = "constraint_violation"
    status_code = 400
    default_message = "Constraint violated"
