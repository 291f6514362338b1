# commission_api/common/errors.py
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from commission_api.common.http import fail


class APIError(Exception):
    """Custom API Error class."""
    def __init__(self, code, message, status_code=400, payload=None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.payload = payload


class ValidationError(APIError):
    """Malformed month token, missing field, negative money..."""
    def __init__(self, message, field=None):
        super().__init__("VALIDATION_ERROR", message, status_code=422,
                         payload={"field": field} if field else None)
        self.field = field


class NotFoundError(APIError):
    def __init__(self, message):
        super().__init__("NOT_FOUND", message, status_code=404)


class ConflictError(APIError):
    def __init__(self, message):
        super().__init__("CONFLICT", message, status_code=409)


class TransientComputationError(Exception):
    """One employee's recalculation failed inside a batch; siblings continue."""
    def __init__(self, employee_id, month, reason):
        super().__init__(f"employee {employee_id} / {month}: {reason}")
        self.employee_id = employee_id
        self.month = month
        self.reason = reason


class AuditFailure(Exception):
    """History entry could not be written. Never reaches the caller."""


def register_error_handlers(app):
    @app.errorhandler(APIError)
    def _api_error(e: APIError):
        from commission_api.extensions import db
        db.session.rollback()
        return fail(message=e.message, status=e.status_code, code=e.code, detail=e.payload)

    @app.errorhandler(HTTPException)
    def _http(e: HTTPException):
        return fail(e.description or e.name, status=e.code or 500)

    @app.errorhandler(IntegrityError)
    def _integrity(e: IntegrityError):
        # 409 for unique/FK violations
        from commission_api.extensions import db
        db.session.rollback()
        return fail("Conflict / integrity error", status=409, code="CONSTRAINT_ERROR",
                    detail=str(e.orig) if getattr(e, "orig", None) else str(e))

    @app.errorhandler(Exception)
    def _500(e: Exception):
        app.logger.exception(e)
        return fail("Internal server error", status=500)
