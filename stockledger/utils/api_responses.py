from flask import jsonify, Response
from typing import Any, Dict, Optional, List


class APIResponse:
    """Standardized JSON envelope for the stock API"""

    @staticmethod
    def success(data: Any = None, message: str = "Success", status_code: int = 200, **extra) -> Response:
        """Standard success response; ``extra`` keys sit next to ``data``"""
        response_data = {
            'success': True,
            'message': message,
            'data': data
        }
        response_data.update(extra)
        return jsonify(response_data), status_code

    @staticmethod
    def error(message: str, errors: Optional[Dict] = None, status_code: int = 400) -> Response:
        """Standard error response"""
        response_data = {
            'success': False,
            'message': message,
            'errors': errors or {}
        }
        return jsonify(response_data), status_code

    @staticmethod
    def validation_error(errors: Dict[str, List[str]]) -> Response:
        return APIResponse.error("Validation failed", errors=errors, status_code=422)

    @staticmethod
    def not_found(resource: str = "Resource", errors: Optional[Dict] = None, message: Optional[str] = None) -> Response:
        return APIResponse.error(message or f"{resource} not found", errors=errors, status_code=404)

    @staticmethod
    def forbidden(message: str = "Access denied") -> Response:
        return APIResponse.error(message, status_code=403)

    @staticmethod
    def conflict(message: str, errors: Optional[Dict] = None) -> Response:
        """The request is valid but the current stock state refuses it"""
        return APIResponse.error(message, errors=errors, status_code=409)

    @staticmethod
    def unavailable(message: str = "Service temporarily unavailable") -> Response:
        return APIResponse.error(message, status_code=503)


__all__ = ['APIResponse']
