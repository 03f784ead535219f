from clients.quickfix_client_sdk.errors import ApiError


class ErrorMapper:
    _KNOWN_CODES = {
        "TIMEOUT_ERROR": ("The server took too long to respond.", "Retry the action."),
        "NETWORK_ERROR": ("The QuickFix API is unreachable.", "Check your connection and retry."),
        "INVALID_RESPONSE": ("The server returned an unexpected response.", "Retry, then report it if it persists."),
    }

    _STATUS_HINTS = {
        401: ("UNAUTHORIZED", "Session expired. Please log in again.", "Log in again."),
        403: ("PERMISSION_DENIED", "You do not have permission for this action.", "Ask an administrator for access."),
        404: ("NOT_FOUND", "The record no longer exists.", "Refresh the list."),
        409: ("CONFLICT", "The record was changed by someone else.", "Refresh the list and retry."),
        422: ("VALIDATION_ERROR", "The request failed validation.", "Review the highlighted fields."),
        500: ("INTERNAL_ERROR", "Internal server error.", "Retry in a few seconds."),
    }

    @classmethod
    def to_payload(cls, error: Exception) -> dict:
        if isinstance(error, ApiError):
            status_code = error.status_code or -1
            mapped = cls._STATUS_HINTS.get(status_code)
            if mapped is None and status_code == 400:
                mapped = cls._STATUS_HINTS[422]
            if mapped is None and status_code >= 500:
                mapped = cls._STATUS_HINTS[500]
            if mapped is not None:
                code, message, suggestion = mapped
            else:
                message, suggestion = cls._KNOWN_CODES.get(
                    error.code,
                    (error.message, "Contact support with the trace id."),
                )
                code = error.code
            return {
                "code": code,
                "message": message,
                "backend_message": error.message if error.status_code else None,
                "details": error.details,
                "trace_id": error.trace_id,
                "suggestion": suggestion,
            }
        return {
            "code": "INTERNAL_ERROR",
            "message": str(error),
            "backend_message": None,
            "details": None,
            "trace_id": None,
            "suggestion": "Retry, and report the incident if it persists.",
        }

    @classmethod
    def to_display_message(cls, error: Exception, fallback: str | None = None) -> str:
        payload = cls.to_payload(error)
        backend_message = payload["backend_message"]
        if backend_message and backend_message != "HTTP request failed":
            return backend_message
        if isinstance(error, ApiError):
            return payload["message"] or fallback or "Request failed."
        return fallback or payload["message"] or "Request failed."
