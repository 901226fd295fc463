"""
Logging Sanitizer Utility

Strips credentials and buyer contact details from request payloads before
they are written to the JSON logs.
"""

from typing import Dict, Any, Optional


# Fields that should never be logged
SENSITIVE_FIELDS = {
    'password',
    'confirm_password',
    'current_password',
    'new_password',
    'secret',
    'token',
    'api_key',
    'access_token',
    'refresh_token',
    'session_id',
    'csrf_token',
    'payment_proof',
    'proof_reference',
    'contact_phone',
    'delivery_contact_phone',
    'factory_contact_phone',
}


def sanitize_dict(data: Optional[Dict[str, Any]], redact_text: str = '[REDACTED]') -> Optional[Dict[str, Any]]:
    """
    Sanitize a dictionary by replacing sensitive field values with redaction text.

    Args:
        data: Dictionary to sanitize (typically ``request.get_json()``)
        redact_text: Text to use for redacted values

    Returns:
        Sanitized copy; nested dictionaries and lists of dictionaries are sanitized too

    Example:
        >>> sanitize_dict({'email': 'a@b.c', 'password': 'secret123'})
        {'email': 'a@b.c', 'password': '[REDACTED]'}
    """
    if not data:
        return data

    sanitized = {}
    for key, value in data.items():
        if str(key).lower() in SENSITIVE_FIELDS:
            sanitized[key] = redact_text
        elif isinstance(value, dict):
            sanitized[key] = sanitize_dict(value, redact_text)
        elif isinstance(value, list):
            sanitized[key] = [
                sanitize_dict(item, redact_text) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            sanitized[key] = value

    return sanitized


def sanitize_exception_message(exception: Exception) -> str:
    """Return the exception text unless it mentions a sensitive field name."""
    message = str(exception)

    if any(field in message.lower() for field in SENSITIVE_FIELDS):
        return f"{type(exception).__name__}: [Message contains sensitive data]"

    return message
