"""
Authentication error handling.

Turns errors raised by the auth stack (simplejwt, DRF) into messages fit for
display, and tells callers when a session must be re-established.
"""
import logging

logger = logging.getLogger(__name__)

SESSION_EXPIRED_MESSAGE = 'Your session has expired. Please log in again.'
INVALID_CREDENTIALS_MESSAGE = 'Invalid email or password. Please try again.'
EMAIL_NOT_CONFIRMED_MESSAGE = 'Email not confirmed. Please check your email and click the confirmation link.'
ALREADY_REGISTERED_MESSAGE = 'An account with this email already exists.'
GENERIC_MESSAGE = 'Authentication failed. Please try again.'


def get_error_message(error):
    """Best-effort plain text of an exception or DRF error detail"""
    if error is None:
        return ''
    detail = getattr(error, 'detail', None)
    if isinstance(detail, dict):
        inner = detail.get('detail', detail)
        return str(inner)
    if detail is not None:
        return str(detail)
    return str(error)


def handle_auth_error(error):
    """Return a user-facing message for an authentication failure"""
    message = get_error_message(error)
    logger.warning(f"Auth error: {message}")

    if 'Refresh Token Not Found' in message:
        return SESSION_EXPIRED_MESSAGE

    if 'Invalid login credentials' in message or 'No active account' in message:
        return INVALID_CREDENTIALS_MESSAGE

    if 'Email not confirmed' in message:
        return EMAIL_NOT_CONFIRMED_MESSAGE

    if 'User already registered' in message or 'already exists' in message:
        return ALREADY_REGISTERED_MESSAGE

    return message or GENERIC_MESSAGE


def is_session_invalid(error):
    """True when the error means the caller has to log in again"""
    message = get_error_message(error)
    return (
        'Refresh Token Not Found' in message
        or 'Invalid Refresh Token' in message
        or 'expired' in message
    )
