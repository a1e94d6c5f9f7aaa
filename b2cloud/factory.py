"""Session factory.

Provides :func:`connect`, the single entry-point for turning a raw config
dict (or environment variables) into an authenticated
:class:`~b2cloud.session.Session`.
"""

from b2cloud.base.config import B2Config, validate_config
from b2cloud.session import Session


def connect(config: dict | B2Config | None = None) -> Session:
    """
    Validate a configuration and authenticate a new session with it.
    Args:
        config: Configuration dictionary or model; missing values fall back
            to the B2_* environment variables.
    Returns:
        An authenticated session owning its transport.
    Raises:
        pydantic.ValidationError: If the config is invalid.
        ApiError: If the service rejects the credentials.
        TransportError: If the service could not be reached.
    """
    configObj = validate_config(config or {})
    return Session.authenticate(
        configObj.account_id,
        configObj.application_key,
        api_url=configObj.api_url,
        timeout=configObj.timeout,
    )
