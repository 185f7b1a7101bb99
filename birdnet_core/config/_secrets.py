"""Random secret generation for session and OAuth client secrets."""

from __future__ import annotations

import base64
import logging
import secrets

from birdnet_core.errors import CategorizedError, ErrorCategory

logger = logging.getLogger("birdnet_core.config")

SECRET_BYTES = 32


def generate_random_secret() -> str | None:
    """Return a URL-safe, unpadded base64 secret with 256 bits of entropy.

    The result is always 43 characters long. If the system entropy source
    fails the error is logged and None is returned; callers treat None as
    "secret not set".
    """
    try:
        raw = secrets.token_bytes(SECRET_BYTES)
    except (OSError, NotImplementedError) as e:
        err = CategorizedError.wrap(e, ErrorCategory.SYSTEM, operation="generate-random-secret")
        logger.error("Failed to generate random secret: %s", err)
        return None
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")
