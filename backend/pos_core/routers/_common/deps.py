"""
Request-scoped dependencies shared by all routers.

The owning business comes from the X-Business-ID header. Token issuing
and verification live outside this service; whatever sits in front of it
is expected to set the header from the authenticated identity.
"""

from fastapi import Header, HTTPException, status

from shared.config.logging import get_logger

logger = get_logger(__name__)

BUSINESS_HEADER = "X-Business-ID"


def current_business_id(
    x_business_id: str | None = Header(default=None, alias=BUSINESS_HEADER),
) -> int:
    """
    Resolve the caller's business id.

    Raises:
        HTTPException 401: Header missing or not a positive integer.
    """
    if x_business_id is None:
        logger.warning("Missing business header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Falta el encabezado {BUSINESS_HEADER}",
        )
    try:
        business_id = int(x_business_id)
    except ValueError:
        business_id = 0
    if business_id <= 0:
        logger.warning("Invalid business header", value=x_business_id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Encabezado {BUSINESS_HEADER} inválido",
        )
    return business_id
