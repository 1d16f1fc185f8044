"""
Content Package Metadata

Placeholder for metadata requests (GET /{content_id}?metadata).
"""

import logging

from fastapi.responses import PlainTextResponse

logger = logging.getLogger(__name__)


def resolve_metadata_request(content_id: str) -> PlainTextResponse:
    """Metadata lookups are not available yet; always answers 501."""
    logger.info(f"Metadata requests are not implemented yet (requested for {content_id}).")
    return PlainTextResponse("Not implemented.", status_code=501)
