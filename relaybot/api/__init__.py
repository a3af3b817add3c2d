"""HTTP clients for the processing backend and the quote archive."""

from .gateway import (  # noqa: F401
    BackendGateway,
    CommandRequest,
    CommandResponse,
    LinkRequest,
    LinkResponse,
)
from .quotes import Quote, QuoteClient  # noqa: F401
