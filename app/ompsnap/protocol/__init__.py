"""OMP protocol access: tag reader, creation documents and the service client."""

from ompsnap.protocol.document import CreationDocument, DocumentBuilder
from ompsnap.protocol.service import OmpService, ProtocolError, ProtocolService
from ompsnap.protocol.tags import TagEvent, iter_tags

__all__ = [
    "CreationDocument",
    "DocumentBuilder",
    "OmpService",
    "ProtocolError",
    "ProtocolService",
    "TagEvent",
    "iter_tags",
]
