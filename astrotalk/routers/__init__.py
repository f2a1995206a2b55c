"""Route modules mounted by the gateway.

Each module owns one URL prefix and is gated on the shared database
connection through ``require_database``.
"""
from astrotalk.models import ResourceIndex


async def resource_index(database, resource: str, collection: str) -> ResourceIndex:
    """Summarise a route module's backing collection."""
    documents = await database.collection(collection).estimated_document_count()
    return ResourceIndex(resource=resource, collection=collection, documents=documents)
