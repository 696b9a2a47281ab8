from defaultlinks.schemas.schemas import (
    OKResponse,
    NamespaceCreate, NamespaceUpdate, NamespaceResponse,
    PageCreate, PageUpdate, PageRename,
    PageResponse, PageSummary,
    DefaultLinksResponse, RenderResponse,
    CONTENT_FORMATS,
)

__all__ = [
    "OKResponse",
    "NamespaceCreate", "NamespaceUpdate", "NamespaceResponse",
    "PageCreate", "PageUpdate", "PageRename",
    "PageResponse", "PageSummary",
    "DefaultLinksResponse", "RenderResponse",
    "CONTENT_FORMATS",
]
