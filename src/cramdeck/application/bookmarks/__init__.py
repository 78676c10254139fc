# Application Bookmarks Package
from .service import BookmarkService

__all__ = ["BookmarkService"]
