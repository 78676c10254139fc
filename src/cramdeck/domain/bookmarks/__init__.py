# Domain Bookmarks Package
from .models import Bookmarks

__all__ = ["Bookmarks"]
