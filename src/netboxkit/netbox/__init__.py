"""
NetBox client package.

`NetboxClient` holds the connection settings; `request` builds headers and URLs.
"""

from .client import NetboxClient

__all__ = ["NetboxClient"]
