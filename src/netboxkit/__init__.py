"""netboxkit: create/read client for the NetBox REST API."""

from .netbox.client import NetboxClient
from .schemas.codes import RespCode
from .schemas.response import ReturnResponse
from .utils.slug import slugify

__all__ = ["NetboxClient", "RespCode", "ReturnResponse", "slugify"]
