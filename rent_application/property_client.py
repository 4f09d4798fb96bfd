"""
Property backend client
Fetches property documents (with embedded units) for lease history
"""

from typing import Any, Dict, Iterable, Optional
import logging

import httpx

from rent_application.rent_accounting.core.models import ref_id
from rent_application.rent_accounting.core.occupancy import PropertyLookupError

logger = logging.getLogger(__name__)


class PropertyClient:
    """Client for the property backend's GET /properties/<id>"""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        token: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {"Authorization": f"Bearer {token}"} if token else {}
        self.transport = transport

    @classmethod
    def from_config(cls, app_config) -> 'PropertyClient':
        return cls(
            app_config['PROPERTY_API_URL'],
            timeout=app_config.get('PROPERTY_API_TIMEOUT', 10.0),
            token=app_config.get('PROPERTY_API_TOKEN'),
        )

    def get_property(self, property_id: str) -> Dict[str, Any]:
        """
        Fetch one property
        Raises PropertyLookupError on transport errors and non-2xx responses
        """
        url = f"{self.base_url}/properties/{property_id}"
        try:
            with httpx.Client(timeout=self.timeout, headers=self.headers, transport=self.transport) as client:
                response = client.get(url)
                response.raise_for_status()
                property_doc = response.json()
        except httpx.HTTPStatusError as e:
            raise PropertyLookupError(
                f"Property {property_id} lookup failed with status {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise PropertyLookupError(f"Property {property_id} lookup failed: {e}") from e

        if not isinstance(property_doc, dict):
            raise PropertyLookupError(
                f"Property {property_id} lookup returned {type(property_doc).__name__}, expected an object"
            )
        return property_doc

    __call__ = get_property


class PayloadPropertyLookup:
    """
    Serve properties already included in a request, falling back to a client
    """

    def __init__(self, properties: Iterable[Dict[str, Any]] = (), fallback: Optional[PropertyClient] = None):
        self.properties = {ref_id(p.get('_id')): p for p in properties if p.get('_id') is not None}
        self.fallback = fallback

    def __call__(self, property_id: str) -> Dict[str, Any]:
        property_doc = self.properties.get(str(property_id))
        if property_doc is not None:
            return property_doc
        if self.fallback is None:
            raise PropertyLookupError(f"Property {property_id} not found in request")

        logger.debug(f"🌐 Fetching property {property_id} from property backend")
        return self.fallback.get_property(property_id)
