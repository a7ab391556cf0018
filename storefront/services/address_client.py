# storefront/services/address_client.py
import requests
from requests import RequestException

from storefront.utils.retry import http_retry
from storefront.utils.settings import ADDRESS_SERVICE_URL, ADDRESS_SERVICE_TIMEOUT
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

#fields copied into the order snapshot, anything else the address book returns is dropped
SNAPSHOT_FIELDS = (
    "full_name",
    "phone",
    "alt_phone",
    "email",
    "country",
    "state",
    "city",
    "postal_code",
    "line1",
    "line2",
    "reference",
    "delivery_notes",
)


class AddressNotFound(Exception):
    pass


class AddressClient:
    """
    Read-only client of the address book service.
    """

    def __init__(self, base_url: str | None = None, timeout: int = ADDRESS_SERVICE_TIMEOUT):
        self.base_url = (base_url or ADDRESS_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def _get(self, url: str) -> requests.Response:
        logger.info(f"AddressClient GET {url}")
        return requests.get(url, timeout=self.timeout)

    def find_owned_address(self, user_id: int, address_id: int) -> dict:
        """
        Address `address_id` of user `user_id`, reduced to the snapshot fields.
        Raises AddressNotFound when it does not exist, is not the user's
        or the address book cannot be reached.
        """
        url = f"{self.base_url}/users/{user_id}/addresses/{address_id}"
        try:
            resp = self._get(url)
        except RequestException as e:
            logger.error(f"Address service unreachable: {e}")
            raise AddressNotFound(address_id) from e

        if resp.status_code in (403, 404):
            raise AddressNotFound(address_id)
        try:
            resp.raise_for_status()
        except RequestException as e:
            raise AddressNotFound(address_id) from e

        try:
            data = resp.json()
            owner = int(data["user_id"])
        except (ValueError, TypeError, KeyError) as e:
            logger.error(f"Unreadable address {address_id} for user {user_id}: {e}")
            raise AddressNotFound(address_id) from e

        #an address without an owner is not trusted as the user's
        if owner != int(user_id):
            raise AddressNotFound(address_id)

        return {k: data.get(k) for k in SNAPSHOT_FIELDS}
