"""REST probe: GET <rest>/api/v2/info."""

import requests

from vcheck.models import ValidatorTarget
from vcheck.probes.http_base import HTTPProbe, join_url

INFO_PATH = "api/v2/info"


class RESTProbe(HTTPProbe):
    """Probe for the REST gateway.

    Appends ``api/v2/info`` to the roster's REST base URL, tolerating a
    trailing slash or its absence, and issues a GET.
    """

    api = "rest"

    def address_for(self, target: ValidatorTarget) -> str:
        return target.rest_address

    def build_url(self, address: str) -> str:
        return join_url(address, INFO_PATH)

    def send(self, url: str, timeout: float) -> requests.Response:
        return requests.get(url, timeout=timeout, stream=True)
