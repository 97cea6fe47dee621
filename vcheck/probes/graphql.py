"""GraphQL probe: POST a current-epoch query."""

import requests

from vcheck.models import ValidatorTarget
from vcheck.probes.http_base import HTTPProbe, validate_url

EPOCH_QUERY = {"query": "{epoch{id}}"}


class GraphQLProbe(HTTPProbe):
    """Probe for the GraphQL endpoint.

    The roster address is the full endpoint URL.  A 200 is a success even
    when the body carries GraphQL errors.
    """

    api = "gql"

    def address_for(self, target: ValidatorTarget) -> str:
        return target.graphql_address

    def build_url(self, address: str) -> str:
        return validate_url(address)

    def send(self, url: str, timeout: float) -> requests.Response:
        # json= sets Content-Type: application/json.
        return requests.post(url, json=EPOCH_QUERY, timeout=timeout, stream=True)
