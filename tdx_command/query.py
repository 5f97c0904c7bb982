"""Read-only access to resource state."""

from __future__ import annotations

from urllib.parse import quote

from loguru import logger

from tdx_command.constants import RESOURCE_PATH
from tdx_command.dispatcher import to_request_error
from tdx_command.infra.http import HttpClient, HttpError
from tdx_command.models import ResourceResponse, ResourceState


class ResourceQuery:
    """Fetches the current state of a resource from the query endpoint."""

    def __init__(self, http: HttpClient) -> None:
        self._http = http
        self._log = logger.bind(component="query")

    async def get_resource(self, resource_id: str) -> ResourceState:
        """Fetch one resource snapshot.

        Raises:
            TransportError: The request failed or the payload was malformed.
            RemoteRejection: The query endpoint returned an error (e.g. 404).
        """
        try:
            data: ResourceResponse = await self._http.get(f"{RESOURCE_PATH}/{quote(resource_id, safe='')}")
        except HttpError as e:
            raise to_request_error(e) from e

        state = ResourceState.from_response(data)
        self._log.trace(
            "Resource {rid}: indexStatus={status} store={store} importing={importing}",
            rid=resource_id, status=state.index_status, store=state.store, importing=state.importing,
        )
        return state
