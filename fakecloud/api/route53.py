import logging
from datetime import datetime, timezone
from typing import List
from flask import Flask, request, Response
from fakecloud.core import wire
from fakecloud.core.server import FakeServer
from fakecloud.db.models import ChangeAction, ResourceRecordSet
from fakecloud.db.store import RecordSetStore

logger = logging.getLogger(__name__)

METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH"]


def list_record_sets(server: "Route53Server", body: bytes, request_id: str):
    return {
        "ResourceRecordSets": server.store.all(),
        "IsTruncated": False,
        "MaxItems": 300,
    }


def change_record_sets(server: "Route53Server", body: bytes, request_id: str):
    """Applies CREATE, DELETE and UPSERT changes in order.

    Records are matched by name only; a DELETE removes every record with
    that name.
    """
    batch = wire.parse_change_batch(body)
    for change in batch.changes:
        record = change.resource_record_set
        if change.action == ChangeAction.CREATE:
            server.store.append(record)
        elif change.action == ChangeAction.DELETE:
            removed = server.store.delete_by_name(record.name)
            logger.debug(f"Deleted {removed} record set(s) named {record.name}")
        elif change.action == ChangeAction.UPSERT:
            server.store.delete_by_name(record.name)
            server.store.append(record)
    return {
        "ChangeInfo": {
            "Id": f"/change/C{request_id.upper()}",
            "Status": "INSYNC",
            "SubmittedAt": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "Comment": batch.comment,
        }
    }


# resource (last path segment) -> HTTP method -> (action, handler)
ACTIONS = {
    "rrset": {
        "GET": ("ListResourceRecordSets", list_record_sets),
        "POST": ("ChangeResourceRecordSets", change_record_sets),
    },
}


class Route53Server(FakeServer):
    """Simulated Route 53 record set API."""

    name = "route53"

    def __init__(self, host: str = "localhost", port: int = 0):
        self.store = RecordSetStore()
        super().__init__(host, port)

    def _register_routes(self, app: Flask) -> None:
        app.add_url_rule("/", "rest", self.handle_rest, defaults={"path": ""}, methods=METHODS)
        app.add_url_rule("/<path:path>", "rest", self.handle_rest, methods=METHODS)

    def handle_rest(self, path: str) -> Response:
        resource = path.rstrip("/").rsplit("/", 1)[-1]
        body = request.get_data()
        with self.store.lock:
            action, handler = ACTIONS.get(resource, {}).get(request.method, (None, None))
            if handler is None:
                return self.unknown_action(f"{request.method} {resource}")
            request_id = self.next_request_id()
            return self.dispatch(
                handler, (body,),
                lambda result: wire.rest_response(f"{action}Response", result),
                request_id
            )

    # --- Test control ---

    def records(self) -> List[ResourceRecordSet]:
        with self.store.lock:
            return [record.model_copy(deep=True) for record in self.store.all()]
