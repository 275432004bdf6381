"""
Persistence gateway - Save, load and list mind maps in the remote store.

Save captures the graph at call time and decides create vs. update from the
bound diagram id. Load replaces the whole local graph with the fetched
record; local edits made since are discarded. Listing never fails: errors
degrade to an empty directory.

Every operation is a coroutine. Cancelling the awaiting task before the
remote call returns leaves the local graph untouched.
"""

import logging
from pydantic import ValidationError

from .errors import PersistenceError, RemoteValidationError
from .models import DiagramListing, MindMapRecord
from .remote import RemoteStore
from .state import GraphSnapshot, GraphWriter
from .validation import IssueSeverity, validate_tree

logger = logging.getLogger(__name__)


class PersistenceGateway:
    """Moves the graph between a GraphWriter and a RemoteStore."""

    def __init__(self, writer: GraphWriter, remote: RemoteStore):
        self._writer = writer
        self._remote = remote

    @property
    def remote(self) -> RemoteStore:
        return self._remote

    async def save(self, name: str) -> str:
        """
        Save the current graph under `name`.

        Updates the bound remote record if there is one; otherwise creates a
        record and binds the graph to its id, unless the graph was replaced
        (new diagram, load) while the create was in flight.

        Returns:
            The id of the saved remote record

        Raises:
            PersistenceError: if the remote store call fails (not retried)
        """
        snapshot = self._writer.snapshot()
        generation = self._writer.generation
        data = {
            "name": name,
            "nodes": [n.to_json_dict() for n in snapshot.nodes],
            "edges": [e.to_json_dict() for e in snapshot.edges],
        }

        try:
            if snapshot.current_diagram_id:
                await self._remote.update(snapshot.current_diagram_id, data)
                logger.info("Updated mind map %s (%r)", snapshot.current_diagram_id, name)
                return snapshot.current_diagram_id

            record = await self._remote.create(data)
        except PersistenceError as e:
            logger.error("Error saving mind map: %s", e)
            raise

        record_id = record.get("id") if isinstance(record, dict) else None
        if not record_id:
            logger.error("Error saving mind map: created record has no id")
            raise RemoteValidationError("Remote store returned a record without an id")

        if self._writer.generation != generation:
            # The saved graph was replaced while the create was in flight
            logger.warning("Created mind map %s, but the graph was replaced meanwhile; not binding", record_id)
            return record_id

        self._writer.bind(record_id)
        logger.info("Created mind map %s (%r)", record_id, name)
        return record_id

    async def load(self, diagram_id: str) -> None:
        """
        Replace the local graph with the saved mind map `diagram_id`.

        Raises:
            PersistenceError: if the record is missing, malformed or cannot
                be fetched; the local graph is left as it was
        """
        try:
            raw = await self._remote.get_one(diagram_id)
        except PersistenceError as e:
            logger.error("Error loading mind map %s: %s", diagram_id, e)
            raise

        try:
            record = MindMapRecord.model_validate(raw)
        except ValidationError as e:
            logger.error("Error loading mind map %s: malformed record", diagram_id)
            raise RemoteValidationError(f"Malformed mind map record {diagram_id}: {e}") from e

        errors = [
            i for i in validate_tree(record.nodes, record.edges)
            if i.severity == IssueSeverity.ERROR
        ]
        for issue in errors:
            logger.warning("Loaded mind map %s: %s", diagram_id, issue.message)

        self._writer.replace(GraphSnapshot(
            nodes=tuple(record.nodes),
            edges=tuple(record.edges),
            current_diagram_id=diagram_id,
        ))
        logger.info("Loaded mind map %s (%d nodes)", diagram_id, len(record.nodes))

    async def list_saved(self) -> list[DiagramListing]:
        """List saved mind maps, newest first. Returns [] on any failure."""
        try:
            records = await self._remote.get_full_list(sort="-created")
            return [DiagramListing.model_validate(r) for r in records]
        except (PersistenceError, ValidationError) as e:
            logger.warning("Error fetching mind maps: %s", e)
            return []
