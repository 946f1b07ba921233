"""Conversion between stored transaction cursors and their wire representation."""

import json
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from stream_compositions import models, schemas
from stream_compositions.core.exceptions import ParseException, SerializationException
from stream_compositions.schemas.transaction_cursor import LAST_TXN_DATE_FORMAT

ID_DELIMITER = ","


class TransactionCursorMapper:
    """Maps ``models.TransactionCursor`` rows to ``schemas.TransactionCursor`` and back.

    Stored rows keep the last transaction ids as one comma-joined string and the
    additions as JSON object text; the wire model exposes a list and a mapping.
    The mapper has no state and never touches the database.
    """

    def entity_to_response(
        self, entity: models.TransactionCursor
    ) -> schemas.TransactionCursorResponse:
        """Build the API response for a stored cursor.

        Raises:
            ParseException: If the stored additions are not a JSON object
        """
        return schemas.TransactionCursorResponse(cursor=self.entity_to_model(entity))

    def entity_to_model(self, entity: models.TransactionCursor) -> schemas.TransactionCursor:
        """Convert a stored cursor to the wire model."""
        return schemas.TransactionCursor(
            id=entity.id,
            arrangement_id=entity.arrangement_id,
            ext_arrangement_id=entity.ext_arrangement_id,
            legal_entity_id=entity.legal_entity_id,
            last_txn_date=self.date_to_text(entity.last_txn_date),
            status=entity.status,
            last_txn_ids=self.text_to_ids(entity.last_txn_ids),
            additions=self.text_to_map(entity.additions),
        )

    def request_to_entity(
        self, request: schemas.TransactionCursorUpsertRequest
    ) -> models.TransactionCursor:
        """Build an unsaved cursor row from an upsert request.

        Empty additions are stored as null.

        Raises:
            SerializationException: If an addition has a null value
            ParseException: If the last transaction date is malformed
        """
        cursor = request.cursor
        return models.TransactionCursor(
            id=cursor.id,
            arrangement_id=cursor.arrangement_id,
            ext_arrangement_id=cursor.ext_arrangement_id,
            legal_entity_id=cursor.legal_entity_id,
            last_txn_date=self.text_to_date(cursor.last_txn_date),
            status=cursor.status.value if cursor.status else None,
            last_txn_ids=self.ids_to_text(cursor.last_txn_ids),
            additions=self.map_to_text(cursor.additions or None),
        )

    @staticmethod
    def ids_to_text(ids: Optional[Sequence[str]]) -> Optional[str]:
        """Join ids with commas, keeping their order. Null or empty gives None."""
        if not ids:
            return None
        return ID_DELIMITER.join(ids)

    @staticmethod
    def text_to_ids(text: Optional[str]) -> List[str]:
        """Split stored ids on commas, keeping their order. Null or empty gives []."""
        if not text:
            return []
        return text.split(ID_DELIMITER)

    @staticmethod
    def map_to_text(additions: Optional[Dict[str, Optional[str]]]) -> Optional[str]:
        """Serialize additions as a compact JSON object.

        Raises:
            SerializationException: If any value is null
        """
        if additions is None:
            return None
        null_keys = [key for key, value in additions.items() if value is None]
        if null_keys:
            raise SerializationException(
                f"Cannot serialize additions with null values for keys: {', '.join(null_keys)}"
            )
        return json.dumps(additions, separators=(",", ":"))

    @staticmethod
    def text_to_map(text: Optional[str]) -> Optional[Dict[str, str]]:
        """Parse stored additions.

        Raises:
            ParseException: If the text is not a JSON object of string values
        """
        if text is None:
            return None
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as e:
            raise ParseException(
                f"Malformed additions JSON: {e.msg}", kind=ParseException.MALFORMED_JSON
            ) from e
        if not isinstance(parsed, dict):
            raise ParseException(
                "Additions JSON must be an object", kind=ParseException.MALFORMED_JSON
            )
        non_text_keys = [key for key, value in parsed.items() if not isinstance(value, str)]
        if non_text_keys:
            raise ParseException(
                f"Additions values must be strings, got other values for keys: "
                f"{', '.join(non_text_keys)}",
                kind=ParseException.MALFORMED_JSON,
            )
        return parsed

    @staticmethod
    def date_to_text(value: Optional[datetime]) -> Optional[str]:
        """Format a timestamp as ``yyyy-MM-dd HH:mm:ss``."""
        if value is None:
            return None
        return value.strftime(LAST_TXN_DATE_FORMAT)

    @staticmethod
    def text_to_date(text: Optional[str]) -> Optional[datetime]:
        """Parse a ``yyyy-MM-dd HH:mm:ss`` timestamp.

        Raises:
            ParseException: If the text does not match the format
        """
        if not text:
            return None
        try:
            return datetime.strptime(text, LAST_TXN_DATE_FORMAT)
        except ValueError as e:
            raise ParseException(
                f"Malformed last transaction date '{text}', expected yyyy-MM-dd HH:mm:ss",
                kind=ParseException.MALFORMED_DATE,
            ) from e
