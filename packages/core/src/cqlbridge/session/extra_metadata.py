"""
Out-of-band column metadata.

Column ordering and visibility that the cluster schema cannot express are
stored as a JSON document in the table comment, after a fixed marker:

    Presto Metadata:[{"name": "email", "hidden": true}, {"name": "id", "hidden": false}]
"""
from typing import Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from cqlbridge_sdk import MetadataDecodeError

COMMENT_METADATA_PREFIX = "Presto Metadata:"


class ExtraColumnMetadata(BaseModel):
    name: str
    hidden: bool = False

    model_config = ConfigDict(extra="ignore", frozen=True)


_extras_adapter = TypeAdapter(List[ExtraColumnMetadata])


def has_extra_metadata(comment: Optional[str]) -> bool:
    return comment is not None and comment.startswith(COMMENT_METADATA_PREFIX)


def parse_comment(comment: Optional[str]) -> Optional[List[ExtraColumnMetadata]]:
    """Returns the extra column metadata of a table comment, or None if the comment carries none.

    Raises:
        MetadataDecodeError: if the document after the marker is malformed.
    """
    if not has_extra_metadata(comment):
        return None
    document = comment[len(COMMENT_METADATA_PREFIX):]
    try:
        return _extras_adapter.validate_json(document)
    except ValidationError as e:
        raise MetadataDecodeError(
            f"Invalid column metadata in table comment: {e.error_count()} error(s): {document!r}",
            content=document,
        ) from e


def build_comment(extras: Iterable[ExtraColumnMetadata]) -> str:
    """Renders the table comment that records `extras`."""
    return COMMENT_METADATA_PREFIX + _extras_adapter.dump_json(list(extras)).decode("utf-8")
