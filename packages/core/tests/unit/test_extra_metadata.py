import pytest

from cqlbridge.session.extra_metadata import (
    COMMENT_METADATA_PREFIX,
    ExtraColumnMetadata,
    build_comment,
    has_extra_metadata,
    parse_comment,
)
from cqlbridge_sdk import MetadataDecodeError


@pytest.mark.parametrize("comment", [None, "", "plain table comment", " Presto Metadata:[]"])
def test_comments_without_metadata(comment):
    assert not has_extra_metadata(comment)
    assert parse_comment(comment) is None


def test_parse_comment():
    comment = COMMENT_METADATA_PREFIX + '[{"name": "email", "hidden": true}, {"name": "id"}]'

    assert parse_comment(comment) == [
        ExtraColumnMetadata(name="email", hidden=True),
        ExtraColumnMetadata(name="id", hidden=False),
    ]


def test_built_comment_is_readable():
    extras = [ExtraColumnMetadata(name="c"), ExtraColumnMetadata(name="a", hidden=True)]

    comment = build_comment(extras)

    assert comment.startswith(COMMENT_METADATA_PREFIX)
    assert parse_comment(comment) == extras


@pytest.mark.parametrize("document", ['{"name": "a"}', "[{}]", "[{not json"])
def test_malformed_document(document):
    with pytest.raises(MetadataDecodeError) as exc_info:
        parse_comment(COMMENT_METADATA_PREFIX + document)

    assert exc_info.value.content == document
