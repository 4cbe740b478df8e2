"""Tests for association objects and their naming conventions."""

import pytest

from introspect import BelongsTo, BelongsToMany, HasOne, MorphMany, MorphTo
from introspect.associations import (
    primary_key_name,
    qualified_name,
    snake_case,
    table_name,
)


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("User", "user"),
        ("ArchivedPost", "archived_post"),
        ("HTTPRequest", "http_request"),
        ("Post2Tag", "post2_tag"),
    ],
)
def test_snake_case(name: str, expected: str) -> None:
    """Test conversion of class names to snake_case."""
    assert snake_case(name) == expected


def test_table_and_key_names() -> None:
    """Test table and primary key lookup of mapped and plain classes."""
    from blog.models.legacy.archive import ArchivedPost  # noqa: PLC0415
    from faulty.models.widget import Unmapped  # noqa: PLC0415

    assert table_name(ArchivedPost) == "archived_posts"
    assert primary_key_name(ArchivedPost) == "id"
    assert table_name(Unmapped) is None
    assert primary_key_name(Unmapped) == "id"
    assert qualified_name(ArchivedPost) == "blog.models.legacy.archive.ArchivedPost"


def test_default_keys_follow_conventions() -> None:
    """Test default foreign, local and pivot key names."""
    from blog.models.post import Post  # noqa: PLC0415
    from blog.models.role import Role  # noqa: PLC0415
    from blog.models.user import User  # noqa: PLC0415

    belongs_to = BelongsTo(Post(), User)
    has_one = HasOne(User, Post)
    many = BelongsToMany(User(), Role)

    assert belongs_to.owner is Post
    assert belongs_to.foreign_key == "user_id"
    assert belongs_to.owner_key == "id"
    assert belongs_to.parent_table == "users"
    assert has_one.foreign_key == "user_id"
    assert has_one.local_key == "id"
    assert has_one.related_table == "posts"
    assert many.pivot_table == "role_user"
    assert many.foreign_pivot_key == "user_id"
    assert many.related_pivot_key == "role_id"


def test_polymorphic_column_names() -> None:
    """Test type and id column names of polymorphic associations."""
    from blog.models.comment import Comment  # noqa: PLC0415
    from blog.models.post import Post  # noqa: PLC0415

    morph_to = MorphTo(Comment(), "commentable")
    morph_many = MorphMany(Post, Comment, "commentable", type_column="kind")

    assert morph_to.related is Comment
    assert morph_to.morph_type == "commentable_type"
    assert morph_to.foreign_key == "commentable_id"
    assert morph_many.morph_type == "kind"
    assert morph_many.foreign_key == "commentable_id"
    assert morph_many.local_key == "id"
    assert repr(morph_many) == "MorphMany(Post -> Comment)"
