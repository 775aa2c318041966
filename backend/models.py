from safeorm import Record
from safeorm.orm_types import Text, Number, Boolean, HasMany, BelongsTo, HasManyThrough


class Post(Record):
    class Meta:
        table_name = "posts"
        attr_accessible = ("title", "body")
    id = Number(pk=True)
    title = Text(nullable=False)
    body = Text()
    comments = HasMany("Comment", inverse_of="post")
    taggings = HasMany("Tagging", inverse_of="post")
    tags = HasManyThrough("Tag", through="taggings")


class Comment(Record):
    class Meta:
        table_name = "comments"
        attr_accessible = {
            "default": ("body", "author"),
            "admin": ("body", "author", "approved"),
        }
    id = Number(pk=True)
    body = Text(nullable=False)
    author = Text()
    approved = Boolean(default=False)
    post = BelongsTo("Post")


class Tag(Record):
    class Meta:
        table_name = "tags"
        attr_accessible = ("name",)
    id = Number(pk=True)
    name = Text(nullable=False)
    taggings = HasMany("Tagging", inverse_of="tag")


class Tagging(Record):
    class Meta:
        table_name = "taggings"
    id = Number(pk=True)
    post = BelongsTo("Post")
    tag = BelongsTo("Tag", inverse_of="taggings")
