"""Parsing of tags embedded in statsd metric keys (name#key:value,...)."""

from statsrelay.core.models import TaggedName

TAG_SEPARATOR = "#"


def parse_tags(raw_key: str) -> dict[str, str]:
    """Extract the tag map from a raw metric key.

    Fragments that do not split into exactly one key and one value are dropped.

    Args:
        raw_key: Metric key, optionally followed by '#k1:v1,k2:v2'.

    Returns:
        Ordered mapping of tag key to tag value. Empty if the key has no tags.
    """
    tags: dict[str, str] = {}
    if TAG_SEPARATOR not in raw_key:
        return tags
    for fragment in raw_key.split(TAG_SEPARATOR)[1].split(","):
        parts = fragment.split(":")
        if len(parts) == 2:
            tags[parts[0]] = parts[1]
    return tags


def split_tagged_name(raw_key: str) -> TaggedName:
    """Split a raw metric key into its base name and tags."""
    return TaggedName(name=raw_key.split(TAG_SEPARATOR)[0], tags=parse_tags(raw_key))
