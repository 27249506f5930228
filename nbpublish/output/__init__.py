"""Output subsystem — publishes rendered markdown trees."""

from nbpublish.output.publisher import PublishError, publish_tree

__all__ = [
    "PublishError",
    "publish_tree",
]
