"""Desktop notifications for avatars entering chat range in Second Life."""

__version__ = "0.1.0"
