"""Drink records - posts and their beverage amounts."""

from nomilog.posts.manager import PostManager

__all__ = ["PostManager"]
