"""Whether the active model may still be changed for a session."""

from __future__ import annotations


def is_locked(has_prior_response: bool) -> bool:
    """A run keeps one model once any response exists; only a new chat can change it."""

    return bool(has_prior_response)


__all__ = ["is_locked"]
