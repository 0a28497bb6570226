"""Handle API for host hook layers.

Public exports:
    create, push_frame, add_local, pop_frame, destroy: handle lifecycle
    decode_string: boundary string conversion
"""

from exposure.presentation.api.handles import (
    active_handles,
    add_local,
    create,
    decode_string,
    destroy,
    pop_frame,
    push_frame,
)

__all__ = [
    "active_handles",
    "add_local",
    "create",
    "decode_string",
    "destroy",
    "pop_frame",
    "push_frame",
]
