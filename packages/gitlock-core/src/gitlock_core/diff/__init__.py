"""Line diff and patch engine for path-sorted snapshots."""

from gitlock_core.diff.codec import (
    NO_DIFF,
    apply_diff_text,
    decode_diff,
    decode_stored_diff,
    diff_text,
    encode_diff,
    encode_stored_diff,
)
from gitlock_core.diff.engine import apply_diff, compute_diff
from gitlock_core.diff.models import AddOp, ChangeOp, DeleteOp, DiffScript, Op

__all__ = [
    "NO_DIFF",
    "AddOp",
    "ChangeOp",
    "DeleteOp",
    "DiffScript",
    "Op",
    "apply_diff",
    "apply_diff_text",
    "compute_diff",
    "decode_diff",
    "decode_stored_diff",
    "diff_text",
    "encode_diff",
    "encode_stored_diff",
]
