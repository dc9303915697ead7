"""Widget components."""

from .blob import BlobWidget
from .confirm_modal import ConfirmModal
from .label_modal import LabelModal

__all__ = [
    "BlobWidget",
    "ConfirmModal",
    "LabelModal",
]
