from .config import (
    DEFAULT_GROUPS,
    POSITIONS_GROUP,
    AttributeGroupId,
    GroupConfig,
    GroupMode,
)
from .runner import QuantizationRunner, QuantizedGroup, quantize_1d, quantize_group

__all__ = [
    "DEFAULT_GROUPS",
    "POSITIONS_GROUP",
    "AttributeGroupId",
    "GroupConfig",
    "GroupMode",
    "QuantizationRunner",
    "QuantizedGroup",
    "quantize_1d",
    "quantize_group",
]
