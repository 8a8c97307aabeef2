from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple

from splatquant.data.validation import (
    COLOR_COLUMNS,
    OPACITY_COLUMN,
    POSITION_COLUMNS,
    SCALE_COLUMNS,
)
from splatquant.errors import InvalidParameterError


class AttributeGroupId(str, Enum):
    POSITIONS = "positions"
    SCALES = "scales"
    COLORS = "colors"
    OPACITY = "opacity"
    SH_REST = "sh_rest"


class GroupMode(str, Enum):
    # Колонки группы образуют измерения одного вектора
    VECTOR = "vector"
    # Колонки группы: независимые скаляры с общей одномерной кодовой книгой
    SCALAR = "scalar"


@dataclass(frozen=True)
class GroupConfig:
    """
    Параметры квантования одной группы атрибутов.

    ``columns=None`` означает «все колонки f_rest_N, найденные в таблице».
    """

    id: AttributeGroupId
    columns: Tuple[str, ...] | None
    k: int
    iterations: int = 10
    mode: GroupMode = GroupMode.VECTOR

    def validate(self) -> None:
        if self.k <= 0:
            raise InvalidParameterError(f"{self.id.value}: k must be positive, got {self.k}")
        if self.iterations <= 0:
            raise InvalidParameterError(
                f"{self.id.value}: iterations must be positive, got {self.iterations}"
            )
        if self.columns is not None and not self.columns:
            raise InvalidParameterError(f"{self.id.value}: empty column list")


# Раскладка по группам в духе SOG: скалярные палитры по 256 значений
# для масштабов, цвета и непрозрачности, векторная палитра для SH высших порядков.

DEFAULT_GROUPS: Dict[AttributeGroupId, GroupConfig] = {
    AttributeGroupId.SCALES: GroupConfig(
        id=AttributeGroupId.SCALES,
        columns=SCALE_COLUMNS,
        k=256,
        mode=GroupMode.SCALAR,
    ),
    AttributeGroupId.COLORS: GroupConfig(
        id=AttributeGroupId.COLORS,
        columns=COLOR_COLUMNS,
        k=256,
        mode=GroupMode.SCALAR,
    ),
    AttributeGroupId.OPACITY: GroupConfig(
        id=AttributeGroupId.OPACITY,
        columns=(OPACITY_COLUMN,),
        k=256,
        mode=GroupMode.SCALAR,
    ),
    AttributeGroupId.SH_REST: GroupConfig(
        id=AttributeGroupId.SH_REST,
        columns=None,
        k=1024,
        mode=GroupMode.VECTOR,
    ),
}

POSITIONS_GROUP = GroupConfig(
    id=AttributeGroupId.POSITIONS,
    columns=POSITION_COLUMNS,
    k=4096,
    mode=GroupMode.VECTOR,
)
