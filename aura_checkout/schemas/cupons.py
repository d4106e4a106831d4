from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from dateutil.parser import isoparse
from pydantic import BaseModel, ConfigDict, Field, field_validator

TipoDesconto = Literal["fixed", "percentage"]


class Cupom(BaseModel):
    """Linha da tabela `coupons`."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    code: str
    type: TipoDesconto
    value: float = Field(..., ge=0)
    is_active: bool = True
    max_uses: int | None = None
    current_uses: int = 0
    start_date: datetime
    end_date: datetime

    @field_validator("id", mode="before")
    @classmethod
    def _id_str(cls, v: Any) -> str | None:
        return None if v is None else str(v)

    @field_validator("current_uses", mode="before")
    @classmethod
    def _uses_default(cls, v: Any) -> int:
        return 0 if v is None else int(v)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _parse_data(cls, v: Any) -> datetime:
        dt = isoparse(v) if isinstance(v, str) else v
        if isinstance(dt, datetime) and dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        return dt


class ValidarCupomIn(BaseModel):
    code: str = Field(..., min_length=1)

    @field_validator("code")
    @classmethod
    def _upper(cls, v: str) -> str:
        return v.strip().upper()


class ValidarCupomOut(BaseModel):
    success: bool
    coupon: Cupom | None = None
    error: str | None = None
