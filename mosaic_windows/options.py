"""
mosaic_windows.options
----------------------

Per-call options accepted by the controller (title and strategy choices).
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .constants import (
    DealStrategy,
    LayoutStrategy,
    default_deal_strategy,
    default_layout_strategy,
)


class MosaicOptions(BaseModel):
    """
    Validated option set.

    Strategies may be given by enum member or by their number
    (``layout_strategy=2``); anything else raises pydantic's
    ``ValidationError``.
    """

    title: Optional[str] = None
    layout_strategy: LayoutStrategy = Field(default_factory=default_layout_strategy)
    deal_strategy: DealStrategy = Field(default_factory=default_deal_strategy)
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True, extra="forbid")

    def merged(self, **overrides) -> "MosaicOptions":
        """Copy with the non-None *overrides* applied (and validated)."""
        values = self.model_dump()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return MosaicOptions(**values)
