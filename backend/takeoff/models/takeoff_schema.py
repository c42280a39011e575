"""
Upstream takeoff payload schema.

The extraction service returns camelCase JSON; every model accepts either
the wire alias or the Python field name. Items are frozen once received.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from takeoff.config import ALL_CATEGORIES


_FROZEN = {"frozen": True, "populate_by_name": True}


class TakeoffItem(BaseModel):
    """One Dim Sheet line-item as extracted from the drawings."""
    model_config = _FROZEN

    id: str = Field(..., description="Item reference, e.g. 1.01")
    description: str = Field(..., description="[Element] - [Material/Spec] - [Axis/Grid]")
    multiplier: Optional[float] = Field(1.0, alias="timesing", description="Timesing factor")
    dimension: str = Field("", description="Dimension logic, e.g. '10.00 x 0.60'")
    quantity: float = Field(0.0, description="Quantity computed upstream")
    unit: str = Field("", description="m, m2, m3, kg, nr")
    category: str = Field("", description="Trade category, e.g. Sub Structure")
    confidence: str = Field("", description="High | Medium | Low")


class RebarItem(BaseModel):
    """One bar bending schedule record."""
    model_config = _FROZEN

    id: str = Field(..., description="Bar mark, e.g. 01")
    member: str = Field("", description="Member name, e.g. Beam Grid A")
    bar_type: str = Field(..., alias="barType", description="Bar size, e.g. Y16")
    shape_code: str = Field("", alias="shapeCode")
    no_of_members: float = Field(0, alias="noOfMembers")
    bars_per_member: float = Field(0, alias="barsPerMember")
    total_bars: float = Field(0, alias="totalBars")
    length_per_bar: float = Field(0.0, alias="lengthPerBar", description="Cutting length (m)")
    total_length: float = Field(0.0, alias="totalLength", description="Total length (m)")
    total_weight: float = Field(0.0, alias="totalWeight", description="Total weight (kg)")


class TakeoffResult(BaseModel):
    """Complete upstream payload for one drawing set."""
    model_config = {"populate_by_name": True}

    project_name: str = Field("", alias="projectName")
    items: List[TakeoffItem] = Field(default_factory=list)
    rebar_items: List[RebarItem] = Field(default_factory=list, alias="rebarItems")
    summary: str = ""


class SynthesisRequest(BaseModel):
    """Body of the BOQ / export endpoints: a payload plus the active view state."""
    model_config = {"populate_by_name": True}

    takeoff: TakeoffResult
    search_term: str = Field("", alias="searchTerm")
    category: str = ALL_CATEGORIES
    unit_prices: Dict[str, Any] = Field(default_factory=dict, alias="unitPrices")
