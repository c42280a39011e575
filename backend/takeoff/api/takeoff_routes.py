"""
Takeoff Routes — BOQ preview and workbook export.

POST /api/takeoff/boq     — grouped Dim Sheet data, rebar summary, priced BOQ lines, grand total
POST /api/takeoff/export  — three-sheet .xlsx (Dim Sheet / Rebar Schedule / Bill of Quantities)
"""
import logging
import os
from typing import Any, Dict

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse
from starlette.background import BackgroundTask

from takeoff.models.takeoff_schema import SynthesisRequest
from takeoff.services.takeoff_session import TakeoffSession
from takeoff.services.xlsx_encoder import export_filename, write_workbook_file

router = APIRouter(prefix="/api/takeoff", tags=["Takeoff"])
logger = logging.getLogger("takeoff-api")

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _session(req: SynthesisRequest) -> TakeoffSession:
    return TakeoffSession(
        req.takeoff,
        search_term=req.search_term,
        category_filter=req.category,
        unit_prices=req.unit_prices,
    )


@router.post("/boq")
async def preview_boq(req: SynthesisRequest) -> Dict[str, Any]:
    """Grouped takeoff, rebar summary and priced BOQ for the current filters and rates."""
    session = _session(req)
    groups = session.grouped_items()
    lines = session.boq_lines()

    return {
        "project_name": req.takeoff.project_name,
        "no_items_match": not groups,
        "groups": [
            {
                "name": g.name,
                "unit": g.unit,
                "category": g.category,
                "total_quantity": g.total_quantity,
                "items": [
                    {
                        "id": li.item.id,
                        "location": li.location,
                        "multiplier": li.item.multiplier,
                        "dimension": li.item.dimension,
                        "quantity": li.item.quantity,
                        "confidence": li.item.confidence,
                    }
                    for li in g.items
                ],
            }
            for g in groups
        ],
        "rebar_summary": [
            {"name": s.name, "bar_type": s.bar_type, "total_quantity": s.total_quantity, "unit": s.unit}
            for s in session.rebar_summary()
        ],
        "rebar_items": [bar.model_dump() for bar in session.filtered_rebar()],
        "boq_lines": [
            {
                "name": line.name,
                "unit": line.unit,
                "quantity": line.quantity,
                "rate": line.rate,
                "amount": line.amount,
                "source": line.source,
            }
            for line in lines
        ],
        "grand_total": session.grand_total(),
        "category_breakdown": session.category_breakdown(),
    }


@router.post("/export")
async def export_workbook(req: SynthesisRequest):
    """
    Synthesize the workbook and return it as an .xlsx download.

    The temporary file is removed once the response has been sent.
    """
    workbook = _session(req).synthesize_workbook()
    try:
        path = write_workbook_file(workbook)
    except Exception as e:
        logger.error(f"Workbook export failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Excel generation failed: {e}")
    return FileResponse(
        path,
        media_type=XLSX_MEDIA_TYPE,
        filename=export_filename(workbook.project_name),
        background=BackgroundTask(os.remove, path),
    )
