from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from datetime import date, datetime, timedelta
from pathlib import Path
import json
import os

app = FastAPI(title="Mock Payments Backend", version="1.0.0")
# Support both local development and Docker
DATA_DIR = Path("/settlement_stub") if os.path.exists("/settlement_stub") else Path(__file__).resolve().parents[1] / "settlement_stub"
PREFIX = "/api/v1/dashboard/venues/{venue_id}"


def load_venue(venue_id: str) -> dict:
    file = DATA_DIR / f"venue_{venue_id}.json"
    if not file.exists():
        raise HTTPException(status_code=404, detail="venue not found")
    return json.loads(file.read_text())


def dataset(venue_id: str, name: str):
    venue = load_venue(venue_id)
    if name in venue.get("failing", []):
        return JSONResponse(status_code=500, content={"success": False, "message": f"{name} unavailable"})
    return {"success": True, "data": venue[name]}


def add_settlement_days(start: date, days: int, business_days: bool) -> date:
    current = start
    remaining = days
    while remaining > 0:
        current += timedelta(days=1)
        if business_days and current.weekday() >= 5:
            continue
        remaining -= 1
    return current


@app.get("/health")
def health(): return {"status": "ok"}


@app.get(PREFIX + "/available-balance")
def get_summary(venue_id: str): return dataset(venue_id, "summary")


@app.get(PREFIX + "/available-balance/by-card-type")
def get_breakdown(venue_id: str): return dataset(venue_id, "byCardType")


@app.get(PREFIX + "/available-balance/timeline")
def get_timeline(venue_id: str, includePast: bool = True, includeFuture: bool = True):
    return dataset(venue_id, "timeline")


@app.get(PREFIX + "/available-balance/settlement-calendar")
def get_calendar(venue_id: str, startDate: str | None = None, endDate: str | None = None):
    return dataset(venue_id, "calendar")


@app.post(PREFIX + "/available-balance/simulate")
async def simulate(venue_id: str, request: Request):
    venue = load_venue(venue_id)
    body = await request.json()
    config = venue.get("configurations", {}).get(body["cardType"])
    if config is None:
        return JSONResponse(status_code=404, content={"success": False, "message": "No settlement configuration"})

    tx_date = datetime.fromisoformat(body["transactionDate"].replace("Z", "+00:00")).date()
    amount = body["amount"]
    fees = round(amount * config["feeRate"], 2)
    settles = add_settlement_days(tx_date, config["settlementDays"], config["settlementDayType"] == "BUSINESS_DAYS")
    return {
        "success": True,
        "data": {
            "simulatedAmount": amount,
            "cardType": body["cardType"],
            "transactionDate": tx_date.isoformat(),
            "estimatedSettlementDate": settles.isoformat(),
            "settlementDays": config["settlementDays"],
            "grossAmount": amount,
            "fees": fees,
            "netAmount": round(amount - fees, 2),
            "configuration": {
                "settlementDays": config["settlementDays"],
                "settlementDayType": config["settlementDayType"],
                "cutoffTime": config["cutoffTime"],
            },
        },
    }


@app.get(PREFIX + "/cash-closeouts/expected")
def get_expected_cash(venue_id: str): return dataset(venue_id, "expectedCash")


@app.post(PREFIX + "/cash-closeouts")
async def create_closeout(venue_id: str, request: Request):
    load_venue(venue_id)
    body = await request.json()
    return {"success": True, "data": {"id": f"closeout_{venue_id}", "venueId": venue_id, **body}}


@app.get(PREFIX + "/cash-closeouts")
def get_closeout_history(venue_id: str, page: int = 1, pageSize: int = 10):
    venue = load_venue(venue_id)
    closeouts = venue.get("closeouts", [])
    start = (page - 1) * pageSize
    return {
        "success": True,
        "data": {"items": closeouts[start:start + pageSize], "total": len(closeouts), "page": page, "pageSize": pageSize},
    }


@app.get(PREFIX + "/settlement-incidents")
def get_incidents(venue_id: str, status: str | None = None):
    venue = load_venue(venue_id)
    incidents = venue.get("incidents", [])
    if status:
        incidents = [i for i in incidents if i["status"] == status]
    return {"success": True, "data": incidents}


@app.post(PREFIX + "/settlement-incidents/bulk-confirm")
async def bulk_confirm_incidents(venue_id: str, request: Request):
    venue = load_venue(venue_id)
    body = await request.json()
    known = {i["id"] for i in venue.get("incidents", [])}
    return {"success": True, "data": {"confirmed": len([i for i in body["incidentIds"] if i in known])}}


@app.post(PREFIX + "/settlement-incidents/{incident_id}/confirm")
async def confirm_incident(venue_id: str, incident_id: str, request: Request):
    venue = load_venue(venue_id)
    incident = next((i for i in venue.get("incidents", []) if i["id"] == incident_id), None)
    if incident is None:
        return JSONResponse(status_code=404, content={"success": False, "message": "Incident not found"})
    body = await request.json()
    return {"success": True, "data": {**incident, "status": "confirmed", **body}}
