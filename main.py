from fastapi import FastAPI, HTTPException, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from typing import List
import httpx
from config.openf1_config import OpenF1Config
from utils import drivers, race_session, season, populate
from utils.database import DatabaseManager, Store
from utils.errors import NotFoundError
from utils.openf1 import OpenF1Client
from api_pydantic_models.drivers import DriverResponse, GetDriverDetailResponse, GetDriverPositionsResponse
from api_pydantic_models.race_sesssions import SessionResponse, GetSessionDetailResponse
from api_pydantic_models.season import GetSeasonSummaryResponse
import logging
import os

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)

app = FastAPI()


@app.on_event("startup")
async def startup_event():
    """Open the database pool, create tables and populate the cache before serving."""
    database = DatabaseManager()
    await database.get_pool()
    # Set before population so shutdown can close the pool if startup fails
    app.state.database = database
    store = Store(database)
    await store.create_tables()

    async with httpx.AsyncClient(timeout=OpenF1Config.REQUEST_TIMEOUT) as http_client:
        report = await populate.populate_all(store, OpenF1Client(http_client))
    logging.info("Cache ready: %s", report)

    app.state.store = store


@app.on_event("shutdown")
async def shutdown_event():
    """Close database connection pool on shutdown."""
    database = getattr(app.state, "database", None)
    if database is not None:
        await database.close_pool()


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_store(request: Request) -> Store:
    return request.app.state.store


@app.get("/drivers")
async def get_drivers(store: Store = Depends(get_store)) -> List[DriverResponse]:
    try:
        driver_list = await drivers.list_drivers(store)
        logging.info("Response: returning %d drivers", len(driver_list))
        return driver_list
    except Exception:
        logging.exception("Error in get_drivers")
        raise HTTPException(status_code=500, detail="Failed to fetch drivers")


@app.get("/drivers/{driver_id}")
async def get_driver_detail(driver_id: str, store: Store = Depends(get_store)) -> GetDriverDetailResponse:
    """
    Career summary and per-race results for a driver.

    driver_id is a driver number; if no driver has that number it is read as a
    1-based index into the driver listing.
    """
    try:
        logging.info("Request: driver detail for driver_id=%s", driver_id)
        detail = await drivers.get_driver_detail(store, driver_id)
        logging.info("Response: returning %d race results for driver_id=%s", len(detail.race_results), driver_id)
        return detail
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        logging.exception("Error in get_driver_detail for driver_id=%s", driver_id)
        raise HTTPException(status_code=500, detail="Failed to fetch driver detail")


@app.get("/drivers/{driver_id}/positions")
async def get_driver_positions(driver_id: str, store: Store = Depends(get_store)) -> GetDriverPositionsResponse:
    try:
        logging.info("Request: position history for driver_id=%s", driver_id)
        history = await drivers.get_driver_positions(store, driver_id)
        logging.info("Response: returning %d positions for driver_id=%s", len(history.positions), driver_id)
        return history
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        logging.exception("Error in get_driver_positions for driver_id=%s", driver_id)
        raise HTTPException(status_code=500, detail="Failed to fetch driver positions")


@app.get("/sessions")
async def get_sessions(store: Store = Depends(get_store)) -> List[SessionResponse]:
    try:
        session_list = await race_session.list_sessions(store)
        logging.info("Response: returning %d sessions", len(session_list))
        return session_list
    except Exception:
        logging.exception("Error in get_sessions")
        raise HTTPException(status_code=500, detail="Failed to fetch sessions")


@app.get("/sessions/{session_key}")
async def get_session_detail(session_key: int, store: Store = Depends(get_store)) -> GetSessionDetailResponse:
    try:
        logging.info("Request: session detail for session_key=%s", session_key)
        detail = await race_session.get_session_detail(store, session_key)
        logging.info("Response: returning %d results for session_key=%s", len(detail.results), session_key)
        return detail
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        logging.exception("Error in get_session_detail for session_key=%s", session_key)
        raise HTTPException(status_code=500, detail="Failed to fetch session detail")


@app.get("/season/summary")
async def get_season_summary(store: Store = Depends(get_store)) -> GetSeasonSummaryResponse:
    try:
        return await season.get_season_summary(store)
    except Exception:
        logging.exception("Error in get_season_summary")
        raise HTTPException(status_code=500, detail="Failed to compute season summary")
