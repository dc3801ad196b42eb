from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from azure.cosmos.exceptions import CosmosHttpResponseError
from backend.routers import rou_booking, rou_availability, rou_pricing
from backend.configuration.monitor import instrument_fastapi, log_exception

app = FastAPI(
    title="SkillFlip API",
    description="Availability, slot and booking API for the SkillFlip marketplace",
    version="1.0.0"
)

@app.exception_handler(CosmosHttpResponseError)
async def storage_error_handler(request: Request, exc: CosmosHttpResponseError):
    """Storage failures are reported apart from booking validation rejections"""
    log_exception(exc, {"path": request.url.path, "status_code": exc.status_code})
    return JSONResponse(
        status_code=503,
        content={"detail": {"code": "storage_unavailable", "message": "The booking store is unavailable, please try again later"}}
    )

# Include all routers
app.include_router(rou_availability.router)
app.include_router(rou_booking.router)
app.include_router(rou_pricing.router)

# Instrument app with Azure Monitor
instrument_fastapi(app)

if __name__ == '__main__':
    import uvicorn
    uvicorn.run(app, host='0.0.0.0', port=8000)
