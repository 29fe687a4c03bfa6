import logging

from fastapi import FastAPI

from fundsignal.api.endpoints import financials, recommendation

logging.basicConfig(level=logging.INFO)

app = FastAPI(title="fundsignal API", version="1.0.0")

app.include_router(financials.router)
app.include_router(recommendation.router)


@app.get("/api/health")
async def health_check():
    return {"status": "ok", "service": "fundsignal"}
