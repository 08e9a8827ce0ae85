from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
import uvicorn
import os
from api import config, shifts, teachers
from database import init_db, SessionLocal, SchedulerConfigDB

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Teacher Shift Scheduler API")

@app.on_event("startup")
def on_startup():
    init_db()
    seed_data()

def seed_data():
    db = SessionLocal()
    try:
        key = config.SHIFT_DEFAULTS_KEY
        if not db.query(SchedulerConfigDB).filter(SchedulerConfigDB.key == key).first():
            logger.info("Seeding default shift configuration...")
            db.add(SchedulerConfigDB(key=key, value_json=dict(config.DEFAULT_SHIFT_CONFIG)))
            db.commit()
    finally:
        db.close()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(config.router, prefix="/api")
app.include_router(teachers.router, prefix="/api")
app.include_router(shifts.router, prefix="/api")

@app.get("/health")
async def health_check():
    return {"status": "ok", "version": "0.1.0"}

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8765))
    uvicorn.run("main:app", host="127.0.0.1", port=port, reload=True)
