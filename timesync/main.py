import logging

from dotenv import load_dotenv
from fastapi import FastAPI

load_dotenv()

from timesync.routes.health import router as health_router
from timesync.routes.meetings import router as meetings_router

logger = logging.getLogger("timesync")
logging.basicConfig(level=logging.INFO)

app = FastAPI(title="TimeSync - Cross-Timezone Meeting Scheduler")

# Routes
app.include_router(health_router, tags=["health"])
app.include_router(meetings_router, tags=["meetings"])


@app.get("/")
def root():
    return {"status": "ok"}
