# main.py

import os
from datetime import datetime
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from crossdict.database.setup import SessionLocal, engine
from crossdict.logging_config import setup_logger
from crossdict.routers import pending_router, submission_router, admin_router, health_router
from crossdict.tasks.pending_cleanup import PendingRetentionSweeper

load_dotenv()

logger = setup_logger(__name__, "app.log")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Swept opportunistically after approve/reject, no background scheduler
    app.state.pending_sweeper = PendingRetentionSweeper(SessionLocal)
    status = app.state.pending_sweeper.get_status()
    logger.info(f"Pending cleanup ready: every {status['interval_hours']}h, "
                f"retention {status['retention_days']} days, batch {status['batch_limit']}")

    yield

    logger.info(f"Shutting down application at {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}...")
    await engine.dispose()


app = FastAPI(lifespan=lifespan)

origins = [origin.strip() for origin in os.getenv('CORS_ORIGINS', 'http://localhost:3000').split(',')
           if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)


# Include Routers
app.include_router(router=pending_router.router, prefix='/api/pending', tags=['Pending'])
app.include_router(router=submission_router.router, prefix='/api/pending', tags=['Submission'])
app.include_router(router=admin_router.router, prefix='/api/admin', tags=['Admin'])
app.include_router(router=health_router.router, prefix='/api', tags=['Health'])
