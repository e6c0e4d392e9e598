from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from app.core.config import CORS_ORIGINS, LOG_LEVEL
from app.core.exceptions import DomainError
from app.core.logging_config import setup_logging
from app.database import create_db_and_tables
from app.api import loans, transactions, wallets
from fastapi.middleware.cors import CORSMiddleware

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(LOG_LEVEL)
    create_db_and_tables()
    yield

app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})

app.include_router(wallets.router)
app.include_router(transactions.router)
app.include_router(loans.router)

@app.get("/")
def root():
    return {"message": "Servidor de finanzas personales"}
