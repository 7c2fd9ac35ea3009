"""MediaVault API: browse and manage the media in an object store as folders."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from mediavault.api.items import app_items
from mediavault.connections import close_connections, start_connections


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.info("Connecting to object storage...")
    await start_connections()

    yield
    await close_connections()


app = FastAPI(
    title="MediaVault",
    description=__doc__ if __doc__ else "",
    openapi_tags=[
        dict(name="items", description="Endpoints to list, create, move, rename, and delete files and folders"),
    ],
    lifespan=lifespan,
)
app.include_router(app_items)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=1000)


@app.exception_handler(ValueError)
async def value_error_exception_handler(request: Request, exc: ValueError):
    return JSONResponse(
        status_code=400,
        content={"message": str(exc)},
    )


@app.exception_handler(FileNotFoundError)
async def not_found_exception_handler(request: Request, exc: FileNotFoundError):
    return JSONResponse(
        status_code=404,
        content={"message": str(exc)},
    )
