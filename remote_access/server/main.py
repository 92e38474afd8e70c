"""FastAPI application entrypoint for the remote access server."""
import uvicorn
from fastapi import FastAPI

from . import auth, files, logs
from .database import Base, engine
from .logging_config import configure_logging

logger = configure_logging()

# Create tables
Base.metadata.create_all(bind=engine)

app = FastAPI(title="Remote Access Server", version="1.0.0")
app.include_router(auth.router)
app.include_router(files.router)
app.include_router(logs.router)


@app.get("/")
def root():
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run("remote_access.server.main:app", host="0.0.0.0", port=8000, reload=False)
