import uvicorn

from .config import settings

if __name__ == "__main__":
    uvicorn.run("avalon_engine.app:app", host="0.0.0.0", port=8000, log_level=settings.log_level.lower())
