from fastapi import FastAPI, HTTPException

from api.app import create_app

try:
    app = create_app()
except RuntimeError:
    app = FastAPI(title="Markdown to PDF Converter", version="1.0.0")

    @app.get("/")
    async def api_disabled() -> dict[str, str]:
        raise HTTPException(
            status_code=503,
            detail="Local API disabled. Enable by setting enable_local_api = true in config.toml",
        )
