# tankcheck/main.py
from fastapi import FastAPI

from .errors import install_error_handlers
from .routes import assessments, quotes, repairs
from .settings import get_settings

settings = get_settings()

app = FastAPI(title="TankCheck API", version=settings.APP_VERSION)
install_error_handlers(app)

app.include_router(assessments.router)
app.include_router(repairs.router)
app.include_router(quotes.router)


@app.get("/")
def health():
    return {"status": "ok", "service": "tankcheck", "ruleset_version": settings.RULESET_VERSION}
