import logging

from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from provably_fair.config import APP_TITLE, LOG_LEVEL
from provably_fair.deps.store import InMemorySeedPairStore
from provably_fair.routers import games, seeds, verify

logging.basicConfig(level=LOG_LEVEL)

app = FastAPI(title=APP_TITLE)
app.state.store = InMemorySeedPairStore()

# Routers
app.include_router(seeds.router)
app.include_router(games.router)
app.include_router(verify.router)


@app.get("/", include_in_schema=False)
def root():
    return RedirectResponse(url="/docs")

@app.get("/healthz")
def healthz():
    return {"ok": True}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
