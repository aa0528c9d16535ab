from fastapi import FastAPI
from pydantic import BaseModel

import save_metadata.service.v1.routers.metadata as v1_metadata
from save_metadata.service.shared import v1_prefix

app = FastAPI(title="Save Metadata")


class ContainsStatus(BaseModel):
    """A response carrying a status string."""

    status: str


app.include_router(v1_metadata.router, prefix=v1_prefix, tags=["v1", "metadata"])


@app.get("/heartbeat")
def heartbeat() -> ContainsStatus:
    """Heartbeat endpoint to check the service status."""
    return ContainsStatus(status="ok")
