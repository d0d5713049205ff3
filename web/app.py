"""FastAPI web adapter for the LC-3 virtual machine."""

import base64
import binascii
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field

from lc3vm import PC_START, RunOptions, run_images


# Constants
MAX_IMAGE_SIZE = 2 * (1 << 16) + 2  # origin word plus a full address space
MAX_IMAGES = 16
STATIC_DIR = Path(__file__).parent.parent / "static"


# Request/Response models
class RunOptionsModel(BaseModel):
    start_address: int = Field(default=PC_START, ge=0, le=0xFFFF)
    max_steps: int = Field(default=1_000_000, ge=1, le=10_000_000)
    trace: bool = False
    trace_watch: list[int] = Field(default_factory=list)
    trace_registers: bool = True
    initial_memory: dict[str, int] = Field(default_factory=dict)
    max_trace_rows: int = Field(default=10_000, ge=0, le=100_000)


class RunRequest(BaseModel):
    images: list[str] = Field(min_length=1, max_length=MAX_IMAGES)
    input: str = ""
    options: Optional[RunOptionsModel] = None


class FinalState(BaseModel):
    registers: list[int]
    pc: int
    cond: str
    running: bool


class RunResponse(BaseModel):
    status: str
    output_text: str
    steps_executed: int
    final_state: FinalState
    loaded: list[dict]
    trace_watch: list[int]
    trace: list[dict]
    error: Optional[dict] = None


# Create FastAPI app
app = FastAPI(
    title="LC-3 Virtual Machine",
    description="Web API for running assembled LC-3 images with tracing",
    version="0.1.0",
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _decode_image(index: int, encoded: str) -> bytes:
    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(
            status_code=400,
            detail=f"Image {index} is not valid base64",
        )
    if len(data) > MAX_IMAGE_SIZE:
        raise HTTPException(
            status_code=400,
            detail=f"Image {index} exceeds limit of {MAX_IMAGE_SIZE} bytes",
        )
    return data


@app.get("/api/health")
async def health():
    return {"status": "ok"}


@app.post("/api/run", response_model=RunResponse)
async def run_code(request: RunRequest):
    """Run one or more LC-3 images.

    Args:
        request: Base64 images, console input, and execution options

    Returns:
        Execution result with output, trace, and final state
    """
    images = [_decode_image(i, encoded) for i, encoded in enumerate(request.images)]

    # Build options
    opts = request.options or RunOptionsModel()

    # Convert initial_memory keys from string to int
    initial_memory = {}
    for k, v in opts.initial_memory.items():
        try:
            initial_memory[int(k, 0)] = v
        except ValueError:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid memory address key: {k}",
            )

    run_opts = RunOptions(
        start_address=opts.start_address,
        max_steps=opts.max_steps,
        trace=opts.trace,
        trace_watch=opts.trace_watch,
        trace_registers=opts.trace_registers,
        initial_memory=initial_memory,
        max_trace_rows=opts.max_trace_rows,
    )

    result = run_images(images, input_text=request.input, options=run_opts)

    return result.to_dict()


# Mount static files AFTER API routes to prevent shadowing
if STATIC_DIR.exists():
    app.mount("/", StaticFiles(directory=str(STATIC_DIR), html=True), name="static")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8080)
