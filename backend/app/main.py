"""FastAPI application entrypoints for the Brainfuck interpreter.

Handlers stay small: each `/run` request builds its own `Program` and
`Interpreter` through `run_code`, so nothing is shared between requests.
Client-supplied settings are clamped server-side because a Brainfuck program
can loop forever or print without end; the step and output caps are what
bound a request.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI
from pydantic import BaseModel

from .. import db
from ..brainfuck.cells import CELL_KINDS
from ..brainfuck.errors import BrainfuckError
from ..brainfuck.interpreter import DEFAULT_CELL_BITS, DEFAULT_CELLS, run_code
from ..brainfuck.program import Program

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the database schema when the application starts."""
    db.init_db()
    yield


app = FastAPI(title="Brainfuck API", version="0.1", lifespan=lifespan)

# Server-side ceilings; requests may ask for less, never more.
MAX_CELLS = 65536
MAX_STEPS = 1_000_000
MAX_OUTPUT_BYTES = 5000


def _cap_settings(settings: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Clamp client-requested run settings to the server's safe maximums.

    Returns a dict suitable for passing as `settings` to `run_code`. An
    unsupported `cell_bits` falls back to the default width.
    """
    settings = settings or {}
    caps: Dict[str, Any] = {}
    caps["cells"] = max(1, min(int(settings.get("cells", DEFAULT_CELLS)), MAX_CELLS))
    caps["extensible"] = bool(settings.get("extensible", False))
    caps["max_steps"] = max(1, min(int(settings.get("max_steps", MAX_STEPS)), MAX_STEPS))
    caps["max_output_bytes"] = max(
        1, min(int(settings.get("max_output_bytes", MAX_OUTPUT_BYTES)), MAX_OUTPUT_BYTES)
    )
    try:
        bits = int(settings.get("cell_bits", DEFAULT_CELL_BITS))
    except (TypeError, ValueError):
        bits = DEFAULT_CELL_BITS
    caps["cell_bits"] = bits if bits in CELL_KINDS else DEFAULT_CELL_BITS
    return caps


class RunRequest(BaseModel):
    """Body of a `/run` request.

    Fields:
        code: Brainfuck source text.
        input: text fed to the program's `,` instructions (UTF-8 encoded).
        settings: optional tape/limit tunables; capped server-side.
        script_id: optional id of a saved script this run belongs to.
    """
    code: str
    input: str = ""
    settings: Optional[Dict[str, Any]] = None
    script_id: Optional[int] = None


@app.post("/run")
async def run_program(req: RunRequest):
    """Run a program and return its output, step count and structured errors.

    Interpreter failures (bad brackets, pointer errors, exhausted input, caps)
    come back in `errors` with their code and source position. Anything
    unexpected is logged and reported as SERVER_ERROR so callers always get
    the same JSON shape.
    """
    start = time.time()
    try:
        capped = _cap_settings(req.settings)
        result = run_code(req.code, source="<request>", stdin=req.input, settings=capped)
    except Exception as e:
        logger.exception("Run failed unexpectedly")
        return {
            "output": "",
            "steps": 0,
            "warnings": [],
            "duration_ms": int((time.time() - start) * 1000),
            "errors": {"code": "SERVER_ERROR", "message": str(e)},
        }
    result["duration_ms"] = int((time.time() - start) * 1000)
    result["warnings"] = []

    # persisting history must not fail the request
    if result["errors"] is None:
        try:
            db.save_run(req.script_id, result["steps"], result["output_bytes"], result["duration_ms"])
        except Exception as e:
            logger.warning("Failed to persist run: %s", e)
            result["warnings"].append(f"Failed to persist run: {e}")

    return result


class ValidateRequest(BaseModel):
    code: str


@app.post("/validate")
async def validate_program(req: ValidateRequest):
    program = Program.from_source("<request>", req.code)
    try:
        program.validate()
    except BrainfuckError as e:
        return {"valid": False, "instructions": len(program), "errors": e.to_dict()}
    return {"valid": True, "instructions": len(program), "errors": None}


class SaveScriptRequest(BaseModel):
    title: str
    code: str


@app.post('/save')
async def save_script(req: SaveScriptRequest):
    try:
        script_id = db.save_script(req.title, req.code)
    except Exception as e:
        logger.warning("Failed to save script: %s", e)
        return {'error': str(e)}
    return {'script_id': script_id}


@app.get('/scripts')
async def list_scripts():
    return db.list_scripts()


@app.get('/scripts/{script_id}')
async def get_script(script_id: int):
    s = db.get_script(script_id)
    if not s:
        return {'error': 'not found'}
    return s


@app.get('/stats')
async def list_stats(script_id: Optional[int] = None):
    return db.list_runs(script_id)
