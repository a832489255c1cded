"""
intbasic server - HTTP interface to the Integer BASIC tools
"""

from typing import Optional

from fastapi import Body, FastAPI, File, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse
import uvicorn

from .detokenizer import Detokenizer
from .diagnostics import DiagnosticProvider
from .errors import LineTooLongError, RenumberBoundsError, RenumberParameterError
from .renumber import LineNumberTool, apply_edits, line_selection
from .settings import Settings
from .tokenizer import Tokenizer
from .tokens import hex_from_bytes


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Options for analysis and detokenizing (defaults if None)

    Returns:
        FastAPI application
    """
    settings = settings or Settings()
    app = FastAPI(title="intbasic", description="Integer BASIC tokenizer, detokenizer and analyzer")

    @app.post("/tokenize")
    async def tokenize_program(text: str = Body(..., embed=True)):
        """Tokenize a listing"""
        try:
            code = Tokenizer().tokenize(text)
        except LineTooLongError as e:
            raise HTTPException(status_code=422, detail=str(e))
        return JSONResponse(content={"hex": hex_from_bytes(code), "length": len(code)})

    @app.post("/detokenize")
    async def detokenize_image(file: UploadFile = File(...),
                               program_start: Optional[int] = Query(None),
                               program_end: Optional[int] = Query(None)):
        """List the program in an uploaded memory image"""
        content = await file.read()
        if not content:
            raise HTTPException(status_code=400, detail="File is empty")
        text = Detokenizer(settings).detokenize(content, program_start, program_end)
        if not text:
            raise HTTPException(status_code=404, detail="No program found in image")
        return JSONResponse(content={"text": text})

    @app.post("/analyze")
    async def analyze_program(text: str = Body(..., embed=True)):
        """Diagnostics and symbols of a listing"""
        return JSONResponse(content=DiagnosticProvider(settings).analyze(text).to_dict())

    @app.post("/renumber")
    async def renumber_program(text: str = Body(...),
                               start: int = Body(...),
                               step: int = Body(...),
                               update_references: bool = Body(False),
                               first_line: Optional[int] = Body(None),
                               last_line: Optional[int] = Body(None)):
        """Renumber a listing, or rows first_line through last_line of it"""
        selection = None
        if first_line is not None:
            selection = line_selection(first_line, first_line if last_line is None else last_line)
        try:
            edits = LineNumberTool().renumber(text, start, step, update_references, selection)
        except RenumberParameterError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except RenumberBoundsError as e:
            raise HTTPException(status_code=422, detail=str(e))
        return JSONResponse(content={
            "edits": [edit.to_dict() for edit in edits],
            "text": apply_edits(text, edits),
        })

    return app


def serve(host: str = '127.0.0.1', port: int = 8000, settings: Optional[Settings] = None):
    print(f"Starting server on http://{host}:{port}")
    uvicorn.run(create_app(settings), host=host, port=port, log_level="info")
