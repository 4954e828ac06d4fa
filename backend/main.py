"""
FastAPI backend service for wallet statement parsing.
"""
from fastapi import FastAPI, File, UploadFile, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import os
from pathlib import Path
import logging
from typing import List

from wallet_parser.core.detectors import DEFAULT_TEMPLATE_ID, TemplateDetector
from wallet_parser.core.errors import ExtractionError
from wallet_parser.core.loader import extract_lines
from wallet_parser.core.runner import StatementExtractor

DEFAULT_CORS_ORIGINS = "http://localhost:5173,http://localhost:3000"

app = FastAPI(title="Wallet Statement Parser", version="1.0.0")

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        origin.strip()
        for origin in os.getenv("WALLET_PARSER_CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",")
        if origin.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _read_pdf_upload(file: UploadFile) -> bytes:
    """Validate the upload and return its bytes, retaining a copy if configured."""
    if not file.filename or not file.filename.lower().endswith('.pdf'):
        raise HTTPException(status_code=400, detail="File must be a PDF")

    content = file.file.read()

    upload_dir = os.getenv("WALLET_PARSER_UPLOAD_DIR")
    if upload_dir:
        target = Path(upload_dir)
        target.mkdir(parents=True, exist_ok=True)
        (target / Path(file.filename).name).write_bytes(content)
        logger.info(f"Stored upload: {target / Path(file.filename).name}")

    return content


def _lines_from_upload(file: UploadFile) -> List[str]:
    content = _read_pdf_upload(file)
    logger.info(f"Processing PDF: {file.filename}")
    return extract_lines(content)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"message": "Wallet Statement Parser API", "status": "healthy"}


@app.post("/upload")
def upload_statement(file: UploadFile = File(...)):
    """
    Parse an uploaded wallet statement.

    Returns:
        The statement record, or {"error": message} with status 500
    """
    try:
        lines = _lines_from_upload(file)
        result = StatementExtractor(DEFAULT_TEMPLATE_ID).extract(lines)
    except ExtractionError as e:
        logger.error(f"Error parsing PDF: {e}")
        return JSONResponse(status_code=500, content={"error": e.message})

    return JSONResponse(content=result.statement.model_dump())


@app.post("/parse")
def parse_pdf(file: UploadFile = File(...), template: str = DEFAULT_TEMPLATE_ID):
    """
    Parse a PDF file and return structured data with diagnostics.

    Args:
        file: Uploaded PDF file
        template: Template ID to use, or "auto" to detect it

    Returns:
        Parsed statement data as JSON
    """
    try:
        lines = _lines_from_upload(file)
    except ExtractionError as e:
        logger.error(f"Error parsing PDF: {e}")
        raise HTTPException(status_code=500, detail=e.message)

    detector = TemplateDetector()
    if template == "auto":
        detected_template = detector.detect_template(lines)
        if not detected_template:
            raise HTTPException(status_code=400, detail="Could not detect template for this PDF")
        template = detected_template
        logger.info(f"Detected template: {template}")
    elif not detector.get_template(template):
        raise HTTPException(status_code=400, detail=f"Template not found: {template}")

    result = StatementExtractor(template).extract(lines)
    data = result.statement.model_dump()

    logger.info(f"Successfully parsed PDF: {len(data['transactions'])} transactions found")

    return JSONResponse(content={
        "success": True,
        "data": data,
        "template_used": template,
        "summary": {
            "transactions_count": len(data['transactions']),
            "failed_lines_count": len(result.failures),
            "statement_period": data['statement_period'],
            "closing_balance": data['closing_balance']
        },
        "failures": [failure.model_dump() for failure in result.failures]
    })


@app.post("/detect-template")
def detect_pdf_template(file: UploadFile = File(...)):
    """
    Detect which template matches a PDF file.

    Args:
        file: Uploaded PDF file

    Returns:
        Detected template ID
    """
    try:
        lines = _lines_from_upload(file)
    except ExtractionError as e:
        logger.error(f"Error detecting template: {e}")
        raise HTTPException(status_code=500, detail=e.message)

    template = TemplateDetector().detect_template(lines)
    if not template:
        raise HTTPException(status_code=400, detail="No matching template found")

    return JSONResponse(content={
        "success": True,
        "template": template
    })


@app.get("/templates")
async def list_templates():
    """List all available templates."""
    detector = TemplateDetector()
    return JSONResponse(content={
        "success": True,
        "templates": [
            {
                "id": template_id,
                "name": config.get("name", template_id),
                "currency": config.get("currency"),
                "description": config.get("description", "")
            }
            for template_id, config in detector.templates.items()
        ]
    })


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
