import hashlib

from fastapi import FastAPI, UploadFile, File, HTTPException
from fastapi.concurrency import run_in_threadpool
from .encoding import decode_bytes
from .errors import Csv2JsonError
from .models import ConvertResponse, HealthResponse, Separator
from .pipeline import convert_text
from .rules import OUTPUT_ENCODING, SOURCE_SUFFIX

app = FastAPI(
    title="csv2json",
    description="Streaming CSV to JSON array conversion",
    version="0.1.0",
)

@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True}

@app.post("/convert", response_model=ConvertResponse)
async def convert_csv(
    file: UploadFile = File(...),
    separator: Separator = Separator.COMMA,
    pretty: bool = False,
):
    if not file.filename.lower().endswith(SOURCE_SUFFIX):
        raise HTTPException(status_code=422, detail="Only CSV files are supported")

    raw = await file.read()
    try:
        text, source_encoding = await run_in_threadpool(decode_bytes, raw)
        document, summary = await run_in_threadpool(
            convert_text, text, separator=separator, pretty=pretty
        )
    except Csv2JsonError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    encoded = document.encode(OUTPUT_ENCODING)
    return {
        "converted_json": {
            "sha256": hashlib.sha256(encoded).hexdigest(),
            "encoding": OUTPUT_ENCODING,
            "content": document,
        },
        "report": {
            "summary": {
                "records": summary.records_written,
                "malformed": len(summary.malformed_rows),
                "separator": separator,
                "pretty": pretty,
                "source_encoding": source_encoding,
            },
            "malformed_rows": summary.malformed_rows,
        },
    }
