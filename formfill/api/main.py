"""FastAPI application entry point."""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from formfill.api.routes import router
from formfill.domain.exceptions import FormFillerError
from formfill.logger import get_logger

logger = get_logger(__name__)

app = FastAPI(
    title="Form Filler API",
    description="Map spreadsheet columns to form fields, validate values and fill forms row by row",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FormFillerError)
async def form_filler_error_handler(request: Request, exc: FormFillerError) -> JSONResponse:
    # Routes without their own try/except still answer 400 on domain errors
    logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=400, content={"detail": str(exc)})


app.include_router(router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
