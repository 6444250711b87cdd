# server.py
# FastAPI entrypoint: accepts the meal photo JSON, runs the Gemini analysis through the
# same adapter the serverless handler uses, returns the AnalysisResult or {"error": ...}.

from __future__ import annotations

import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from glucolens.adapter import InferenceAdapter
from glucolens.schemas import AnalysisResult, ErrorResponse, HealthResponse
from glucolens.settings import configure_logging, get_settings

# -----------------------------------------------------------------------------
# App setup
# -----------------------------------------------------------------------------
configure_logging()

app = FastAPI(title="Glycemic Meal Analyzer")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Every verb is routed to the adapter so a GET gets the JSON 405 body, not FastAPI's.
ANY_METHOD = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]

ANALYZE_RESPONSES = {
    200: {"model": AnalysisResult},
    400: {"model": ErrorResponse},
    405: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    504: {"model": ErrorResponse},
}


def get_adapter() -> InferenceAdapter:
    adapter = getattr(app.state, "adapter", None)
    if adapter is None:
        adapter = app.state.adapter = InferenceAdapter()
    return adapter


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------
@app.get("/api/health", response_model=HealthResponse)
def health():
    st = get_settings()
    return HealthResponse(
        status="ok",
        has_gemini_key=st.has_api_key,
        model=st.GEMINI_MODEL,
        strategy=st.ANALYSIS_STRATEGY,
    )


@app.api_route("/api/", methods=ANY_METHOD, responses=ANALYZE_RESPONSES)
@app.api_route("/api/analyze", methods=ANY_METHOD, responses=ANALYZE_RESPONSES)  # alias for convenience
async def analyze(request: Request):
    body = await request.body()
    response = await get_adapter().handle(request.method, body)
    return JSONResponse(status_code=response.status_code, content=response.body)


@app.get("/")
def root():
    return {"message": "Glycemic Meal Analyzer is running. POST /api/analyze with {imageBase64, mimeType}"}


# -----------------------------------------------------------------------------
# Local dev
# -----------------------------------------------------------------------------
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("server:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")), reload=False)
