# tools/analyze_photo.py
# Run a local meal photo through the analysis adapter, exactly as the app would post it.
# CLI:
#   python -m tools.analyze_photo --file samples/bibimbap.jpg
#   python -m tools.analyze_photo --file samples/bibimbap.jpg --strategy two_step
#   python -m tools.analyze_photo --file samples/bibimbap.jpg --print-request > body.json

from __future__ import annotations

import asyncio
import base64
import json
import mimetypes
from pathlib import Path
from typing import Any, Dict, Optional

from glucolens.adapter import AdapterResponse, InferenceAdapter


def build_request_body(file_name: str, mime_type: Optional[str] = None) -> Dict[str, Any]:
    """
    Read an image file and return the JSON body the client app sends:
      {"imageBase64": "...", "mimeType": "image/jpeg"}
    The MIME type is guessed from the extension when not given.
    """
    path = Path(file_name)
    data = path.read_bytes()
    if not mime_type:
        mime_type, _ = mimetypes.guess_type(path.name)
    return {
        "imageBase64": base64.b64encode(data).decode("ascii"),
        "mimeType": mime_type or "application/octet-stream",
    }


def analyze_file(
    file_name: str,
    mime_type: Optional[str] = None,
    adapter: Optional[InferenceAdapter] = None,
) -> AdapterResponse:
    body = build_request_body(file_name, mime_type)
    adapter = adapter or InferenceAdapter()
    return asyncio.run(adapter.handle("POST", json.dumps(body)))


if __name__ == "__main__":
    import argparse
    import os
    import sys

    parser = argparse.ArgumentParser(description="Analyze a meal photo with Gemini.")
    parser.add_argument("--file", required=True, help="Path to a JPEG/PNG/WebP/HEIC photo")
    parser.add_argument("--mime", help="MIME type (optional). Guessed from the extension if omitted.")
    parser.add_argument("--strategy", choices=["single", "two_step"], help="Override ANALYSIS_STRATEGY")
    parser.add_argument("--print-request", action="store_true", help="Only print the request body JSON")
    args = parser.parse_args()

    if args.print_request:
        print(json.dumps(build_request_body(args.file, args.mime)))
        sys.exit(0)

    if args.strategy:
        os.environ["ANALYSIS_STRATEGY"] = args.strategy

    from glucolens.settings import configure_logging

    configure_logging()
    res = analyze_file(args.file, args.mime)
    print(json.dumps(res.body, ensure_ascii=False, indent=2))
    sys.exit(0 if res.ok else 1)
