#!/usr/bin/env python3
"""Run script for the braindumper scheduling API."""

import os

import uvicorn
from dotenv import load_dotenv

if __name__ == "__main__":
    load_dotenv()
    uvicorn.run(
        "braindumper.api.app:app",
        host=os.getenv("BRAINDUMPER_HOST", "127.0.0.1"),
        port=int(os.getenv("BRAINDUMPER_PORT", "8000")),
        reload=os.getenv("BRAINDUMPER_RELOAD", "true").lower() == "true",
    )
