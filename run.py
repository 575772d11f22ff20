"""
RUN SCRIPT - Start the MindTrack Coach server
=============================================

PURPOSE:
  Single entry point to start the backend.

WHAT IT DOES:
  - Imports the FastAPI app from mindtrack.main.
  - Runs it with uvicorn on HOST (default 0.0.0.0, accept connections from any
    interface) and PORT (default 8000).
  - reload=True means any change to Python files will restart the server (handy for development).

USAGE:
  python run.py

  Then point the web client at http://localhost:8000, or use test.py.
  API docs: http://localhost:8000/docs

NOTE:
  Before running, set GEMINI_API_KEY in .env.
"""

import os

import uvicorn

# ------------------------------------------------------------------------------
# ENTRY POINT
# ------------------------------------------------------------------------------
# Only run uvicorn when this file is executed directly (python run.py),
# not when it is imported by another module.
if __name__ == "__main__":
    uvicorn.run(
        "mindtrack.main:app",                    # String path to the FastAPI app instance (module:variable).
        host=os.getenv("HOST", "0.0.0.0"),       # Listen on all network interfaces so other devices can connect.
        port=int(os.getenv("PORT", "8000")),     # HTTP port; change if 8000 is already in use.
        reload=True                              # Auto-restart when .py files change (useful during development).
    )
