"""
Application Entry Point
Run with: python main.py or uvicorn tasktracker.api.main:app --reload
"""

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "tasktracker.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,  # Auto-reload on code changes (dev only)
        log_level="info",
    )
