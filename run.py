"""
vroom-express - Entry Point
===========================
Simple entry point to run the gateway.

Usage:
    python run.py

Or with uvicorn directly:
    uvicorn vroom_express.main:app --host 0.0.0.0 --port 3000

Configuration comes from config.yml and VROOM_* environment variables.
"""

from vroom_express.main import main

if __name__ == "__main__":
    main()
