"""
vroom-express
=============
HTTP gateway for the vroom vehicle routing solver using FastAPI.

To run:
    uvicorn vroom_express.main:app --host 0.0.0.0 --port 3000

Or programmatically:
    from vroom_express import create_app, load_config
    import uvicorn
    uvicorn.run(create_app(load_config()), host="0.0.0.0", port=3000)
"""

from .config import AppConfig, SolverConfig, ServerConfig, load_config
from .main import app, create_app

__all__ = [
    'app',
    'create_app',
    'AppConfig',
    'SolverConfig',
    'ServerConfig',
    'load_config',
]

__version__ = "1.0.0"
