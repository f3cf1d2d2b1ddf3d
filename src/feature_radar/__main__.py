"""Entry point for running as a module."""
from feature_radar.api import app
from feature_radar.config import configure_logging, load_local_env_file
import uvicorn
import os

if __name__ == "__main__":
    load_local_env_file()
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
