"""
Content Delivery Service - stores and serves zip content packages
FastAPI backend
"""

import logging

from dotenv import load_dotenv

from contentpacks.config import get_local_config
from contentpacks.server import create_app

# Load environment
load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

app = create_app(get_local_config())


# Run with: uvicorn app:app --reload
if __name__ == "__main__":
    import uvicorn

    config = get_local_config()
    port = config.get_port()

    print(f"Starting Content Delivery Service on http://localhost:{port}{config.get_base_path()}/overview")
    uvicorn.run(app, host=config.get_host(), port=port)
