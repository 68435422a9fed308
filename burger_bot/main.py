# Load environment variables FIRST, before any module imports that need them
from dotenv import load_dotenv
load_dotenv()

import logging

from .app_factory import create_app
from .config import HOST, PORT
from .logging_config import setup_logging

# Configure logging at module load time
setup_logging()

logger = logging.getLogger(__name__)

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=HOST, port=PORT)
