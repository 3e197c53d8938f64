import logging
import uvicorn
from .app import app
from .config import PORT

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


def run() -> None:
    uvicorn.run(app, host="0.0.0.0", port=PORT)


if __name__ == "__main__":
    run()


# Run with: uvicorn ladoum_backend.main:app --host 0.0.0.0 --port 8000
