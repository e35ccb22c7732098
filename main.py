import asyncio
import uvicorn

from core.config import settings
from core.logger import setup_logging, logger

async def start_api():
    from api.main import app
    config = uvicorn.Config(app, host=settings.API_HOST, port=settings.API_PORT, log_level="info")
    server = uvicorn.Server(config)
    await server.serve()

async def main():
    # Setup structured logging
    setup_logging()

    # For scaling, run 'uvicorn api.main:app --workers N' directly instead
    logger.info("Starting Quiz API...", env=settings.ENV, host=settings.API_HOST, port=settings.API_PORT)
    await start_api()

if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        logger.info("Application stopped.")
