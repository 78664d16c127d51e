import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from console.handlers import categories, images, upload
from gallery.config import get_settings
from gallery.state import GalleryState

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gallery", description="Image Chart Manager")
    subparsers = parser.add_subparsers(dest="command", required=True)
    images.register(subparsers)
    upload.register(subparsers)
    categories.register(subparsers)
    return parser


async def run(args) -> int:
    async with GalleryState() as state:
        try:
            return await args.handler(state, args)
        except ValueError as e:
            print(f"⚠️ {str(e)}")
            return 2


def main(argv=None) -> int:
    # Load environment variables from .env in the working directory
    load_dotenv(Path.cwd() / '.env')
    settings = get_settings()
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=getattr(logging, settings.log_level.upper(), logging.INFO)
    )

    args = build_parser().parse_args(argv)
    logger.debug(f"Running command {args.command} against {settings.backend_url}")
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
