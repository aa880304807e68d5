"""Entry point: ``python -m unnamedbot``."""

import asyncio

from unnamedbot.app import main

if __name__ == "__main__":
    asyncio.run(main())
