"""Star Destiny - birth-date to lunar mansion (二十八宿) assignment.

Resolves a birth date to one of the 28 mansions, remembers the result on the
local device and relays a copy of every assignment to two collection sinks.

Quick Start:
    ```python
    import asyncio

    from star_destiny.config import get_settings
    from star_destiny.service import build_service

    async def main():
        service = build_service(get_settings())
        revelation = service.reveal("1990-02-28")
        print(revelation.mansion.full_name)
        await service.pipeline.drain()

    asyncio.run(main())
    ```
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
