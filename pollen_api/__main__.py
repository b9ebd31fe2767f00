"""Run the API under uvicorn on LISTEN_ADDR (default ":8080")."""

import uvicorn

from pollen_api.core.config import LISTEN_ADDR, parse_listen_addr


def run() -> None:
    host, port = parse_listen_addr(LISTEN_ADDR)
    uvicorn.run("pollen_api.main:app", host=host, port=port, log_config=None)


if __name__ == "__main__":
    run()
