"""Run the gridcard API with uvicorn (`gridcard-api` or `python -m gridcard.main`)."""
import logging

import uvicorn

from gridcard.config import API_HOST, API_PORT, API_RELOAD, ensure_data_dir


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    ensure_data_dir()
    # import string so reload can re-import the app
    uvicorn.run("gridcard.api.app:app", host=API_HOST, port=API_PORT, reload=API_RELOAD)


if __name__ == "__main__":
    main()
