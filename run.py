import logging
from typing import Optional

import uvicorn

from urlanalyzer.api.server import create_app
from urlanalyzer.container import Container
from urlanalyzer.db.engine import init_schema

logger = logging.getLogger("urlanalyzer")


def main(container: Optional[Container] = None):
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    container = container or Container()

    init_schema(container.db_engine())

    worker = container.crawl_worker()
    app = create_app(
        requests_repo=container.crawl_requests_repository(),
        results_repo=container.crawl_results_repository(),
        container_env=container.config(),
        worker=worker,
    )

    worker.start()
    try:
        host = container.config.API_HOST()
        port = int(container.config.API_PORT())
        logger.info("API listening on %s:%s", host, port)
        uvicorn.run(app, host=host, port=port)
    finally:
        worker.stop()


if __name__ == '__main__':
    main()
