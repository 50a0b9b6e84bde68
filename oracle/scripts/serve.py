"""
Lance l'API de l'Oracle avec uvicorn.

Hôte et port viennent de la configuration (`APP_HOST`, `APP_PORT`); sans clés amont,
l'enrichissement et la voix basculent sur leurs replis.
"""

import uvicorn

from oracle.app.main import app
from oracle.core.container import container


def main():
    settings = container.settings
    uvicorn.run(app, host=settings.APP_HOST, port=settings.APP_PORT, reload=False)


if __name__ == "__main__":
    main()
