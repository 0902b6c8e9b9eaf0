"""Package entry point for ``python -m caption_fetcher``.

WHY: Users fetch transcripts from the terminal with
``python -m caption_fetcher VIDEO_ID``, or start the HTTP API with
``python -m caption_fetcher --serve``.

HOW: Checks sys.argv for the ``--serve`` flag. If present, runs the FastAPI
app under uvicorn. Otherwise, delegates to the CLI's main() function.

RULES:
- ``--serve`` starts the API server (host/port from uvicorn defaults in run_api)
- Without ``--serve``, falls through to the CLI
"""

import sys

if __name__ == "__main__":
    if "--serve" in sys.argv:
        from caption_fetcher.server.app import run_api
        run_api()
    else:
        from caption_fetcher.cli import main
        main()
