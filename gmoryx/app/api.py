# gmoryx/app/api.py
import logging

from fastapi import Request

from .errors import HandlerRenderFailure
from .httpd import ResponseWriter

logger = logging.getLogger(__name__)

SERVER_IDENTITY = "GMOryx/0.1"
PROJECT_URL = "https://github.com/ossrs/go-oryx-lib/tree/master/gmoryx"

WELCOME_PARTS = (
    "<html>",
    "Welcome to ",
    f"<a href='{PROJECT_URL}'>GMOryx(GoMobile Oryx)</a>",
    "!",
    "</html>",
)
WELCOME_HTML = "".join(WELCOME_PARTS)


def write_welcome(w: ResponseWriter):
    for part in WELCOME_PARTS:
        w.write(part)


def root_handler(w: ResponseWriter, r: Request):
    """
    Handler for "/". Never raises: a page that fails half way is sent as
    far as it got, the server keeps running.
    """
    try:
        w.set_server_header()
        write_welcome(w)
    except Exception as e:
        failure = e if isinstance(e, HandlerRenderFailure) else HandlerRenderFailure(str(e))
        logger.warning("root page render failed: %s", failure)
