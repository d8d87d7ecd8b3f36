import logging
import sys

from devtasker.core.config import BASE_URL, IDENTITY, PASSWORD, LOG_LEVEL, DEFAULT_PROJECT_ID
from devtasker.core.exceptions import PBError
from devtasker.storage.pocketbase import PocketBaseClient
from devtasker.controller.app_controller import AppController

logger = logging.getLogger("devtasker")


def main():
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    client = PocketBaseClient(BASE_URL)
    controller = AppController(client)
    try:
        controller.auth.sign_in(IDENTITY, PASSWORD)
    except PBError as e:
        # no window without a session
        logger.error("Login error: %s", e)
        return 1

    # imported late so the stores stay usable without a display
    from devtasker.gui.board_window import BoardWindow

    ui = BoardWindow(controller, DEFAULT_PROJECT_ID)
    ui.mainloop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
