# make it true if you want the logs (F1 in the window flips it)
import logging

logger = logging.getLogger("chip8emu")
logger.addHandler(logging.NullHandler())

logsOn = False


def set_logs(on):
    global logsOn
    logsOn = bool(on)
    logger.setLevel(logging.DEBUG if logsOn else logging.WARNING)
    return logsOn


def toggle_logs():
    return set_logs(not logsOn)


def log(*args):
    if logsOn:
        logger.debug(" ".join(str(a) for a in args))
