class Chip8Error(Exception):
    """Base class for everything that stops emulation abnormally."""


class StackUnderflow(Chip8Error):
    """00EE with nothing on the stack: the program is malformed."""


class StackOverflow(Chip8Error):
    pass


class RomError(Chip8Error):
    """ROM could not be read or does not fit in memory."""


class ProgramFinished(Exception):
    """The program counter ran past the end of the loaded program.

    Not an error: this is how a program that falls off its end terminates.
    """

    def __init__(self, pc):
        super().__init__("Program finished at 0x%03X" % pc)
        self.pc = pc
