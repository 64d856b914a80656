import argparse
import logging
import sys

from chip8emu.config import CPU_HZ, SCALE, Quirks
from chip8emu.emulator import Emulator, Machine, SilentSound
from chip8emu.errors import Chip8Error, RomError
from chip8emu.logs import set_logs
from chip8emu.memory import read_rom


def build_parser():
    parser = argparse.ArgumentParser(
        prog="chip8emu",
        description="CHIP-8 emulator. Keys 1234/QWER/ASDF/ZXCV, ESC quits, F1 toggles logs.",
    )
    parser.add_argument("rom", help="path to the ROM file")
    parser.add_argument("--hz", type=int, default=CPU_HZ,
                        help="instructions per second (default: %(default)s)")
    parser.add_argument("--scale", type=int, default=SCALE,
                        help="window pixels per CHIP-8 pixel (default: %(default)s)")
    parser.add_argument("--mute", action="store_true", help="disable the beeper")
    parser.add_argument("-v", "--verbose", action="store_true", help="start with logs on")

    quirks = parser.add_argument_group("quirks")
    quirks.add_argument("--index-overflow", action="store_true",
                        help="FX1E sets VF when I leaves 0x000-0xFFF")
    quirks.add_argument("--key-release", action="store_true",
                        help="FX0A waits for a key to be released")
    quirks.add_argument("--wrap-sprites", action="store_true",
                        help="sprites wrap around the screen edges instead of clipping")
    quirks.add_argument("--shift-uses-vy", action="store_true",
                        help="8XY6/8XYE shift VY into VX")
    quirks.add_argument("--load-store-increments-index", action="store_true",
                        help="FX55/FX65 leave I past the last register")
    return parser


def quirks_from_args(args):
    return Quirks(
        index_overflow=args.index_overflow,
        key_release=args.key_release,
        wrap_sprites=args.wrap_sprites,
        shift_uses_vy=args.shift_uses_vy,
        load_store_increments_index=args.load_store_increments_index,
    )


def main(argv=None):
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    set_logs(args.verbose)

    machine = Machine()
    try:
        machine.memory.load(read_rom(args.rom))
    except RomError as e:
        print(e, file=sys.stderr)
        return 1

    # pyglet opens a display connection on import, keep it out of --help / bad ROM paths
    from chip8emu.frontend import Chip8Window, PygletSound

    window = Chip8Window(scale=args.scale)
    sound = SilentSound() if args.mute else PygletSound()
    emulator = Emulator(machine, window, sound, cpu_hz=args.hz, quirks=quirks_from_args(args))
    window.emulator = emulator

    try:
        emulator.run()
    except Chip8Error as e:
        print("Emulation error:", e, file=sys.stderr)
        return 1
    finally:
        window.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
