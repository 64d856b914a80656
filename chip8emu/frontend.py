# We're subclassing pyglet (that handles graphics, sound output, and keyboard
# handling) and overriding whatever def we need from there. The Emulator drives
# the loop itself, so the window only dispatches events and draws when asked.

import random

import numpy as np
import pyglet
from pyglet.media import synthesis
from pyglet.window import key

from chip8emu.config import HEIGHT, KEYMAP, SCALE, WIDTH
from chip8emu.logs import log, toggle_logs


def _symbol(name):
    # pyglet names the digit keys _0.._9
    return getattr(key, "_" + name if name.isdigit() else name)


# pyglet key symbol -> physical key name used by config.KEYMAP
KEYNAMES = {_symbol(name): name for name in KEYMAP}


def generate_beep(duration=0.1, frequency=440, sample_rate=44100):
    # Use a Sine waveform from pyglet.media.synthesis
    return synthesis.Sine(duration=duration, frequency=frequency, sample_rate=sample_rate)


class Chip8Window(pyglet.window.Window):
    def __init__(self, scale=SCALE, caption="CHIP-8 Emulator", emulator=None):
        self.pixel_scale = scale
        window_width, window_height = WIDTH * scale, HEIGHT * scale
        super().__init__(window_width, window_height, caption=caption,
                         resizable=False, vsync=False)

        self.emulator = emulator
        self.held = set()

        # Pre-allocated small framebuffer (64x32 RGBA), upscaled with numpy.repeat
        self._small_framebuf = np.zeros((HEIGHT, WIDTH, 4), dtype=np.uint8)
        self._small_framebuf[..., 3] = 255
        self.image = pyglet.image.ImageData(
            window_width,
            window_height,
            'RGBA',
            np.repeat(np.repeat(self._small_framebuf, scale, axis=0), scale, axis=1).tobytes()
        )

        # ---- Performance Counters ----
        self._bench_time = 0.0
        self._bench_cycles = 0
        self._bench_frames = 0
        self.fps_label = pyglet.text.Label(
            "FPS: 0",
            font_size=12,
            x=5,
            y=window_height - 15,
            anchor_x='left',
            anchor_y='center',
            color=(255, 255, 255, 255)
        )
        self.cps_label = pyglet.text.Label(
            "Cycles/s: 0",
            font_size=12,
            x=5,
            y=window_height - 30,
            anchor_x='left',
            anchor_y='center',
            color=(255, 255, 255, 255)
        )

    # ---- Screen contract ----
    @property
    def is_open(self):
        return not self.has_exit

    def poll_events(self):
        self.dispatch_events()
        # media players post their end-of-stream events here
        pyglet.clock.tick()
        pyglet.app.platform_event_loop.dispatch_posted_events()

    def pressed_keys(self):
        return frozenset(self.held)

    def present(self, framebuffer):
        self._update_bench()

        # row 0 of the CHIP-8 screen is the top, pyglet's y axis points up
        lit = np.flipud(framebuffer.pixels) * 255
        self._small_framebuf[..., 0] = lit
        self._small_framebuf[..., 1] = lit
        self._small_framebuf[..., 2] = lit
        scaled = np.repeat(np.repeat(self._small_framebuf, self.pixel_scale, axis=0), self.pixel_scale, axis=1)

        self.switch_to()
        self.clear()
        self.image.set_data('RGBA', self.width * 4, scaled.tobytes())
        self.image.blit(0, 0)
        self.fps_label.draw()
        self.cps_label.draw()
        self.flip()

    def _update_bench(self):
        if self.emulator is None:
            return
        now = self.emulator.clock()
        elapsed = now - self._bench_time
        if elapsed >= 1.0:
            frames = self.emulator.frame_count - self._bench_frames
            cycles = self.emulator.cycle_count - self._bench_cycles
            self.fps_label.text = f"FPS: {frames / elapsed:.1f}"
            self.cps_label.text = f"Cycles/s: {cycles / elapsed:.0f}"
            self._bench_frames = self.emulator.frame_count
            self._bench_cycles = self.emulator.cycle_count
            self._bench_time = now

    # ---- Input ----
    def on_key_press(self, symbol, modifiers):
        #@Override
        if symbol == key.ESCAPE:
            self.has_exit = True
            return
        if symbol == key.F1:
            log("logsOn:", toggle_logs())
            return
        name = KEYNAMES.get(symbol)
        if name is not None:
            self.held.add(name)

    def on_key_release(self, symbol, modifiers):
        #@Override
        name = KEYNAMES.get(symbol)
        if name is not None:
            self.held.discard(name)

    def on_draw(self):
        #@Override - drawing happens in present(), driven by the emulator
        pass


class PygletSound:
    """440Hz beep, re-queued for as long as the sound timer asks for it."""

    def __init__(self, frequency=440, duration=0.1, pitch_variation=0):
        self.frequency = frequency
        self.duration = duration
        self.pitch_variation = pitch_variation
        self.player = None
        self.playing = False

    def play(self):
        # Only play if not already playing
        if self.player is not None:
            return
        freq = self.frequency
        if self.pitch_variation:
            freq += random.randint(-self.pitch_variation, self.pitch_variation)

        player = pyglet.media.Player()
        player.queue(generate_beep(duration=self.duration, frequency=freq))
        player.play()
        self.player = player
        self.playing = True

        # let play() start a fresh beep once this one runs out
        def on_eos():
            if self.player is player:
                self.player = None
            player.delete()

        player.on_eos = on_eos

    def stop(self):
        if self.player is not None:
            self.player.pause()
            self.player.delete()
            self.player = None
        self.playing = False
